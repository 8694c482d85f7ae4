import json
import unittest

from freezegun import freeze_time

from logic.notification_logic import (
    build_recent_activity, extract_amount_from_message, map_notification_type_to_activity,
    prepend_notification,
)
from services.db_service import MemoryStore
from services.notification_service import NotificationService
from sample_data import make_context, sample_property, sample_tenant


class TestNotificationService(unittest.TestCase):

    def setUp(self):
        self.notifications = NotificationService(MemoryStore())

    def test_newest_first_and_capped_at_fifty(self):
        for i in range(55):
            self.notifications.add('info', f"Note {i}", 'message')
        stored = self.notifications.get_all()
        self.assertEqual(len(stored), 50)
        self.assertEqual(stored[0]['title'], 'Note 54')
        self.assertEqual(stored[-1]['title'], 'Note 5')

    def test_mark_read(self):
        with freeze_time('2024-06-15 10:00:00'):
            first = self.notifications.add('success', 'First', 'one')
        with freeze_time('2024-06-15 10:00:01'):
            self.notifications.add('warning', 'Second', 'two')

        self.assertEqual(self.notifications.unread_count(), 2)
        self.assertTrue(self.notifications.mark_read(first['id']))
        self.assertEqual(self.notifications.unread_count(), 1)
        self.assertFalse(self.notifications.mark_read('missing'))

        self.assertEqual(self.notifications.mark_all_read(), 2)
        self.assertEqual(self.notifications.unread_count(), 0)

    @freeze_time('2024-06-15 10:00:00')
    def test_back_to_back_notifications_get_distinct_ids(self):
        first = self.notifications.add('success', 'First', 'one')
        second = self.notifications.add('info', 'Second', 'two')
        self.assertNotEqual(first['id'], second['id'])
        self.assertEqual(int(second['id']), int(first['id']) + 1)

        self.assertTrue(self.notifications.mark_read(second['id']))
        read_flags = {n['title']: n['read'] for n in self.notifications.get_all()}
        self.assertEqual(read_flags, {'First': False, 'Second': True})

    @freeze_time('2024-06-15 10:00:00')
    def test_store_mutations_in_the_same_millisecond(self):
        context = make_context()
        context.properties.add(sample_property(name='North'))
        context.properties.add(sample_property(name='South'))
        ids = [n['id'] for n in context.notifications.get_all()]
        self.assertEqual(len(set(ids)), 2)

        context.notifications.mark_read(ids[1])
        self.assertEqual([n['read'] for n in context.notifications.get_all()], [False, True])

    def test_clear(self):
        self.notifications.add('info', 'Note', 'message')
        self.notifications.clear()
        self.assertEqual(self.notifications.get_all(), [])

    def test_unreadable_storage(self):
        store = MemoryStore({'notifications': '{"not": "a list"}'})
        self.assertEqual(NotificationService(store).get_all(), [])


class TestNotificationLogic(unittest.TestCase):

    def test_prepend_respects_limit(self):
        self.assertEqual(prepend_notification([{'id': 1}, {'id': 2}], {'id': 3}, limit=2), [{'id': 3}, {'id': 1}])

    def test_activity_type_mapping(self):
        self.assertEqual(map_notification_type_to_activity('success'), 'payment')
        self.assertEqual(map_notification_type_to_activity('warning'), 'maintenance')
        self.assertEqual(map_notification_type_to_activity('info'), 'tenant')
        self.assertEqual(map_notification_type_to_activity('other'), 'default')

    def test_amount_extraction(self):
        self.assertEqual(extract_amount_from_message('Received $1,200.50 from Jane'), 1200.5)
        self.assertIsNone(extract_amount_from_message('No money here'))

    def test_recent_activity_merges_and_sorts(self):
        properties = [
            {'name': 'Old', 'addedDate': '2024-01-01T00:00:00+00:00', 'monthlyIncome': 100},
            {'name': 'Mid', 'addedDate': '2024-03-01T00:00:00+00:00', 'monthlyIncome': 200},
            {'name': 'New', 'addedDate': '2024-05-01T00:00:00+00:00', 'monthlyIncome': 300},
            {'name': 'Oldest', 'addedDate': '2023-01-01T00:00:00+00:00', 'monthlyIncome': 50},
        ]
        notifications = [
            {'type': 'success', 'title': 'Payment Received', 'message': 'Got $900',
             'timestamp': '2024-04-01T00:00:00+00:00'},
            {'type': 'warning', 'title': 'Leak reported', 'message': 'Unit 2B',
             'timestamp': '2024-06-01T00:00:00+00:00'},
            {'type': 'info', 'title': 'Ignored', 'message': '', 'timestamp': '2024-07-01T00:00:00+00:00'},
        ]

        activity = build_recent_activity(properties, notifications)
        self.assertEqual(
            [a['description'] for a in activity],
            ['Leak reported', 'Added "New" property', 'Payment Received', 'Added "Mid" property',
             'Added "Old" property'],
        )
        self.assertEqual(activity[2]['amount'], 900)
        self.assertEqual(activity[2]['type'], 'payment')


class TestDashboardService(unittest.TestCase):

    def test_overview_is_computed_from_stores(self):
        context = make_context()
        prop = context.properties.add(sample_property(units=2, occupancy=50, monthlyIncome=2000))
        tenant = context.tenants.add(sample_tenant(prop['id'], paymentStatus='overdue'))
        context.payments.add({'tenantId': tenant['id'], 'propertyId': prop['id'], 'amount': 650,
                              'date': '2024-06-01'})
        context.maintenance.add({'title': 'Broken lock', 'propertyId': prop['id'], 'category': 'security'})

        overview = context.dashboard.get_overview()
        stats = overview['stats']
        self.assertEqual(stats['outstandingBalance'], 650)
        self.assertEqual(stats['overdueTenants'], 1)
        self.assertEqual(stats['pendingPayments'], 1)
        self.assertEqual(stats['maintenanceRequests'], 1)
        self.assertEqual(stats['vacancyRate'], 50)
        self.assertEqual(overview['unreadNotifications'], 4)
        self.assertEqual(overview['recentActivity'][-1]['description'], 'Added "Sunset Apartments" property')

    def test_export(self):
        context = make_context()
        context.properties.add(sample_property(units=1))
        exported = json.loads(context.dashboard.export_dashboard_data())
        self.assertEqual(len(exported['properties']), 1)
        self.assertIn('exportDate', exported)
        self.assertEqual(exported['stats']['totalProperties'], 1)


if __name__ == '__main__':
    unittest.main()
