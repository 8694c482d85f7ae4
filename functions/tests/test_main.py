import json
import unittest
from unittest.mock import patch

from app_context import set_app_context
from main import (
    properties, tenants, payments, maintenance, settings, dashboard, notifications,
    render_view, send_verification_email,
)
from sample_data import (
    MockRequest, make_context, response_json, sample_property, sample_tenant, sample_payment,
    sample_request,
)


class HandlerTestCase(unittest.TestCase):

    def setUp(self):
        self.context = make_context()
        set_app_context(self.context)

    def tearDown(self):
        set_app_context(None)


class TestPropertiesFunction(HandlerTestCase):

    def test_crud_round_trip(self):
        response = properties(MockRequest('POST', json_data=sample_property(units=2)))
        self.assertEqual(response.status_code, 201)
        created = response_json(response)
        self.assertEqual(created['name'], 'Sunset Apartments')

        response = properties(MockRequest('GET', args_data={'id': str(created['id'])}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response_json(response), created)

        response = properties(MockRequest('PUT', json_data={'occupancy': 100}, args_data={'id': str(created['id'])}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response_json(response)['occupancy'], 100)

        response = properties(MockRequest('DELETE', args_data={'id': str(created['id'])}))
        self.assertEqual(response_json(response), {'success': True})
        self.assertEqual(response_json(properties(MockRequest('GET'))), [])

    def test_missing_record_is_404(self):
        response = properties(MockRequest('GET', args_data={'id': '42'}))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response_json(response), {'error': 'Property not found'})

        response = properties(MockRequest('DELETE', args_data={'id': '42'}))
        self.assertEqual(response.status_code, 404)

    def test_validation_error_is_400(self):
        response = properties(MockRequest('POST', json_data={'lat': 1, 'lng': 2}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Property name is required'})

    def test_plan_limit_is_400(self):
        response = properties(MockRequest('POST', json_data=sample_property(units=6)))
        self.assertEqual(response.status_code, 400)
        self.assertIn('plan limit', response_json(response)['error'])

    def test_invalid_json_is_400(self):
        response = properties(MockRequest('POST', data='{"name": '))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Invalid JSON format'})

    def test_put_without_id(self):
        response = properties(MockRequest('PUT', json_data={'name': 'x'}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Missing id'})

    def test_html_is_stripped_from_input(self):
        response = properties(MockRequest('POST', json_data=sample_property(name='<b>Oak</b> House', units=1)))
        self.assertEqual(response_json(response)['name'], 'Oak House')

    def test_csv_import_and_export(self):
        csv_text = 'Name,Type,Units,Lat,Lng\n"Cabin, North",house,1,45,-110\nBarn,house,2,46,-111\n'
        response = properties(MockRequest('POST', data=csv_text, content_type='text/csv'))
        self.assertEqual(response.status_code, 201)
        body = response_json(response)
        self.assertEqual(body['imported'], 2)
        self.assertEqual(body['properties'][0]['name'], 'Cabin, North')

        response = properties(MockRequest('GET', args_data={'view': 'csv'}))
        self.assertEqual(response.headers['Content-Type'], 'text/csv')
        self.assertIn('attachment; filename="properties.csv"', response.headers['Content-Disposition'])
        self.assertIn('"Cabin, North"', response.get_data(as_text=True))

    def test_empty_csv_import(self):
        response = properties(MockRequest('POST', data='Name,Lat,Lng\n', content_type='text/csv'))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'CSV file is empty or has no data'})

    def test_views(self):
        self.context.properties.add(sample_property(units=2))
        stats = response_json(properties(MockRequest('GET', args_data={'view': 'stats'})))
        self.assertEqual(stats['totalUnits'], 2)
        analytics = response_json(properties(MockRequest('GET', args_data={'view': 'analytics'})))
        self.assertEqual(analytics['totalProperties'], 1)
        response = properties(MockRequest('GET', args_data={'view': 'nope'}))
        self.assertEqual(response.status_code, 400)

    def test_search(self):
        self.context.properties.add(sample_property(name='Lake House', units=1))
        self.context.properties.add(sample_property(name='Hill Lodge', units=1))
        body = response_json(properties(MockRequest('GET', args_data={'q': 'lodge'})))
        self.assertEqual([p['name'] for p in body], ['Hill Lodge'])

    def test_method_not_allowed(self):
        self.assertEqual(properties(MockRequest('PATCH')).status_code, 405)


class TestSecurity(HandlerTestCase):

    def test_options_preflight(self):
        response = tenants(MockRequest('OPTIONS'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Access-Control-Allow-Origin'], 'https://test.rentdesk.app')

    def test_security_headers_on_every_response(self):
        response = tenants(MockRequest('GET'))
        self.assertEqual(response.headers['X-Content-Type-Options'], 'nosniff')
        self.assertEqual(response.headers['X-Frame-Options'], 'DENY')

    def test_rate_limit(self):
        set_app_context(make_context({'RATE_LIMIT_PER_SECOND': '2'}))
        statuses = [tenants(MockRequest('GET')).status_code for _ in range(3)]
        self.assertEqual(statuses, [200, 200, 429])

        response = tenants(MockRequest('GET', headers={'X-Forwarded-For': '10.0.0.2'}))
        self.assertEqual(response.status_code, 200)

    def test_rate_limited_response(self):
        set_app_context(make_context({'RATE_LIMIT_PER_SECOND': '0'}))
        response = tenants(MockRequest('GET'))
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers['Retry-After'], '60')

    @patch('main.handle_entity_request', side_effect=RuntimeError('boom'))
    def test_unexpected_error_is_500(self, mock_handle):
        response = tenants(MockRequest('GET'))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response_json(response), {'error': 'Internal server error'})


class TestTenantAndPaymentFunctions(HandlerTestCase):

    def setUp(self):
        super().setUp()
        self.property = self.context.properties.add(sample_property(units=2))

    def test_enforced_references(self):
        set_app_context(make_context({'ENFORCE_REFERENCES': 'true'}))
        response = tenants(MockRequest('POST', json_data=sample_tenant(99)))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Property 99 does not exist'})

    def test_payment_flow(self):
        tenant = self.context.tenants.add(sample_tenant(self.property['id']))
        response = payments(MockRequest('POST', json_data=sample_payment(tenant['id'], self.property['id'])))
        self.assertEqual(response.status_code, 201)
        payment = response_json(response)

        outstanding = response_json(payments(MockRequest('GET', args_data={'view': 'outstanding'})))
        self.assertEqual([p['id'] for p in outstanding], [payment['id']])

        response = payments(MockRequest('POST', json_data={'method': 'cash'},
                                        args_data={'action': 'mark_paid', 'id': str(payment['id'])}))
        self.assertEqual(response_json(response)['status'], 'completed')

        by_tenant = response_json(payments(MockRequest('GET', args_data={'tenantId': str(tenant['id'])})))
        self.assertEqual(len(by_tenant), 1)

    def test_recent_payments_limit(self):
        tenant = self.context.tenants.add(sample_tenant(self.property['id']))
        for day in ('2024-03-01', '2024-03-02'):
            self.context.payments.add(sample_payment(tenant['id'], self.property['id'], date=day))

        response = payments(MockRequest('GET', args_data={'view': 'recent', 'limit': '1'}))
        self.assertEqual([p['date'] for p in response_json(response)], ['2024-03-02'])

        response = payments(MockRequest('GET', args_data={'view': 'recent', 'limit': 'abc'}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response_json(response)), 2)

    def test_invalid_payment(self):
        response = payments(MockRequest('POST', json_data={'amount': 10}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Invalid payment data'})


class TestMaintenanceFunction(HandlerTestCase):

    def test_lifecycle(self):
        response = maintenance(MockRequest('POST', json_data=sample_request(1, priority='high')))
        self.assertEqual(response.status_code, 201)
        request_id = str(response_json(response)['id'])

        urgent = response_json(maintenance(MockRequest('GET', args_data={'view': 'urgent'})))
        self.assertEqual(len(urgent), 1)

        response = maintenance(MockRequest('POST', json_data={},
                                           args_data={'action': 'assign', 'id': request_id}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Missing assignedTo'})

        response = maintenance(MockRequest('POST', json_data={'assignedTo': 'Bob'},
                                           args_data={'action': 'assign', 'id': request_id}))
        self.assertEqual(response_json(response)['status'], 'in_progress')

        response = maintenance(MockRequest('POST', json_data={'actualCost': 150, 'notes': 'Fixed'},
                                           args_data={'action': 'complete', 'id': request_id}))
        completed = response_json(response)
        self.assertEqual(completed['status'], 'completed')
        self.assertEqual(completed['actualCost'], 150)
        self.assertIsNotNone(completed['completedAt'])

        stats = response_json(maintenance(MockRequest('GET', args_data={'view': 'stats'})))
        self.assertEqual(stats['completed'], 1)

        response = maintenance(MockRequest('POST', json_data={}, args_data={'action': 'reopen', 'id': request_id}))
        self.assertIsNone(response_json(response)['completedAt'])

        in_open = response_json(maintenance(MockRequest('GET', args_data={'status': 'open'})))
        self.assertEqual(len(in_open), 1)

    def test_unknown_action_and_missing_request(self):
        response = maintenance(MockRequest('POST', json_data={}, args_data={'action': 'fly', 'id': '1'}))
        self.assertEqual(response_json(response), {'error': 'Unknown action: fly'})

        response = maintenance(MockRequest('POST', json_data={}, args_data={'action': 'reopen', 'id': '1'}))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response_json(response), {'error': 'Maintenance request not found'})


class TestSettingsFunction(HandlerTestCase):

    def test_get_and_put(self):
        body = response_json(settings(MockRequest('GET')))
        self.assertEqual(body['theme'], 'light')

        response = settings(MockRequest('PUT', json_data={'theme': 'dark', 'companyName': 'Acme'}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response_json(settings(MockRequest('GET', args_data={'view': 'theme'}))), {'theme': 'dark'})

        response = settings(MockRequest('PUT', json_data={'theme': 'neon'}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Invalid settings data'})

    def test_plan_views(self):
        self.context.properties.add(sample_property(units=2))
        self.assertEqual(response_json(settings(MockRequest('GET', args_data={'view': 'plan'})))['name'], 'Starter')
        usage = response_json(settings(MockRequest('GET', args_data={'view': 'usage'})))
        self.assertEqual(usage['current'], 2)
        self.assertEqual(usage['remaining'], 3)
        self.assertEqual(len(response_json(settings(MockRequest('GET', args_data={'view': 'billing'})))), 2)

        response = settings(MockRequest('GET', args_data={'view': 'export'}))
        self.assertEqual(json.loads(response.get_data(as_text=True))['plan']['id'], 'starter')

    def test_actions(self):
        response = settings(MockRequest('POST', json_data={'currentPassword': 'old-one', 'newPassword': 'brand-new-pass'},
                                        args_data={'action': 'password'}))
        self.assertEqual(response_json(response)['message'], 'Password changed successfully')

        response = settings(MockRequest('POST', json_data={'integration': 'googleCalendar', 'enable': True},
                                        args_data={'action': 'integration'}))
        self.assertTrue(response_json(response)['enabled'])

        response = settings(MockRequest('POST', json_data={}, args_data={'action': 'teleport'}))
        self.assertEqual(response.status_code, 400)


class TestDashboardAndNotifications(HandlerTestCase):

    def test_dashboard_overview(self):
        self.context.properties.add(sample_property(units=2, occupancy=50))
        body = response_json(dashboard(MockRequest('GET')))
        self.assertEqual(body['stats']['totalProperties'], 1)
        self.assertEqual(body['unreadNotifications'], 1)
        self.assertEqual(dashboard(MockRequest('POST', json_data={})).status_code, 405)

    def test_notifications(self):
        self.context.properties.add(sample_property(units=1))
        body = response_json(notifications(MockRequest('GET')))
        self.assertEqual(body['unreadCount'], 1)
        notification_id = body['notifications'][0]['id']

        response = notifications(MockRequest('POST', json_data={'id': notification_id}, args_data={'action': 'read'}))
        self.assertEqual(response_json(response), {'success': True})

        response = notifications(MockRequest('POST', json_data={'id': 'missing'}, args_data={'action': 'read'}))
        self.assertEqual(response.status_code, 404)

        notifications(MockRequest('DELETE'))
        self.assertEqual(response_json(notifications(MockRequest('GET')))['notifications'], [])


class TestRenderView(HandlerTestCase):

    def test_get_renders_html(self):
        response = render_view(MockRequest('GET', args_data={'route': '#tenants'}))
        self.assertEqual(response.status_code, 200)
        self.assertIn('text/html', response.headers['Content-Type'])
        self.assertIn('data-view="tenants"', response.get_data(as_text=True))

    def test_unknown_route_renders_dashboard(self):
        response = render_view(MockRequest('GET', args_data={'route': '#unknown'}))
        self.assertIn('data-view="dashboard"', response.get_data(as_text=True))

    def test_post_dispatches_action(self):
        response = render_view(MockRequest('POST', json_data={
            'route': '#properties', 'action': 'add', 'payload': {'data': sample_property(units=1)},
        }))
        body = response_json(response)
        self.assertEqual(body['notification']['type'], 'success')
        self.assertIn('Sunset Apartments', body['html'])

    def test_post_requires_action(self):
        response = render_view(MockRequest('POST', json_data={'route': '#properties'}))
        self.assertEqual(response.status_code, 400)


class TestSendVerificationEmail(HandlerTestCase):

    @patch('main.send_verification_code_email', return_value=True)
    def test_success(self, mock_send):
        data = {'email': 'new.user@example.com', 'code': '123456', 'firstName': 'New'}
        response = send_verification_email(MockRequest('POST', json_data=data))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response_json(response), {'success': True, 'message': 'Verification email sent successfully'})
        mock_send.assert_called_once_with(data, self.context.template_env)

    @patch('main.send_verification_code_email')
    def test_invalid_request(self, mock_send):
        response = send_verification_email(MockRequest('POST', json_data={'email': 'a@b.co', 'code': 'abc'}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response_json(response), {'error': 'Invalid verification code format'})
        mock_send.assert_not_called()

    @patch('main.send_verification_code_email', return_value=False)
    def test_send_failure(self, mock_send):
        response = send_verification_email(MockRequest('POST', json_data={'email': 'a@b.co', 'code': '123456'}))
        self.assertEqual(response.status_code, 500)

    def test_get_not_allowed(self):
        self.assertEqual(send_verification_email(MockRequest('GET')).status_code, 405)


if __name__ == '__main__':
    unittest.main()
