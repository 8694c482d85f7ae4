# functions/views/entity_views.py

from constants import (
    PROPERTY_TYPES, TENANT_STATUSES, TENANT_PAYMENT_STATUSES, PAYMENT_STATUSES,
    MAINTENANCE_PRIORITIES, MAINTENANCE_STATUSES, THEMES, CURRENCIES, DATE_FORMATS, INTEGRATIONS,
)
from utils.errors import ValidationError
from views.presenter import EntityView


def _crud_actions(view: EntityView, store) -> EntityView:
    """Registers the add / update / delete / import actions every entity screen shares."""
    label = store.entity_name

    def add(payload):
        record = store.add(payload.get('data'))
        return f"{label} \"{store.describe(record)}\" added successfully"

    def update(payload):
        record = store.update(payload.get('id'), payload.get('data'))
        return f"{label} \"{store.describe(record)}\" updated successfully"

    def delete(payload):
        store.delete(payload.get('id'))
        return f"{label} deleted successfully"

    def import_csv(payload):
        imported = store.import_csv(payload.get('csv'))
        if not imported:
            raise ValidationError(f"No {store.collection_name} were imported")
        return f"Successfully imported {len(imported)} {store.collection_name}"

    return (view.on('add', add)
                .on('update', update)
                .on('delete', delete)
                .on('import_csv', import_csv)
                .on('search', lambda payload: None))


def build_dashboard_view(context) -> EntityView:
    def load(query):
        return {
            'stats': context.dashboard.get_stats(),
            'recent_activity': context.dashboard.get_recent_activity(),
            'notifications': context.notifications.get_all()[:5],
            'unread_count': context.notifications.unread_count(),
        }

    view = EntityView('dashboard', 'dashboard.html', context.template_env, load)
    view.on('mark_all_read', lambda payload: f"Marked {context.notifications.mark_all_read()} notifications as read")
    view.on('clear_notifications', lambda payload: context.notifications.clear() or 'Notifications cleared')
    return view


def build_properties_view(context) -> EntityView:
    store = context.properties

    def load(query):
        properties = store.search(query)
        return {
            'records': properties,
            'stats': store.get_stats(),
            'property_types': PROPERTY_TYPES,
            'plan_usage': context.settings.get_plan_usage(store.total_units()),
        }

    return _crud_actions(EntityView('properties', 'properties.html', context.template_env, load), store)


def build_tenants_view(context) -> EntityView:
    store = context.tenants

    def load(query):
        return {
            'records': store.search(query),
            'stats': store.get_stats(),
            'properties': context.properties.get_all(),
            'statuses': TENANT_STATUSES,
            'payment_statuses': TENANT_PAYMENT_STATUSES,
            'expiring': store.get_expiring_leases(),
        }

    return _crud_actions(EntityView('tenants', 'tenants.html', context.template_env, load), store)


def build_payments_view(context) -> EntityView:
    store = context.payments

    def load(query):
        return {
            'records': store.search(query),
            'stats': store.get_stats(),
            'tenants': context.tenants.get_all(),
            'properties': context.properties.get_all(),
            'statuses': PAYMENT_STATUSES,
        }

    def mark_paid(payload):
        payment = store.mark_completed(payload.get('id'), payload.get('method'))
        return f"Payment {payment.get('reference')} marked as paid"

    view = _crud_actions(EntityView('payments', 'payments.html', context.template_env, load), store)
    return view.on('mark_paid', mark_paid)


def build_maintenance_view(context) -> EntityView:
    store = context.maintenance

    def load(query):
        return {
            'records': store.search(query),
            'stats': store.get_stats(),
            'properties': context.properties.get_all(),
            'priorities': MAINTENANCE_PRIORITIES,
            'statuses': MAINTENANCE_STATUSES,
            'monthly_costs': store.calculate_monthly_costs(),
            'categories': store.get_category_distribution(),
        }

    def complete(payload):
        request = store.complete_request(payload.get('id'), payload.get('actualCost'), payload.get('notes', ''))
        return f"Request \"{request['title']}\" marked as completed"

    def assign(payload):
        request = store.assign_request(payload.get('id'), payload.get('assignedTo'))
        return f"Request \"{request['title']}\" assigned to {request['assignedTo']}"

    def reopen(payload):
        request = store.reopen_request(payload.get('id'))
        return f"Request \"{request['title']}\" reopened"

    def update_status(payload):
        request = store.update_status(payload.get('id'), payload.get('status'))
        return f"Request \"{request['title']}\" is now {request['status']}"

    view = _crud_actions(EntityView('maintenance', 'maintenance.html', context.template_env, load), store)
    return (view.on('complete', complete)
                .on('assign', assign)
                .on('reopen', reopen)
                .on('update_status', update_status))


def build_settings_view(context) -> EntityView:
    settings = context.settings

    def load(query):
        plan = settings.get_user_plan()
        return {
            'settings': settings.get_settings(),
            'plan': plan,
            'plan_usage': settings.get_plan_usage(context.properties.total_units()),
            'billing_history': settings.get_billing_history(),
            'themes': THEMES,
            'currencies': CURRENCIES,
            'date_formats': DATE_FORMATS,
            'integrations': INTEGRATIONS,
            'user': context.auth.get_current_user(),
            'initials': context.auth.get_user_initials(),
        }

    def save(payload):
        settings.save_settings({**settings.get_settings(), **(payload.get('data') or {})})
        return 'Settings saved successfully'

    def update_profile(payload):
        settings.update_profile(payload.get('data') or {})
        return 'Profile updated successfully'

    def reset(payload):
        settings.reset_to_defaults()
        return 'Settings reset to defaults'

    view = EntityView('settings', 'settings.html', context.template_env, load)
    return (view.on('save', save)
                .on('update_profile', update_profile)
                .on('change_password', lambda p: settings.change_password(
                    p.get('currentPassword'), p.get('newPassword'))['message'])
                .on('toggle_two_factor', lambda p: settings.toggle_two_factor(p.get('enable'))['message'])
                .on('update_payment_method', lambda p: settings.update_payment_method(p.get('data'))['message'])
                .on('toggle_integration', lambda p: settings.toggle_integration(
                    p.get('integration') or p.get('id'), p.get('enable'))['message'])
                .on('reset', reset))


def build_views(context) -> dict:
    return {
        'dashboard': build_dashboard_view(context),
        'properties': build_properties_view(context),
        'tenants': build_tenants_view(context),
        'payments': build_payments_view(context),
        'maintenance': build_maintenance_view(context),
        'settings': build_settings_view(context),
    }
