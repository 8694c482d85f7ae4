# functions/services/settings_service.py

import json
import logging
from datetime import timedelta

from constants import (
    SETTINGS_KEY_PREFIX, THEME_KEY, THEMES, DEFAULT_PLAN, PLAN_NAMES, INTEGRATIONS,
    MIN_PASSWORD_LENGTH, SETTINGS_VERSION,
)
from logic.plan_logic import describe_plan, calculate_plan_usage
from logic.validation import validate_settings, validate_profile_data, validate_payment_method
from services.db_service import read_json, write_json
from utils.date_utils import now_iso, now_utc
from utils.errors import ValidationError

log = logging.getLogger(__name__)


class SettingsService:
    """One settings object per user, stored under settings_<userId>."""

    def __init__(self, store, auth, user_id: str = None):
        self.store = store
        self.auth = auth
        self.user_id = user_id or auth.get_current_user()['id']
        self.key = f"{SETTINGS_KEY_PREFIX}_{self.user_id}"

    def get_user_profile(self) -> dict:
        user = self.auth.get_current_user()
        full_name = user.get('fullName') or 'User Account'
        first_name, _, last_name = full_name.partition(' ')
        return {
            'id': user.get('id'),
            'email': user.get('email') or '',
            'fullName': full_name,
            'firstName': first_name or 'User',
            'lastName': last_name or 'Account',
            'role': 'Administrator',
        }

    def get_default_settings(self) -> dict:
        profile = self.get_user_profile()
        return {
            # Personal info
            'firstName': profile['firstName'],
            'lastName': profile['lastName'],
            'email': profile['email'],
            'phone': '',
            'companyName': '',
            'address': '',
            'city': '',
            'state': '',
            'zipCode': '',
            'country': 'US',
            'website': '',

            # Preferences
            'defaultCurrency': 'USD ($)',
            'dateFormat': 'MM/DD/YYYY',
            'timeZone': 'Eastern Time (ET)',
            'numberFormat': '1,000.00',
            'theme': 'light',
            'defaultDashboardView': 'overview',

            # Notifications
            'emailNotifications': True,
            'smsNotifications': False,
            'paymentReminders': True,
            'maintenanceAlerts': True,
            'weeklyReports': False,

            # Security
            'twoFactorEnabled': False,
            'lastPasswordChange': None,
            'loginAlerts': True,

            # Billing
            'paymentMethod': '',
            'billingAddressSame': True,
            'plan': DEFAULT_PLAN,

            # Integrations
            'mpesaIntegrated': False,
            'googleCalendarConnected': False,
            'slackConnected': False,
            'smsServiceConnected': False,

            'lastUpdated': now_iso(),
            'version': SETTINGS_VERSION,
        }

    def get_settings(self) -> dict:
        settings = read_json(self.store, self.key)
        if not isinstance(settings, dict):
            return self.get_default_settings()
        return settings

    def save_settings(self, settings: dict) -> bool:
        if not validate_settings(settings):
            raise ValidationError('Invalid settings data')

        write_json(self.store, self.key, settings)
        if settings.get('theme'):
            self.store.set_item(THEME_KEY, settings['theme'])
        log.info(f"Saved settings for user {self.user_id}.")
        return True

    def _update(self, changes: dict) -> dict:
        settings = {**self.get_settings(), **changes, 'lastUpdated': now_iso()}
        self.save_settings(settings)
        return settings

    def get_theme(self) -> str:
        theme = self.store.get_item(THEME_KEY)
        return theme if theme in THEMES else 'light'

    def update_profile(self, profile: dict) -> dict:
        if not validate_profile_data(profile):
            raise ValidationError('Invalid profile data')
        return self._update(profile)

    def change_password(self, current_password: str, new_password: str) -> dict:
        # Offline mode has no credential store; only the change time is recorded.
        if not current_password or not new_password:
            raise ValidationError('Both current and new passwords are required')
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

        timestamp = now_iso()
        self._update({'lastPasswordChange': timestamp})
        return {'success': True, 'message': 'Password changed successfully', 'timestamp': timestamp}

    def toggle_two_factor(self, enable: bool) -> dict:
        self._update({'twoFactorEnabled': bool(enable)})
        return {
            'enabled': bool(enable),
            'message': 'Two-factor authentication enabled' if enable else 'Two-factor authentication disabled',
        }

    def update_payment_method(self, payment_method: dict) -> dict:
        if not validate_payment_method(payment_method):
            raise ValidationError('Invalid payment method data')

        method = f"{payment_method.get('type')} ending in {payment_method.get('last4')}"
        self._update({'paymentMethod': method})
        return {'success': True, 'message': 'Payment method updated successfully', 'method': method}

    def toggle_integration(self, integration_id: str, enable: bool) -> dict:
        setting_key = INTEGRATIONS.get(integration_id)
        if not setting_key:
            raise ValidationError('Invalid integration')

        self._update({setting_key: bool(enable)})
        return {
            'integration': integration_id,
            'enabled': bool(enable),
            'message': f"{integration_id} {'connected' if enable else 'disconnected'} successfully",
        }

    def get_user_plan(self) -> dict:
        plan_id = self.get_settings().get('plan') or DEFAULT_PLAN
        if plan_id not in PLAN_NAMES:
            log.warning(f"Unknown plan '{plan_id}' for user {self.user_id}, using {DEFAULT_PLAN}.")
            plan_id = DEFAULT_PLAN
        return describe_plan(plan_id, now_utc().date())

    def get_plan_usage(self, total_units: int) -> dict:
        return calculate_plan_usage(total_units, self.get_user_plan()['id'])

    def get_billing_history(self) -> list:
        plan = self.get_user_plan()
        today = now_utc().date()
        return [
            {
                'id': f"INV-{today.year}001",
                'date': today.isoformat(),
                'amount': plan['price'],
                'status': 'paid',
                'plan': plan['name'],
            },
            {
                'id': f"INV-{today.year - 1}012",
                'date': (today - timedelta(days=30)).isoformat(),
                'amount': plan['price'],
                'status': 'paid',
                'plan': plan['name'],
            },
        ]

    def export_user_data(self) -> str:
        return json.dumps({
            'profile': self.get_user_profile(),
            'settings': self.get_settings(),
            'plan': self.get_user_plan(),
            'exportDate': now_iso(),
            'version': SETTINGS_VERSION,
        }, indent=2)

    def reset_to_defaults(self) -> dict:
        defaults = self.get_default_settings()
        self.save_settings(defaults)
        log.info(f"Reset settings for user {self.user_id}.")
        return defaults
