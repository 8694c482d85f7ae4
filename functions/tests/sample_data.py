import json

from app_context import build_app_context
from services.db_service import MemoryStore

TEST_ENV = {
    'STORAGE_BACKEND': 'memory',
    'APP_USER_ID': 'default',
    'RATE_LIMIT_PER_SECOND': '1000',
    'ALLOWED_ORIGINS': 'https://test.rentdesk.app',
    'CLOUD_FUNCTION_BASE_URL': 'https://test.com',
}


def make_context(environ=None, store=None, rng=None, plan=None):
    env = dict(TEST_ENV)
    env.update(environ or {})
    context = build_app_context(env, store=store if store is not None else MemoryStore(), rng=rng)
    if plan:
        context.settings.save_settings({**context.settings.get_settings(), 'plan': plan})
    return context


def sample_property(**overrides):
    data = {
        'name': 'Sunset Apartments',
        'lat': 40.7128,
        'lng': -74.006,
        'type': 'apartment',
        'units': 4,
        'monthlyRent': 1200,
        'occupancy': 75,
        'address': '12 Sunset Blvd, New York',
        'description': 'Walk-up near the park',
    }
    data.update(overrides)
    return data


def sample_tenant(property_id, **overrides):
    data = {
        'firstName': 'Jane',
        'lastName': 'Doe',
        'email': 'jane.doe@example.com',
        'phone': '+1 555 123 4567',
        'propertyId': property_id,
        'unit': '2B',
        'monthlyRent': 1200,
        'leaseStart': '2024-01-01',
        'leaseEnd': '2025-01-01',
    }
    data.update(overrides)
    return data


def sample_payment(tenant_id, property_id, **overrides):
    data = {
        'tenantId': tenant_id,
        'propertyId': property_id,
        'amount': 1200,
        'date': '2024-06-01',
        'method': 'bank_transfer',
    }
    data.update(overrides)
    return data


def sample_request(property_id, **overrides):
    data = {'title': 'Leak', 'propertyId': property_id, 'category': 'plumbing'}
    data.update(overrides)
    return data


class MockRequest:
    """Stands in for firebase_functions.https_fn.Request in handler tests."""

    def __init__(self, method='GET', json_data=None, args_data=None, data=None,
                 content_type='application/json', headers=None):
        self.method = method
        self._args_data = args_data if args_data is not None else {}
        self.content_type = content_type
        self.headers = headers if headers is not None else {'X-Forwarded-For': '10.0.0.1'}
        if data is not None:
            self._data = data
        elif json_data is not None:
            self._data = json.dumps(json_data)
        else:
            self._data = ''

    def get_data(self, as_text=False):
        return self._data if as_text else self._data.encode('utf-8')

    def get_json(self, silent=True):
        try:
            return json.loads(self._data)
        except ValueError:
            return None

    @property
    def args(self):
        return self._args_data


def response_json(response):
    return json.loads(response.get_data(as_text=True))
