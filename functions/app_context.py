# functions/app_context.py

import os
import random
import logging

import firebase_admin
from firebase_admin import initialize_app

from constants import STORAGE_ROOT_PATH, DEFAULT_USER_ID
from services.auth_service import DemoAuthService
from services.dashboard_service import DashboardService
from services.db_service import MemoryStore, FileStore, RealtimeDatabaseStore
from services.maintenance_service import MaintenanceStore
from services.notification_service import NotificationService
from services.payment_service import PaymentStore
from services.property_service import PropertyStore
from services.settings_service import SettingsService
from services.tenant_service import TenantStore
from utils.security import RateLimiter, DEFAULT_ALLOWED_ORIGIN
from utils.template_renderer import template_env
from views.router import build_router

log = logging.getLogger(__name__)

STORAGE_BACKENDS = ('firebase', 'memory', 'file')


def _flag(environ, name: str, default: str = 'false') -> bool:
    return environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def load_config(environ=None) -> dict:
    """Reads the runtime configuration from environment variables."""
    environ = os.environ if environ is None else environ

    backend = environ.get('STORAGE_BACKEND', 'memory').strip().lower()
    if backend not in STORAGE_BACKENDS:
        log.warning(f"Unknown STORAGE_BACKEND '{backend}', falling back to memory.")
        backend = 'memory'

    try:
        rate_limit = int(environ.get('RATE_LIMIT_PER_SECOND', 10))
    except ValueError:
        log.warning("RATE_LIMIT_PER_SECOND is not a number, using 10.")
        rate_limit = 10

    return {
        'storage_backend': backend,
        'storage_root_path': environ.get('STORAGE_ROOT_PATH', STORAGE_ROOT_PATH),
        'storage_dir': environ.get('STORAGE_DIR', os.path.join(os.getcwd(), '.rentdesk-data')),
        'database_url': environ.get('FIREBASE_DATABASE_URL'),
        'user_id': environ.get('APP_USER_ID', DEFAULT_USER_ID),
        'demo_mode': _flag(environ, 'DEMO_MODE'),
        'enforce_references': _flag(environ, 'ENFORCE_REFERENCES'),
        'rate_limit_per_second': rate_limit,
        'allowed_origins': environ.get('ALLOWED_ORIGINS', DEFAULT_ALLOWED_ORIGIN),
        'cloud_function_base_url': environ.get(
            'CLOUD_FUNCTION_BASE_URL', 'https://us-central1-rentdesk-app.cloudfunctions.net'
        ),
    }


def ensure_firebase_app(database_url: str = None) -> None:
    try:
        firebase_admin.get_app()
    except ValueError:
        options = {'databaseURL': database_url} if database_url else None
        initialize_app(options=options)


def create_store(config: dict):
    backend = config['storage_backend']
    if backend == 'firebase':
        ensure_firebase_app(config.get('database_url'))
        return RealtimeDatabaseStore(config['storage_root_path'])
    if backend == 'file':
        return FileStore(config['storage_dir'])
    return MemoryStore()


class AppContext:
    """
    Every service the HTTP functions and views need, wired together once.
    Passed explicitly instead of being looked up through module globals.
    """

    def __init__(self, config: dict, store, rng=None):
        self.config = config
        self.store = store
        self.rng = rng
        self.template_env = template_env

        enforce = config.get('enforce_references', False)
        user_id = config.get('user_id', DEFAULT_USER_ID)

        self.auth = DemoAuthService(user_id)
        self.notifications = NotificationService(store)
        self.settings = SettingsService(store, self.auth)
        self.properties = PropertyStore(store, notifications=self.notifications, rng=rng,
                                        settings=self.settings)
        self.tenants = TenantStore(store, self.properties, notifications=self.notifications, rng=rng,
                                   enforce_references=enforce)
        self.payments = PaymentStore(store, user_id, tenants=self.tenants, properties=self.properties,
                                     notifications=self.notifications, rng=rng, enforce_references=enforce)
        self.maintenance = MaintenanceStore(store, user_id, properties=self.properties,
                                            notifications=self.notifications, rng=rng,
                                            enforce_references=enforce)
        self.dashboard = DashboardService(self.properties, self.tenants, self.payments, self.maintenance,
                                          self.notifications, rng=rng)
        self.rate_limiter = RateLimiter(config.get('rate_limit_per_second', 10), 1.0)
        self.router = build_router(self)

    def entity_stores(self) -> dict:
        return {
            'properties': self.properties,
            'tenants': self.tenants,
            'payments': self.payments,
            'maintenance': self.maintenance,
        }


def build_app_context(environ=None, store=None, rng=None) -> AppContext:
    config = load_config(environ)
    if rng is None and config['demo_mode']:
        rng = random.Random()
    store = store if store is not None else create_store(config)
    log.info(f"Built app context with {type(store).__name__} (demo mode: {rng is not None}).")
    return AppContext(config, store, rng)


_app_context = None


def get_app_context() -> AppContext:
    """The process-wide context used by the deployed functions."""
    global _app_context
    if _app_context is None:
        _app_context = build_app_context()
    return _app_context


def set_app_context(context) -> None:
    global _app_context
    _app_context = context
