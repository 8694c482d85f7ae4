import logging

from constants import DEFAULT_USER_ID

log = logging.getLogger(__name__)

DEMO_EMAIL = 'demo@rentdesk.app'
DEMO_NAME = 'Demo User'


class DemoAuthService:
    """
    Offline authentication: every request is treated as the demo landlord.
    The user id only scopes the per-user storage keys.
    """

    def __init__(self, user_id: str = DEFAULT_USER_ID):
        self.user_id = user_id
        self.current_user = None
        self.user_profile = None

    def _default_user(self) -> dict:
        return {
            'id': self.user_id,
            'email': DEMO_EMAIL,
            'fullName': DEMO_NAME,
            'userType': 'landlord',
        }

    def is_authenticated(self) -> bool:
        return True

    def get_current_user(self) -> dict:
        return self.current_user or self._default_user()

    def get_user_profile(self) -> dict:
        if self.user_profile:
            return self.user_profile
        user = self.get_current_user()
        return {
            'fullName': user['fullName'],
            'email': user['email'],
            'phone': '+1234567890',
            'company': 'Demo Property Management',
        }

    def login(self, email: str = None, password: str = None) -> dict:
        full_name = email.split('@')[0] if email else DEMO_NAME
        self.current_user = {
            'id': self.user_id,
            'email': email or DEMO_EMAIL,
            'fullName': full_name,
            'userType': 'landlord',
        }
        self.user_profile = None
        log.info(f"Demo login for {self.current_user['email']}.")
        return {'success': True, 'user': self.current_user}

    def logout(self) -> dict:
        # Stays authenticated; only the cached user is dropped.
        self.current_user = None
        self.user_profile = None
        return {'success': True}

    def get_user_initials(self) -> str:
        name = self.get_current_user().get('fullName') or ''
        initials = ''.join(part[0] for part in name.split() if part)
        return initials[:2].upper() or 'U'
