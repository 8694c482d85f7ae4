import logging

from constants import NOTIFICATIONS_KEY, MAX_NOTIFICATIONS
from logic.notification_logic import build_notification, prepend_notification
from services.db_service import read_json, write_json
from utils.date_utils import now_iso, now_millis

log = logging.getLogger(__name__)


class NotificationService:
    """The notifications side-array shown as toasts and recent activity."""

    def __init__(self, store, key: str = NOTIFICATIONS_KEY, limit: int = MAX_NOTIFICATIONS):
        self.store = store
        self.key = key
        self.limit = limit

    def get_all(self) -> list:
        notifications = read_json(self.store, self.key, [])
        return notifications if isinstance(notifications, list) else []

    @staticmethod
    def _next_id(existing: list) -> str:
        # Millisecond ids, bumped past the newest one so back-to-back adds stay unique.
        taken = [int(n['id']) + 1 for n in existing if str(n.get('id', '')).isdigit()]
        return str(max([now_millis()] + taken))

    def add(self, notification_type: str, title: str, message: str) -> dict:
        existing = self.get_all()
        notification = build_notification(
            notification_type, title, message,
            timestamp=now_iso(),
            notification_id=self._next_id(existing),
        )
        write_json(self.store, self.key, prepend_notification(existing, notification, self.limit))
        return notification

    def mark_read(self, notification_id: str) -> bool:
        notifications = self.get_all()
        for notification in notifications:
            if str(notification.get('id')) == str(notification_id):
                notification['read'] = True
                write_json(self.store, self.key, notifications)
                return True
        log.warning(f"Notification {notification_id} not found.")
        return False

    def mark_all_read(self) -> int:
        notifications = self.get_all()
        for notification in notifications:
            notification['read'] = True
        write_json(self.store, self.key, notifications)
        return len(notifications)

    def unread_count(self) -> int:
        return sum(1 for n in self.get_all() if not n.get('read'))

    def clear(self) -> None:
        write_json(self.store, self.key, [])
