import re
from datetime import datetime, timezone

from constants import MAX_NOTIFICATIONS, ACTIVITY_TYPES
from utils.date_utils import parse_datetime

AMOUNT_RE = re.compile(r'\$([\d,]+(\.\d{2})?)')
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def build_notification(notification_type: str, title: str, message: str, timestamp: str, notification_id: str) -> dict:
    return {
        'id': notification_id,
        'type': notification_type,
        'title': title,
        'message': message,
        'timestamp': timestamp,
        'read': False,
    }


def prepend_notification(notifications: list, notification: dict, limit: int = MAX_NOTIFICATIONS) -> list:
    """Puts the newest notification first and keeps only the latest `limit` entries."""
    return [notification] + list(notifications)[:max(limit - 1, 0)]


def map_notification_type_to_activity(notification_type: str) -> str:
    return ACTIVITY_TYPES.get(notification_type, 'default')


def extract_amount_from_message(message: str) -> float | None:
    """Extracts the first dollar amount mentioned in a message, e.g. '$1,200.50'."""
    match = AMOUNT_RE.search(message or '')
    return float(match.group(1).replace(',', '')) if match else None


def build_recent_activity(properties: list, notifications: list, limit: int = 5) -> list:
    """
    Merges the three most recently added properties with the two newest
    notifications, newest first.
    """
    recent_properties = sorted(
        properties,
        key=lambda p: parse_datetime(p.get('addedDate')) or _EPOCH,
        reverse=True,
    )[:3]

    activities = [
        {
            'type': 'property',
            'description': f"Added \"{prop.get('name')}\" property",
            'timestamp': prop.get('addedDate'),
            'amount': prop.get('monthlyIncome') or 0,
        }
        for prop in recent_properties
    ]
    activities.extend(
        {
            'type': map_notification_type_to_activity(notification.get('type')),
            'description': notification.get('title'),
            'timestamp': notification.get('timestamp'),
            'amount': extract_amount_from_message(notification.get('message')),
        }
        for notification in notifications[:2]
    )

    activities.sort(key=lambda a: parse_datetime(a['timestamp']) or _EPOCH, reverse=True)
    return activities[:limit]
