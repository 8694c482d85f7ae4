import json
import logging

from logic.notification_logic import build_recent_activity
from logic.statistics import calculate_dashboard_stats
from utils.date_utils import now_iso

log = logging.getLogger(__name__)


class DashboardService:
    """Read-only overview combining every entity store."""

    def __init__(self, properties, tenants, payments, maintenance, notifications, rng=None):
        self.properties = properties
        self.tenants = tenants
        self.payments = payments
        self.maintenance = maintenance
        self.notifications = notifications
        self.rng = rng

    def get_stats(self) -> dict:
        return calculate_dashboard_stats(
            self.properties.get_all(),
            self.tenants.get_all(),
            self.payments.get_all(),
            self.maintenance.get_all(),
            rng=self.rng,
        )

    def get_recent_activity(self, limit: int = 5) -> list:
        return build_recent_activity(self.properties.get_all(), self.notifications.get_all(), limit)

    def get_overview(self) -> dict:
        return {
            'stats': self.get_stats(),
            'recentActivity': self.get_recent_activity(),
            'unreadNotifications': self.notifications.unread_count(),
        }

    def export_dashboard_data(self) -> str:
        return json.dumps({
            'stats': self.get_stats(),
            'properties': self.properties.get_all(),
            'recentActivity': self.get_recent_activity(),
            'exportDate': now_iso(),
        }, indent=2)
