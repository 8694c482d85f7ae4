import logging

from constants import (
    MAINTENANCE_KEY_PREFIX, MAINTENANCE_CSV_COLUMNS, MAINTENANCE_URGENT_PRIORITIES, DEFAULT_USER_ID,
)
from logic.statistics import (
    calculate_maintenance_stats, calculate_monthly_costs, calculate_category_distribution,
)
from logic.validation import validate_maintenance_request
from services.entity_store import EntityStore
from utils.csv_utils import to_number
from utils.date_utils import now_iso, parse_datetime
from utils.payment_utils import generate_request_number, find_record_by_id

log = logging.getLogger(__name__)

_EPOCH = parse_datetime('1970-01-01T00:00:00+00:00')


class MaintenanceStore(EntityStore):
    entity_name = 'Maintenance request'
    collection_name = 'requests'
    invalid_message = 'Invalid maintenance request data'
    csv_columns = MAINTENANCE_CSV_COLUMNS
    search_fields = ['title', 'description', 'category', 'propertyName', 'assignedTo', 'requestNumber']

    def __init__(self, store, user_id=DEFAULT_USER_ID, properties=None, notifications=None,
                 rng=None, enforce_references: bool = False):
        super().__init__(store, f"{MAINTENANCE_KEY_PREFIX}_{user_id}", notifications=notifications,
                         rng=rng, enforce_references=enforce_references)
        self.user_id = user_id
        self.properties = properties
        if properties is not None:
            self.references['propertyId'] = properties

    def validate(self, record: dict) -> list:
        return [] if validate_maintenance_request(record) else [self.invalid_message]

    def describe(self, record: dict) -> str:
        return record.get('title') or str(record.get('id'))

    def prepare_new(self, data: dict) -> dict:
        record = dict(data)
        record.update({
            'status': data.get('status') or 'open',
            'priority': data.get('priority') or 'medium',
            'estimatedCost': data.get('estimatedCost') or 0,
            'actualCost': data.get('actualCost') or 0,
            'assignedTo': data.get('assignedTo'),
            'completedAt': data.get('completedAt'),
            'requestNumber': data.get('requestNumber') or generate_request_number(self.rng),
            'userId': self.user_id,
        })
        if record['status'] == 'completed' and not record['completedAt']:
            record['completedAt'] = now_iso()

        if self.properties is not None and not record.get('propertyName'):
            prop = find_record_by_id(self.properties.get_all(), record.get('propertyId'))
            if prop:
                record['propertyName'] = prop.get('name')
        return record

    def prepare_update(self, existing: dict, merged: dict, updates: dict) -> dict:
        # completedAt is stamped only on the transition into completed.
        if merged.get('status') == 'completed' and existing.get('status') != 'completed':
            merged['completedAt'] = updates.get('completedAt') or now_iso()
        return merged

    def calculate_stats(self, records: list) -> dict:
        return calculate_maintenance_stats(records)

    def from_csv_row(self, row: dict, line_number: int) -> dict:
        data = {k: v for k, v in row.items() if v != '' and k not in ('id', 'createdAt')}
        data['propertyId'] = to_number(row.get('propertyId'), row.get('propertyId') or None)
        data['estimatedCost'] = to_number(row.get('estimatedCost'), 0)
        data['actualCost'] = to_number(row.get('actualCost'), 0)
        return data

    # --- lifecycle -------------------------------------------------------

    def update_status(self, request_id, status: str) -> dict:
        return self.update(request_id, {'status': status})

    def assign_request(self, request_id, assignee: str) -> dict:
        return self.update(request_id, {'assignedTo': assignee, 'status': 'in_progress'})

    def complete_request(self, request_id, actual_cost=None, notes: str = '') -> dict:
        updates = {'status': 'completed', 'completionNotes': notes}
        if actual_cost is not None:
            updates['actualCost'] = actual_cost
        return self.update(request_id, updates)

    def reopen_request(self, request_id) -> dict:
        """Moves a request back to open from any status and clears its completion time."""
        return self.update(request_id, {'status': 'open', 'completedAt': None})

    # --- queries ---------------------------------------------------------

    def get_by_status(self, status: str) -> list:
        return [r for r in self.get_all() if r.get('status') == status]

    def get_by_property(self, property_id) -> list:
        return self.find_by('propertyId', property_id)

    def get_by_priority(self, priority: str) -> list:
        return [r for r in self.get_all() if r.get('priority') == priority]

    def get_urgent(self) -> list:
        return [
            r for r in self.get_all()
            if r.get('priority') in MAINTENANCE_URGENT_PRIORITIES and r.get('status') not in ('completed', 'cancelled')
        ]

    def get_recent(self, limit: int = 10) -> list:
        requests = sorted(
            self.get_all(), key=lambda r: parse_datetime(r.get('createdAt')) or _EPOCH, reverse=True
        )
        return requests[:limit]

    def calculate_monthly_costs(self, months: int = 6) -> dict:
        return calculate_monthly_costs(self.get_all(), months)

    def get_category_distribution(self) -> dict:
        return calculate_category_distribution(self.get_all())

    def get_chart_data(self) -> dict:
        return {
            'monthlyCosts': self.calculate_monthly_costs(),
            'categories': self.get_category_distribution(),
        }
