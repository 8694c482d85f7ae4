import logging

from constants import PAYMENTS_KEY_PREFIX, PAYMENT_CSV_COLUMNS, DEFAULT_USER_ID
from logic.statistics import calculate_payment_stats
from logic.validation import validate_payment
from services.entity_store import EntityStore
from utils.csv_utils import to_float, to_number
from utils.date_utils import now_iso, parse_datetime
from utils.payment_utils import generate_payment_reference, find_record_by_id

log = logging.getLogger(__name__)

_EPOCH = parse_datetime('1970-01-01T00:00:00+00:00')


class PaymentStore(EntityStore):
    entity_name = 'Payment'
    collection_name = 'payments'
    invalid_message = 'Invalid payment data'
    csv_columns = PAYMENT_CSV_COLUMNS
    search_fields = ['tenantName', 'propertyName', 'reference', 'method']

    def __init__(self, store, user_id=DEFAULT_USER_ID, tenants=None, properties=None,
                 notifications=None, rng=None, enforce_references: bool = False):
        super().__init__(store, f"{PAYMENTS_KEY_PREFIX}_{user_id}", notifications=notifications,
                         rng=rng, enforce_references=enforce_references)
        self.user_id = user_id
        self.tenants = tenants
        self.properties = properties
        if tenants is not None:
            self.references['tenantId'] = tenants
        if properties is not None:
            self.references['propertyId'] = properties

    def validate(self, record: dict) -> list:
        return [] if validate_payment(record) else [self.invalid_message]

    def describe(self, record: dict) -> str:
        return record.get('reference') or str(record.get('id'))

    def _resolve_names(self, record: dict) -> None:
        if self.tenants is not None and not record.get('tenantName'):
            tenant = find_record_by_id(self.tenants.get_all(), record.get('tenantId'))
            if tenant:
                record['tenantName'] = f"{tenant.get('firstName', '')} {tenant.get('lastName', '')}".strip()
        if self.properties is not None and not record.get('propertyName'):
            prop = find_record_by_id(self.properties.get_all(), record.get('propertyId'))
            if prop:
                record['propertyName'] = prop.get('name')

    def prepare_new(self, data: dict) -> dict:
        record = dict(data)
        record['status'] = data.get('status') or 'pending'
        record['reference'] = data.get('reference') or generate_payment_reference(self.rng)
        record['userId'] = self.user_id
        if record['status'] == 'completed' and not record.get('completedAt'):
            record['completedAt'] = now_iso()
        self._resolve_names(record)
        return record

    def prepare_update(self, existing: dict, merged: dict, updates: dict) -> dict:
        if updates.get('status') == 'completed' and existing.get('status') != 'completed':
            merged['completedAt'] = now_iso()
        return merged

    def calculate_stats(self, records: list) -> dict:
        return calculate_payment_stats(records)

    def from_csv_row(self, row: dict, line_number: int) -> dict:
        data = {k: v for k, v in row.items() if v != '' and k != 'id'}
        data['amount'] = to_float(row.get('amount'))
        for field in ('tenantId', 'propertyId'):
            if row.get(field):
                data[field] = to_number(row[field], row[field])
        return data

    def get_by_tenant(self, tenant_id) -> list:
        return self.find_by('tenantId', tenant_id)

    def get_by_property(self, property_id) -> list:
        return self.find_by('propertyId', property_id)

    def get_outstanding(self) -> list:
        return [p for p in self.get_all() if p.get('status') == 'pending']

    def get_recent(self, limit: int = 10) -> list:
        payments = sorted(self.get_all(), key=lambda p: parse_datetime(p.get('date')) or _EPOCH, reverse=True)
        return payments[:limit]

    def mark_completed(self, payment_id, method: str = None) -> dict:
        updates = {'status': 'completed'}
        if method:
            updates['method'] = method
        return self.update(payment_id, updates)
