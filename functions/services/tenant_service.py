import logging

from constants import TENANTS_KEY, TENANT_CSV_COLUMNS
from logic.statistics import calculate_tenant_stats, calculate_tenant_distribution, is_lease_expiring
from logic.validation import validate_tenant
from services.entity_store import EntityStore
from utils.csv_utils import to_number
from utils.date_utils import now_utc, parse_datetime
from utils.payment_utils import find_record_by_id

log = logging.getLogger(__name__)

UNKNOWN_PROPERTY = 'Unknown Property'
FALLBACK_PROPERTY_ID = 1


class TenantStore(EntityStore):
    entity_name = 'Tenant'
    collection_name = 'tenants'
    invalid_message = 'Invalid tenant data'
    csv_columns = TENANT_CSV_COLUMNS
    search_fields = ['firstName', 'lastName', 'email', 'phone', 'propertyName', 'unit']

    def __init__(self, store, properties, notifications=None, rng=None,
                 enforce_references: bool = False, key: str = TENANTS_KEY):
        super().__init__(store, key, notifications=notifications, rng=rng,
                         enforce_references=enforce_references)
        self.properties = properties
        self.references = {'propertyId': properties}

    def validate(self, record: dict) -> list:
        return validate_tenant(record).errors

    def describe(self, record: dict) -> str:
        return f"{record.get('firstName', '')} {record.get('lastName', '')}".strip()

    def _property_name(self, property_id) -> str:
        prop = find_record_by_id(self.properties.get_all(), property_id)
        return prop['name'] if prop else UNKNOWN_PROPERTY

    def prepare_new(self, data: dict) -> dict:
        record = dict(data)
        record['propertyName'] = self._property_name(data.get('propertyId'))
        record['status'] = data.get('status') or 'active'
        record['paymentStatus'] = data.get('paymentStatus') or 'pending'
        return record

    def prepare_update(self, existing: dict, merged: dict, updates: dict) -> dict:
        if updates.get('propertyId'):
            prop = find_record_by_id(self.properties.get_all(), updates['propertyId'])
            if prop:
                merged['propertyName'] = prop['name']
        return merged

    def calculate_stats(self, records: list) -> dict:
        return calculate_tenant_stats(records, rng=self.rng)

    def get_by_property(self, property_id) -> list:
        return self.find_by('propertyId', property_id)

    def get_overdue(self) -> list:
        return [t for t in self.get_all() if t.get('paymentStatus') == 'overdue']

    def get_expiring_leases(self, days: int = 30) -> list:
        today = now_utc()
        return [t for t in self.get_all() if is_lease_expiring(t, today, days)]

    def _resolve_csv_property(self, row: dict, line_number: int):
        """
        Picks the property id for an imported row: a known Property ID first,
        then a property with the same name, then the raw Property ID column.
        Rows with neither fall back to FALLBACK_PROPERTY_ID and are kept.
        """
        properties = self.properties.get_all()
        raw_id = row.get('propertyId')
        property_id = to_number(raw_id, raw_id) if raw_id else None
        if property_id is not None and find_record_by_id(properties, property_id):
            return property_id

        property_name = row.get('propertyName') or row.get('property') or UNKNOWN_PROPERTY
        prop = next(
            (p for p in properties if (p.get('name') or '').lower() == property_name.lower()),
            None,
        )
        if prop is not None:
            return prop['id']

        if property_id is not None:
            return property_id
        log.warning(f"CSV line {line_number}: property '{property_name}' not found, "
                    f"using property {FALLBACK_PROPERTY_ID}.")
        return FALLBACK_PROPERTY_ID

    def from_csv_row(self, row: dict, line_number: int) -> dict:
        """Maps an imported row, resolving the property by id or by name."""
        full_name = (row.get('name') or '').split(' ')
        first_name = row.get('firstName') or full_name[0] or f"Tenant{line_number - 1}"
        last_name = row.get('lastName') or (full_name[1] if len(full_name) > 1 else f"Smith{line_number - 1}")

        data = {
            'firstName': first_name,
            'lastName': last_name,
            'email': row.get('email') or f"{first_name}.{last_name}@example.com".lower(),
            'phone': row.get('phone') or '',
            'propertyId': self._resolve_csv_property(row, line_number),
            'unit': row.get('unit') or '',
            'monthlyRent': to_number(row.get('monthlyRent') or row.get('rent')),
            'status': row.get('status') or 'active',
            'paymentStatus': row.get('paymentStatus') or 'pending',
            'notes': row.get('notes') or '',
            'emergencyContact': row.get('emergencyContact') or '',
        }
        for field in ('leaseStart', 'leaseEnd'):
            parsed = parse_datetime(row.get(field))
            if parsed is not None:
                data[field] = parsed.isoformat()
        return data

    def get_analytics(self) -> dict:
        tenants = self.get_all()
        stats = self.calculate_stats(tenants)
        total_units = self.properties.total_units()
        return {
            'totalTenants': len(tenants),
            'totalMonthlyRent': sum(t.get('monthlyRent') or 0 for t in tenants),
            'averageTenancy': stats['avgTenancy'],
            'averageSatisfaction': stats['satisfaction'],
            'occupancyRate': round(len(tenants) / total_units * 100) if total_units else 0,
        }

    def get_chart_data(self) -> dict:
        tenants = self.get_all()
        distribution = calculate_tenant_distribution(tenants)
        return {
            'distribution': {
                'labels': [item['property'] for item in distribution],
                'data': [item['count'] for item in distribution],
            },
            'statusDistribution': {
                'labels': ['Active', 'Pending', 'Inactive'],
                'data': [sum(1 for t in tenants if t.get('status') == status)
                         for status in ('active', 'pending', 'inactive')],
            },
        }
