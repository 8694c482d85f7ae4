import logging

from constants import (
    PROPERTIES_KEY, PROPERTY_CSV_COLUMNS, PROPERTY_TYPE_COLORS, DEFAULT_PROPERTY_COLOR,
)
from logic.plan_logic import can_add_units, get_plan_max_units
from logic.statistics import (
    calculate_property_stats, calculate_type_distribution,
    calculate_geographic_distribution, format_property_type,
)
from logic.validation import validate_property
from services.entity_store import EntityStore
from utils.csv_utils import to_float, to_int, to_number
from utils.date_utils import now_iso
from utils.errors import PlanLimitError

log = logging.getLogger(__name__)

CHART_COLORS = ['#FF8E53', '#4ECDC4', '#FFD93D', '#9B5DE5', '#00BBF9']


def get_property_color(property_type: str) -> str:
    return PROPERTY_TYPE_COLORS.get(property_type, DEFAULT_PROPERTY_COLOR)


class PropertyStore(EntityStore):
    entity_name = 'Property'
    collection_name = 'properties'
    invalid_message = 'Invalid property data'
    csv_columns = PROPERTY_CSV_COLUMNS
    search_fields = ['name', 'type', 'address', 'description']

    def __init__(self, store, notifications=None, rng=None, settings=None, key: str = PROPERTIES_KEY):
        super().__init__(store, key, notifications=notifications, rng=rng)
        # Optional SettingsService; when present, adds are checked against the plan's unit limit.
        self.settings = settings

    def validate(self, record: dict) -> list:
        return validate_property(record).errors

    def describe(self, record: dict) -> str:
        return record.get('name') or str(record.get('id'))

    def prepare_new(self, data: dict) -> dict:
        property_type = data.get('type') or 'apartment'
        units = data.get('units') or 1

        monthly_income = data.get('monthlyIncome')
        if monthly_income in (None, ''):
            rent = data.get('monthlyRent')
            numeric = all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (rent, units))
            monthly_income = rent * units if numeric else 0

        occupancy = data.get('occupancy')
        if occupancy in (None, ''):
            occupancy = self.rng.randint(70, 99) if self.rng is not None else 0

        record = dict(data)
        record.update({
            'name': data.get('name'),
            'lat': data.get('lat'),
            'lng': data.get('lng'),
            'type': property_type,
            'units': units,
            'monthlyIncome': monthly_income,
            'occupancy': occupancy,
            'status': data.get('status') or 'active',
            'address': data.get('address') or '',
            'description': data.get('description') or '',
            'addedDate': data.get('addedDate') or now_iso(),
            'color': get_property_color(property_type),
        })
        return record

    def prepare_update(self, existing: dict, merged: dict, updates: dict) -> dict:
        if 'type' in updates:
            merged['color'] = get_property_color(merged.get('type'))
        return merged

    def total_units(self, records: list = None) -> int:
        records = self.get_all() if records is None else records
        return sum(r.get('units') or 0 for r in records)

    def add(self, data: dict) -> dict:
        if self.settings is not None and isinstance(data, dict):
            plan_id = self.settings.get_user_plan()['id']
            units = data.get('units') or 1
            current_units = self.total_units()
            if isinstance(units, int) and not can_add_units(current_units, units, plan_id):
                log.warning(f"Plan {plan_id} limit reached: {current_units} units in use, {units} requested.")
                raise PlanLimitError(
                    f"Adding {units} unit(s) would exceed your plan limit of {get_plan_max_units(plan_id)} units"
                )
        return super().add(data)

    def calculate_stats(self, records: list) -> dict:
        return calculate_property_stats(records, rng=self.rng)

    def from_csv_row(self, row: dict, line_number: int) -> dict:
        data = dict(row)
        data['name'] = row.get('name') or f"Imported Property {line_number - 1}"
        data['lat'] = to_float(row.get('lat'), 0.0)
        data['lng'] = to_float(row.get('lng'), 0.0)
        data['type'] = row.get('type') or 'apartment'
        data['units'] = to_int(row.get('units'), 1)
        data['monthlyIncome'] = to_number(row.get('monthlyIncome'), 0)
        data['occupancy'] = to_number(row.get('occupancy'))
        for field in ('status', 'addedDate'):
            if not row.get(field):
                data.pop(field, None)
        return data

    def get_analytics(self) -> dict:
        properties = self.get_all()
        stats = self.calculate_stats(properties)
        analytics = {
            'totalProperties': len(properties),
            'totalUnits': stats['totalUnits'],
            'totalMonthlyIncome': stats['monthlyIncome'],
            'averageOccupancy': stats['occupancyRate'],
            'topPerformingProperty': None,
            'lowestOccupancyProperty': None,
        }

        if properties:
            analytics['topPerformingProperty'] = max(
                properties, key=lambda p: (p.get('monthlyIncome') or 0) / (p.get('units') or 1)
            )
            analytics['lowestOccupancyProperty'] = min(properties, key=lambda p: p.get('occupancy') or 0)

        return analytics

    def get_chart_data(self) -> dict:
        properties = self.get_all()
        type_distribution = calculate_type_distribution(properties)
        geo_distribution = calculate_geographic_distribution(properties)
        return {
            'typeDistribution': {
                'labels': [item['type'] for item in type_distribution],
                'data': [item['count'] for item in type_distribution],
                'colors': CHART_COLORS,
            },
            'geoDistribution': {
                'labels': [item['region'] for item in geo_distribution],
                'data': [item['count'] for item in geo_distribution],
                'colors': CHART_COLORS[:4],
            },
        }

    format_property_type = staticmethod(format_property_type)
