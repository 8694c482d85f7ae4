from datetime import date

from constants import DEFAULT_PLAN, PLAN_NAMES, PLAN_PRICES, PLAN_MAX_UNITS, PLAN_FEATURES
from utils.date_utils import add_months


def get_plan_name(plan_id: str) -> str:
    return PLAN_NAMES.get(plan_id, PLAN_NAMES[DEFAULT_PLAN])


def get_plan_price(plan_id: str) -> str:
    return PLAN_PRICES.get(plan_id, PLAN_PRICES[DEFAULT_PLAN])


def get_plan_max_units(plan_id: str) -> int:
    return PLAN_MAX_UNITS.get(plan_id, PLAN_MAX_UNITS[DEFAULT_PLAN])


def get_plan_features(plan_id: str) -> list:
    return list(PLAN_FEATURES.get(plan_id, PLAN_FEATURES[DEFAULT_PLAN]))


def calculate_next_billing_date(today: date = None) -> str:
    return add_months(today or date.today(), 1).isoformat()


def describe_plan(plan_id: str, today: date = None) -> dict:
    plan_id = plan_id if plan_id in PLAN_NAMES else DEFAULT_PLAN
    return {
        'id': plan_id,
        'name': get_plan_name(plan_id),
        'price': get_plan_price(plan_id),
        'maxUnits': get_plan_max_units(plan_id),
        'features': get_plan_features(plan_id),
        'status': 'active',
        'nextBillingDate': calculate_next_billing_date(today),
    }


def calculate_plan_usage(total_units: int, plan_id: str) -> dict:
    max_units = get_plan_max_units(plan_id)
    return {
        'current': total_units,
        'max': max_units,
        'remaining': max(0, max_units - total_units),
        'percentage': min(100, total_units / max_units * 100) if max_units > 0 else 0,
    }


def can_add_units(total_units: int, units_to_add: int, plan_id: str) -> bool:
    return total_units + units_to_add <= get_plan_max_units(plan_id)
