import math
from collections import Counter
from datetime import datetime, date, timezone

from constants import (
    PROPERTY_TYPE_LABELS, GEOGRAPHIC_REGIONS, LEASE_EXPIRY_WINDOW_DAYS,
    MAINTENANCE_URGENT_PRIORITIES,
)
from utils.date_utils import now_utc, parse_datetime, is_same_month, days_between, add_months


# Every aggregator recomputes from the full record list. Passing `rng`
# (a random.Random) switches the placeholder demo figures on; without it
# every value is derived from the records.


def _reference_time(today) -> datetime:
    if today is None:
        return now_utc()
    if isinstance(today, datetime):
        return today if today.tzinfo else today.replace(tzinfo=timezone.utc)
    if isinstance(today, date):
        return datetime(today.year, today.month, today.day, tzinfo=timezone.utc)
    return now_utc()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percentage(part, whole) -> int:
    return _round_half_up(part / whole * 100) if whole else 0


def _number(value, default=0):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _distribution(counts: dict, total: int, label_key: str) -> list:
    return [
        {label_key: label, 'count': count, 'percentage': _percentage(count, total)}
        for label, count in counts.items()
    ]


def format_property_type(property_type: str) -> str:
    return PROPERTY_TYPE_LABELS.get(property_type, property_type)


def detect_region(lat, lng) -> str:
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return 'Other'
    for region, (lat_min, lat_max, lng_min, lng_max) in GEOGRAPHIC_REGIONS:
        if lat_min <= lat <= lat_max and lng_min <= lng <= lng_max:
            return region
    return 'Other'


def calculate_type_distribution(properties: list) -> list:
    counts = Counter(format_property_type(p.get('type') or 'apartment') for p in properties)
    return _distribution(dict(counts), len(properties), 'type')


def calculate_geographic_distribution(properties: list) -> list:
    counts = Counter(detect_region(p.get('lat'), p.get('lng')) for p in properties)
    return _distribution(dict(counts), len(properties), 'region')


def _occupancy_for(prop: dict, rng=None):
    occupancy = _number(prop.get('occupancy'), None)
    if occupancy:
        return occupancy
    if rng is not None:
        return rng.randint(70, 99)
    return occupancy or 0


def _monthly_income_for(prop: dict, rng=None):
    income = _number(prop.get('monthlyIncome'))
    if income:
        return income
    units = _number(prop.get('units')) or 1
    rent = _number(prop.get('monthlyRent'))
    if not rent and rng is not None:
        rent = 1000
    return units * rent


def _income_growth(properties: list, now: datetime, total_income) -> int:
    """Growth of monthly income contributed by properties added this month."""
    previous_income = sum(
        _monthly_income_for(p) for p in properties
        if not is_same_month(p.get('addedDate') or p.get('createdAt'), now)
    )
    if not previous_income:
        return 0
    return _round_half_up((total_income - previous_income) / previous_income * 100)


def calculate_property_stats(properties: list, today=None, rng=None) -> dict:
    now = _reference_time(today)

    total_properties = len(properties)
    total_units = sum(_number(p.get('units')) or 1 for p in properties)
    occupied_units = sum(
        math.floor((_number(p.get('units')) or 1) * _occupancy_for(p, rng) / 100)
        for p in properties
    )
    monthly_income = sum(_monthly_income_for(p, rng) for p in properties)
    added_this_month = sum(
        1 for p in properties if is_same_month(p.get('addedDate') or p.get('createdAt'), now)
    )

    if rng is not None:
        income_growth = rng.randint(5, 14)
    else:
        income_growth = _income_growth(properties, now, monthly_income)

    return {
        'totalProperties': total_properties,
        'totalUnits': total_units,
        'occupiedUnits': occupied_units,
        'vacantUnits': total_units - occupied_units,
        'monthlyIncome': monthly_income,
        'propertiesAddedThisMonth': added_this_month,
        'incomeGrowth': income_growth,
        'occupancyRate': _percentage(occupied_units, total_units),
        'propertyTypes': calculate_type_distribution(properties),
        'geographicDistribution': calculate_geographic_distribution(properties),
    }


def _days_until(value, now: datetime):
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return math.ceil(days_between(now, parsed))


def calculate_lease_expirations(tenants: list, today=None) -> dict:
    now = _reference_time(today)
    expirations = {'thisMonth': 0, 'nextMonth': 0, 'next3Months': 0}

    for tenant in tenants:
        days = _days_until(tenant.get('leaseEnd'), now)
        if days is None:
            continue
        if 0 < days <= 30:
            expirations['thisMonth'] += 1
        elif 30 < days <= 60:
            expirations['nextMonth'] += 1
        elif 60 < days <= 90:
            expirations['next3Months'] += 1

    return expirations


def calculate_tenant_distribution(tenants: list) -> list:
    counts = Counter(t.get('propertyName') or 'Unknown Property' for t in tenants)
    return _distribution(dict(counts), len(tenants), 'property')


def is_lease_expiring(tenant: dict, today=None, window_days: int = LEASE_EXPIRY_WINDOW_DAYS) -> bool:
    days = _days_until(tenant.get('leaseEnd'), _reference_time(today))
    return days is not None and 0 < days <= window_days


def calculate_tenant_stats(tenants: list, today=None, rng=None) -> dict:
    now = _reference_time(today)
    total_tenants = len(tenants)

    tenancy_years = []
    for tenant in tenants:
        start = parse_datetime(tenant.get('leaseStart') or tenant.get('createdAt'))
        if start is not None:
            tenancy_years.append(days_between(start, now) / 365)
    avg_tenancy = sum(tenancy_years) / len(tenancy_years) if tenancy_years else 0

    if rng is not None:
        scores = [3.5 + rng.random() * 1.5 for _ in tenants]
        review_count = total_tenants * 3
    else:
        scores = [t['satisfaction'] for t in tenants if _number(t.get('satisfaction'), None) is not None]
        review_count = len(scores)
    satisfaction = sum(scores) / len(scores) if scores else 0

    return {
        'totalTenants': total_tenants,
        'activeLeases': sum(1 for t in tenants if t.get('status') in ('active', 'pending')),
        'expiringSoon': sum(1 for t in tenants if is_lease_expiring(t, now)),
        'avgTenancy': round(avg_tenancy, 1),
        'satisfaction': round(satisfaction, 1),
        'newThisMonth': sum(1 for t in tenants if is_same_month(t.get('createdAt'), now)),
        'tenantDistribution': calculate_tenant_distribution(tenants),
        'leaseExpirations': calculate_lease_expirations(tenants, now),
        'reviewCount': review_count,
        'overduePayments': sum(1 for t in tenants if t.get('paymentStatus') == 'overdue'),
    }


def is_payment_overdue(payment: dict, today=None) -> bool:
    if payment.get('status') != 'pending':
        return False
    due = parse_datetime(payment.get('dueDate') or payment.get('date'))
    return due is not None and due < _reference_time(today)


def calculate_payment_stats(payments: list, today=None) -> dict:
    if not payments:
        return {
            'monthlyCollections': 0,
            'outstanding': 0,
            'collectionRate': 0,
            'avgProcessing': 0,
            'overdueTenants': 0,
            'totalCount': 0,
            'paidCount': 0,
            'overdueCount': 0,
        }

    now = _reference_time(today)
    completed = [p for p in payments if p.get('status') == 'completed']

    monthly_collections = sum(
        _number(p.get('amount')) for p in completed if is_same_month(p.get('date'), now)
    )
    outstanding = sum(_number(p.get('amount')) for p in payments if p.get('status') == 'pending')

    avg_processing = 0
    if completed:
        total_days = 0
        for payment in completed:
            created = parse_datetime(payment.get('createdAt') or payment.get('date'))
            finished = parse_datetime(payment.get('completedAt') or payment.get('date'))
            if created and finished:
                total_days += max(0, days_between(created, finished))
        avg_processing = _round_half_up(total_days / len(completed))

    overdue = sum(1 for p in payments if is_payment_overdue(p, now))

    return {
        'monthlyCollections': monthly_collections,
        'outstanding': outstanding,
        'collectionRate': _percentage(len(completed), len(payments)),
        'avgProcessing': avg_processing,
        'overdueTenants': overdue,
        'totalCount': len(payments),
        'paidCount': len(completed),
        'overdueCount': overdue,
    }


def calculate_maintenance_stats(requests: list, today=None) -> dict:
    if not requests:
        return {
            'openRequests': 0,
            'highPriority': 0,
            'inProgress': 0,
            'avgDays': 0,
            'completed': 0,
            'avgCost': 0,
            'totalRequests': 0,
            'totalCost': 0,
            'categories': {},
        }

    now = _reference_time(today)
    completed_requests = [r for r in requests if r.get('status') == 'completed']

    avg_days = 0
    if completed_requests:
        total_days = 0
        for request in completed_requests:
            created = parse_datetime(request.get('createdAt'))
            finished = parse_datetime(request.get('completedAt') or request.get('updatedAt'))
            if created and finished:
                total_days += max(0, days_between(created, finished))
        avg_days = _round_half_up(total_days / len(completed_requests))

    costs = [_number(r.get('actualCost')) for r in requests if _number(r.get('actualCost')) > 0]
    avg_cost = _round_half_up(sum(costs) / len(costs)) if costs else 0

    return {
        'openRequests': sum(1 for r in requests if r.get('status') == 'open'),
        'highPriority': sum(1 for r in requests if r.get('priority') in MAINTENANCE_URGENT_PRIORITIES),
        'inProgress': sum(1 for r in requests if r.get('status') == 'in_progress'),
        'avgDays': avg_days,
        'completed': sum(
            1 for r in completed_requests
            if is_same_month(r.get('completedAt') or r.get('updatedAt'), now)
        ),
        'avgCost': avg_cost,
        'totalRequests': len(requests),
        'totalCost': sum(_number(r.get('actualCost')) for r in requests),
        'categories': dict(Counter(r.get('category') or 'other' for r in requests)),
    }


def calculate_monthly_costs(requests: list, months: int = 6, today=None) -> dict:
    """Buckets actual costs of completed requests into the last `months` calendar months."""
    now = _reference_time(today)
    buckets = {}
    for offset in range(months - 1, -1, -1):
        month_start = add_months(now.date().replace(day=1), -offset)
        buckets[(month_start.year, month_start.month)] = {'label': month_start.strftime('%b'), 'total': 0}

    for request in requests:
        cost = _number(request.get('actualCost'))
        completed_at = parse_datetime(request.get('completedAt'))
        if cost > 0 and completed_at:
            bucket = buckets.get((completed_at.year, completed_at.month))
            if bucket is not None:
                bucket['total'] += cost

    return {
        'labels': [bucket['label'] for bucket in buckets.values()],
        'data': [bucket['total'] for bucket in buckets.values()],
    }


def calculate_category_distribution(requests: list, limit: int = 5) -> dict:
    top = Counter(r.get('category') or 'other' for r in requests).most_common(limit)
    return {
        'labels': [category for category, _ in top],
        'data': [count for _, count in top],
    }


def calculate_dashboard_stats(properties: list, tenants: list, payments: list, requests: list,
                              today=None, rng=None) -> dict:
    property_stats = calculate_property_stats(properties, today, rng)
    total_properties = property_stats['totalProperties']

    if rng is not None and total_properties:
        outstanding_balance = property_stats['monthlyIncome'] * 0.1
        overdue_tenants = max(1, math.floor(total_properties * 0.2))
        pending_payments = max(1, math.floor(total_properties * 0.2))
        maintenance_requests = max(1, math.floor(total_properties * 0.4))
    else:
        pending = [p for p in payments if p.get('status') == 'pending']
        outstanding_balance = sum(_number(p.get('amount')) for p in pending)
        overdue_tenants = sum(1 for t in tenants if t.get('paymentStatus') == 'overdue')
        pending_payments = len(pending)
        maintenance_requests = sum(1 for r in requests if r.get('status') in ('open', 'in_progress'))

    stats = {key: value for key, value in property_stats.items()
             if key not in ('propertyTypes', 'geographicDistribution')}
    stats.update({
        'outstandingBalance': outstanding_balance,
        'overdueTenants': overdue_tenants,
        'pendingPayments': pending_payments,
        'maintenanceRequests': maintenance_requests,
        'vacancyRate': 100 - property_stats['occupancyRate'] if property_stats['totalUnits'] else 0,
        'totalTenants': len(tenants),
    })
    return stats
