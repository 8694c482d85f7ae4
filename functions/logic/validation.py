import re
from typing import NamedTuple

from constants import (
    PROPERTY_TYPES, MIN_PROPERTY_UNITS, MAX_PROPERTY_UNITS,
    TENANT_STATUSES, TENANT_PAYMENT_STATUSES,
    PAYMENT_STATUSES, PAYMENT_REQUIRED_FIELDS,
    MAINTENANCE_PRIORITIES, MAINTENANCE_STATUSES, MAINTENANCE_REQUIRED_FIELDS,
    THEMES, CURRENCIES, DATE_FORMATS, SETTINGS_BOOLEAN_FIELDS,
    VERIFICATION_CODE_PATTERN,
)
from utils.date_utils import parse_datetime

TENANT_EMAIL_RE = re.compile(
    r'^(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))@'
    r'((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$'
)
SIMPLE_EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^[\d\-\+\(\)]{10,}$')
CARD_EXPIRY_RE = re.compile(r'^\d{2}/\d{2}$')


class ValidationResult(NamedTuple):
    is_valid: bool
    errors: list


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_email(email, strict: bool = True) -> bool:
    if not isinstance(email, str):
        return False
    pattern = TENANT_EMAIL_RE if strict else SIMPLE_EMAIL_RE
    return bool(pattern.match(email.lower() if strict else email))


def is_valid_phone(phone) -> bool:
    if not isinstance(phone, str):
        return False
    return bool(PHONE_RE.match(re.sub(r'\s', '', phone)))


def validate_property(data: dict) -> ValidationResult:
    """
    Checks a property record before it is written.
    Occupancy is not range-checked.
    """
    errors = []
    data = data or {}

    if _is_blank(data.get('name')):
        errors.append('Property name is required')

    if data.get('lat') in (None, '') or data.get('lng') in (None, ''):
        errors.append('Property location is required')

    units = data.get('units')
    if units is not None and (not _is_number(units) or units < MIN_PROPERTY_UNITS or units > MAX_PROPERTY_UNITS):
        errors.append(f'Number of units must be between {MIN_PROPERTY_UNITS} and {MAX_PROPERTY_UNITS}')

    monthly_rent = data.get('monthlyRent')
    if monthly_rent is not None and (not _is_number(monthly_rent) or monthly_rent < 0):
        errors.append('Monthly rent cannot be negative')

    if data.get('type') and data['type'] not in PROPERTY_TYPES:
        errors.append(f"Property type must be one of: {', '.join(PROPERTY_TYPES)}")

    return ValidationResult(len(errors) == 0, errors)


def validate_tenant(data: dict) -> ValidationResult:
    errors = []
    data = data or {}

    if _is_blank(data.get('firstName')):
        errors.append('First name is required')

    if _is_blank(data.get('lastName')):
        errors.append('Last name is required')

    email = data.get('email')
    if _is_blank(email):
        errors.append('Email is required')
    elif not is_valid_email(email):
        errors.append('Valid email is required')

    if _is_blank(data.get('propertyId')):
        errors.append('Property selection is required')

    monthly_rent = data.get('monthlyRent')
    if not _is_number(monthly_rent) or monthly_rent <= 0:
        errors.append('Monthly rent must be greater than 0')

    if data.get('leaseStart') and data.get('leaseEnd'):
        start = parse_datetime(data['leaseStart'])
        end = parse_datetime(data['leaseEnd'])
        if start is None or end is None:
            errors.append('Lease dates must be valid dates')
        elif end <= start:
            errors.append('Lease end date must be after start date')

    if data.get('status') and data['status'] not in TENANT_STATUSES:
        errors.append(f"Status must be one of: {', '.join(TENANT_STATUSES)}")

    if data.get('paymentStatus') and data['paymentStatus'] not in TENANT_PAYMENT_STATUSES:
        errors.append(f"Payment status must be one of: {', '.join(TENANT_PAYMENT_STATUSES)}")

    return ValidationResult(len(errors) == 0, errors)


def validate_payment(data: dict) -> bool:
    if not data:
        return False

    for field in PAYMENT_REQUIRED_FIELDS:
        if not data.get(field):
            return False

    amount = data.get('amount')
    if not _is_number(amount) or amount <= 0:
        return False

    if parse_datetime(data.get('date')) is None:
        return False

    if data.get('status') and data['status'] not in PAYMENT_STATUSES:
        return False

    return True


def validate_maintenance_request(data: dict) -> bool:
    if not data:
        return False

    for field in MAINTENANCE_REQUIRED_FIELDS:
        if not data.get(field):
            return False

    title = data.get('title')
    if not isinstance(title, str) or len(title.strip()) < 3:
        return False

    if data.get('description') and not isinstance(data['description'], str):
        return False

    if data.get('priority') and data['priority'] not in MAINTENANCE_PRIORITIES:
        return False

    if data.get('status') and data['status'] not in MAINTENANCE_STATUSES:
        return False

    for cost_field in ('estimatedCost', 'actualCost'):
        cost = data.get(cost_field)
        if cost is not None and (not _is_number(cost) or cost < 0):
            return False

    return True


def validate_settings(settings: dict) -> bool:
    if not isinstance(settings, dict):
        return False

    if settings.get('theme') and settings['theme'] not in THEMES:
        return False

    if settings.get('email') and not is_valid_email(settings['email'], strict=False):
        return False

    if settings.get('phone') and not is_valid_phone(settings['phone']):
        return False

    for field in SETTINGS_BOOLEAN_FIELDS:
        if field in settings and not isinstance(settings[field], bool):
            return False

    if settings.get('defaultCurrency') and settings['defaultCurrency'] not in CURRENCIES:
        return False

    if settings.get('dateFormat') and settings['dateFormat'] not in DATE_FORMATS:
        return False

    return True


def validate_profile_data(profile: dict) -> bool:
    if not isinstance(profile, dict):
        return False

    if profile.get('email') and not is_valid_email(profile['email'], strict=False):
        return False

    if profile.get('phone') and not is_valid_phone(profile['phone']):
        return False

    for field in ('firstName', 'lastName'):
        if profile.get(field) and not isinstance(profile[field], str):
            return False

    return True


def validate_payment_method(payment_method: dict) -> bool:
    if not isinstance(payment_method, dict):
        return False

    if payment_method.get('type') == 'card':
        last4 = payment_method.get('last4')
        if not isinstance(last4, str) or len(last4) != 4:
            return False
        expiry = payment_method.get('expiry')
        if not isinstance(expiry, str) or not CARD_EXPIRY_RE.match(expiry):
            return False

    return True


def validate_verification_request(data: dict) -> tuple:
    """
    Checks a verification-email request.
    Returns (is_valid, message) in the same shape as the other form validators.
    """
    if not data or not data.get('email') or not data.get('code'):
        return False, 'Email and verification code are required'

    if not is_valid_email(data['email'], strict=False):
        return False, 'Invalid email format'

    if not re.match(VERIFICATION_CODE_PATTERN, str(data['code'])):
        return False, 'Invalid verification code format'

    return True, 'Verification request is valid'
