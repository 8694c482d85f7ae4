import time
from datetime import datetime, date, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return now_utc().isoformat()


def now_millis() -> int:
    return int(time.time() * 1000)


def parse_datetime(value) -> datetime | None:
    """
    Parses an ISO date or timestamp into an aware UTC datetime.
    Returns None for empty or unparseable values.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat only accepts a 'Z' suffix from Python 3.11.
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_same_month(value, reference: datetime) -> bool:
    parsed = parse_datetime(value)
    return parsed is not None and parsed.year == reference.year and parsed.month == reference.month


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 86400


def add_months(reference: date, months: int) -> date:
    """Shifts a date by whole months, clamping the day to the target month's length."""
    month_index = reference.month - 1 + months
    year = reference.year + month_index // 12
    month = month_index % 12 + 1
    for day in (reference.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)
