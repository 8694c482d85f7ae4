import random
import logging

from utils.date_utils import now_millis

log = logging.getLogger(__name__)


def _generate_number(prefix: str, rng=None) -> str:
    rng = rng or random
    timestamp = str(now_millis())[-6:]
    suffix = str(rng.randint(0, 999)).zfill(3)
    return f"{prefix}-{timestamp}-{suffix}"


def generate_payment_reference(rng=None) -> str:
    """Generates a payment reference such as PAY-123456-042."""
    return _generate_number('PAY', rng)


def generate_request_number(rng=None) -> str:
    """Generates a maintenance request number such as MT-123456-007."""
    return _generate_number('MT', rng)


def find_record_by_id(records: list, record_id) -> dict | None:
    """
    Resolves a soft foreign key by linear scan. Ids are compared as strings so
    that ids coming from query strings or CSV files still match.
    """
    if record_id is None or record_id == '':
        return None
    for record in records:
        if str(record.get('id')) == str(record_id):
            return record
    log.warning(f"Could not find record with id {record_id}.")
    return None
