# functions/services/entity_store.py

import json
import logging

from services.db_service import read_json, write_json
from utils.csv_utils import records_to_csv, csv_to_rows
from utils.date_utils import now_iso, now_millis
from utils.errors import ValidationError, NotFoundError

log = logging.getLogger(__name__)


def same_id(left, right) -> bool:
    """Ids arrive as ints from storage and as strings from query strings and CSV files."""
    return left is not None and right is not None and str(left) == str(right)


class EntityStore:
    """
    Array of flat records mirrored to one storage key.

    Every mutator validates, reads the full array, changes it and writes the
    full array back. Subclasses supply defaults, validation and aggregation.
    """

    entity_name = 'Record'
    collection_name = 'records'
    invalid_message = 'Invalid record data'
    csv_columns = []
    search_fields = []

    def __init__(self, store, key: str, notifications=None, rng=None, enforce_references: bool = False):
        self.store = store
        self.key = key
        self.notifications = notifications
        self.rng = rng
        self.enforce_references = enforce_references
        # field name -> EntityStore that the field points into
        self.references = {}

    # --- hooks -----------------------------------------------------------

    def validate(self, record: dict) -> list:
        """Returns a list of error messages; empty when the record is valid."""
        return []

    def prepare_new(self, data: dict) -> dict:
        return dict(data)

    def prepare_update(self, existing: dict, merged: dict, updates: dict) -> dict:
        return merged

    def describe(self, record: dict) -> str:
        return str(record.get('id'))

    def calculate_stats(self, records: list) -> dict:
        raise NotImplementedError

    def from_csv_row(self, row: dict, line_number: int) -> dict:
        return row

    # --- reads -----------------------------------------------------------

    def get_all(self) -> list:
        records = read_json(self.store, self.key, [])
        if not isinstance(records, list):
            log.warning(f"Expected a list under '{self.key}', found {type(records).__name__}. Ignoring it.")
            return []
        return records

    def get_by_id(self, record_id) -> dict | None:
        for record in self.get_all():
            if same_id(record.get('id'), record_id):
                return record
        return None

    def find_by(self, field: str, value) -> list:
        return [r for r in self.get_all() if same_id(r.get(field), value)]

    def search(self, query: str, records: list = None) -> list:
        records = self.get_all() if records is None else records
        if not query or not query.strip():
            return records

        term = query.strip().lower()
        return [
            record for record in records
            if any(term in str(record.get(field) or '').lower() for field in self.search_fields)
        ]

    def get_stats(self, records: list = None) -> dict:
        return self.calculate_stats(self.get_all() if records is None else records)

    # --- writes ----------------------------------------------------------

    def _save(self, records: list) -> None:
        write_json(self.store, self.key, records)

    def _next_id(self, records: list) -> int:
        # Millisecond ids, bumped when two records land in the same millisecond.
        existing = [r.get('id') for r in records if isinstance(r.get('id'), int)]
        return max([now_millis()] + [i + 1 for i in existing])

    def _check(self, record: dict) -> None:
        errors = self.validate(record)
        if errors:
            raise ValidationError(errors[0])

        if self.enforce_references:
            for field, other_store in self.references.items():
                value = record.get(field)
                if value not in (None, '') and other_store.get_by_id(value) is None:
                    raise ValidationError(f"{other_store.entity_name} {value} does not exist")

    def _build_new(self, data: dict, records: list) -> dict:
        timestamp = now_iso()
        record = self.prepare_new({k: v for k, v in (data or {}).items() if k != 'id'})
        record['id'] = self._next_id(records)
        record['createdAt'] = timestamp
        record['updatedAt'] = timestamp
        self._check(record)
        return record

    def _notify(self, notification_type: str, title: str, message: str) -> None:
        if self.notifications is not None:
            self.notifications.add(notification_type, title, message)

    def add(self, data: dict) -> dict:
        if not isinstance(data, dict):
            raise ValidationError(self.invalid_message)

        records = self.get_all()
        record = self._build_new(data, records)
        records.append(record)
        self._save(records)

        log.info(f"Added {self.entity_name.lower()} {record['id']}.")
        self._notify('success', f"{self.entity_name} Added", f"Added \"{self.describe(record)}\"")
        return record

    def update(self, record_id, updates: dict) -> dict:
        records = self.get_all()
        index = next((i for i, r in enumerate(records) if same_id(r.get('id'), record_id)), None)
        if index is None:
            raise NotFoundError(f"{self.entity_name} not found")

        updates = {k: v for k, v in (updates or {}).items() if k != 'id'}
        existing = records[index]
        merged = {**existing, **updates, 'updatedAt': now_iso()}
        merged = self.prepare_update(existing, merged, updates)
        self._check(merged)

        records[index] = merged
        self._save(records)

        log.info(f"Updated {self.entity_name.lower()} {merged['id']}.")
        self._notify('info', f"{self.entity_name} Updated", f"Updated \"{self.describe(merged)}\"")
        return merged

    def delete(self, record_id) -> bool:
        records = self.get_all()
        remaining = [r for r in records if not same_id(r.get('id'), record_id)]
        if len(remaining) == len(records):
            raise NotFoundError(f"{self.entity_name} not found")

        removed = next(r for r in records if same_id(r.get('id'), record_id))
        self._save(remaining)

        log.info(f"Deleted {self.entity_name.lower()} {record_id}.")
        self._notify('warning', f"{self.entity_name} Deleted", f"Deleted \"{self.describe(removed)}\"")
        return True

    # --- import / export -------------------------------------------------

    def export_csv(self, records: list = None) -> str:
        return records_to_csv(self.get_all() if records is None else records, self.csv_columns)

    def import_csv(self, content: str) -> list:
        rows = csv_to_rows(content or '', self.csv_columns)
        if not rows:
            raise ValidationError('CSV file is empty or has no data')

        records = self.get_all()
        imported = []
        for line_number, row in enumerate(rows, start=2):
            try:
                record = self._build_new(self.from_csv_row(row, line_number), records)
            except ValidationError as e:
                log.warning(f"Skipping CSV line {line_number} for {self.collection_name}: {e}")
                continue
            records.append(record)
            imported.append(record)

        if not imported:
            log.warning(f"No valid rows in {len(rows)} CSV lines for {self.collection_name}; nothing saved.")
            self._notify(
                'warning',
                f"{self.collection_name.capitalize()} Import Failed",
                f"No {self.collection_name} were imported",
            )
            return imported

        self._save(records)
        log.info(f"Imported {len(imported)} of {len(rows)} {self.collection_name} from CSV.")
        self._notify(
            'success',
            f"{self.collection_name.capitalize()} Imported",
            f"Successfully imported {len(imported)} {self.collection_name}",
        )
        return imported

    def export_json(self) -> str:
        records = self.get_all()
        return json.dumps({
            self.collection_name: records,
            'stats': self.calculate_stats(records),
            'exportDate': now_iso(),
            'totalCount': len(records),
        }, indent=2)
