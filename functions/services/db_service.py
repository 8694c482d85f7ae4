# functions/services/db_service.py

import os
import json
import logging

import firebase_admin.db as db

from constants import STORAGE_ROOT_PATH

log = logging.getLogger(__name__)


class KeyValueStore:
    """
    String key-value storage with the browser localStorage contract.
    Values are JSON text; callers go through read_json/write_json.
    """

    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process storage, used for tests and the local demo."""

    def __init__(self, initial: dict = None):
        self._items = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list:
        return list(self._items.keys())


class FileStore(KeyValueStore):
    """Offline storage: one <key>.json file per key inside a directory."""

    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set_item(self, key: str, value: str) -> None:
        with open(self._path(key), 'w', encoding='utf-8') as f:
            f.write(value)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


class RealtimeDatabaseStore(KeyValueStore):
    """
    Stores each key as a text node under `root_path` in the Firebase Realtime Database.
    Last write wins; concurrent writers are not merged.
    """

    def __init__(self, root_path: str = STORAGE_ROOT_PATH):
        self.root_path = root_path.rstrip('/')

    def _reference(self, key: str):
        return db.reference(f"{self.root_path}/{key}")

    def get_item(self, key: str) -> str | None:
        value = self._reference(key).get()
        if value is None:
            return None
        # Nodes written by other clients may hold native JSON instead of text.
        return value if isinstance(value, str) else json.dumps(value)

    def set_item(self, key: str, value: str) -> None:
        self._reference(key).set(value)

    def remove_item(self, key: str) -> None:
        self._reference(key).delete()


def read_json(store: KeyValueStore, key: str, default=None):
    """
    Reads and parses the JSON value stored under `key`.
    A missing key or corrupt JSON yields `default`; corruption is logged, not raised.
    """
    raw = store.get_item(key)
    if raw is None:
        return default
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        log.warning(f"Discarding unreadable data stored under '{key}': {e}")
        return default
    return default if value is None else value


def write_json(store: KeyValueStore, key: str, value) -> None:
    """Serializes the whole value and writes it under `key`."""
    store.set_item(key, json.dumps(value))
