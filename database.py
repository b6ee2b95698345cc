"""
Key-value backends for the shop store.

Each backend keeps opaque string blobs under string keys, the same contract
as browser local storage: get, set and remove. The Store above serializes a
whole collection into one blob per key.

Backends:
- MemoryBackend: process-local dict (tests, throwaway runs)
- FileBackend: one JSON object on local disk mapping key -> blob
- MongoBackend: one document per key in a MongoDB collection
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from pymongo import MongoClient

import config

logger = logging.getLogger(__name__)

_path_locks: Dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _path_lock(path: Path) -> threading.Lock:
    with _path_locks_guard:
        return _path_locks.setdefault(path.resolve(), threading.Lock())


class MemoryBackend:
    name = "memory"

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class FileBackend:
    """
    Keeps every key in a single JSON file. The file is re-read on every
    access so that whatever is on disk is what callers see; writes replace
    the file through a uniquely named temp file + rename.

    Backends sharing a path share one lock, so a read-modify-write of one
    key never drops a key written concurrently by another thread.
    """
    name = "file"

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = _path_lock(self.path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Store file %s unreadable, treating as empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold an object, treating as empty", self.path)
            return {}
        return data

    def _dump(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=self.path.parent,
                                         prefix=self.path.name + ".", suffix=".tmp",
                                         delete=False) as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(f.name, self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._dump(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._dump(data)

    def keys(self):
        with self._lock:
            return list(self._load())


class MongoBackend:
    """Stores each key as {"_id": key, "value": blob}."""
    name = "mongo"

    def __init__(self, db, collection: str = "kv"):
        self.db = db
        self.collection = db[collection]

    def get(self, key: str) -> Optional[str]:
        doc = self.collection.find_one({"_id": key})
        if not doc:
            return None
        value = doc.get("value")
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self.collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)

    def remove(self, key: str) -> None:
        self.collection.delete_one({"_id": key})

    def keys(self):
        return [d["_id"] for d in self.collection.find({}, {"_id": 1})]


def connect_mongo(url: Optional[str] = None, name: Optional[str] = None):
    url = url or config.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    client = MongoClient(url)
    return client[name or config.DATABASE_NAME]


def create_backend(kind: Optional[str] = None):
    """Build the backend named by STORE_BACKEND (or `kind`)."""
    kind = (kind or config.STORE_BACKEND).lower()
    if kind == "memory":
        return MemoryBackend()
    if kind == "file":
        return FileBackend(config.STORE_PATH)
    if kind == "mongo":
        return MongoBackend(connect_mongo())
    raise ValueError(f"Unknown store backend: {kind}")
