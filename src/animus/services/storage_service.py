"""
Local key-value storage.

String-keyed get/set/remove over a small SQLAlchemy table. Values are whole
blobs: JSON documents are read and written in full, never patched.
"""

import json
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from animus.core.database import SessionLocal, get_db_context
from animus.core.exceptions import StorageError
from animus.models.key_value_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStorage:
    """
    On-device key-value store.

    Every database failure is raised as StorageError so callers handle one
    error type regardless of the backing engine.
    """

    def __init__(self, session_factory: Optional[sessionmaker[Session]] = None) -> None:
        super().__init__()
        self.session_factory = session_factory or SessionLocal

    def get_item(self, key: str) -> Optional[str]:
        try:
            with get_db_context(self.session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}' from local storage") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            with get_db_context(self.session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                if entry:
                    entry.value = value
                else:
                    db.add(KeyValueEntry(key=key, value=value))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write '{key}' to local storage") from e

    def remove_item(self, key: str) -> None:
        try:
            with get_db_context(self.session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                if entry:
                    db.delete(entry)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove '{key}' from local storage") from e

    def get_json(self, key: str, default: Any = None) -> Any:
        """
        Read and decode a JSON blob.

        Returns ``default`` when the key is missing or holds invalid JSON.
        """
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring invalid JSON stored under '{key}'")
            return default

    def set_json(self, key: str, value: Any) -> None:
        """Encode ``value`` as JSON and store it under ``key``."""
        self.set_item(key, json.dumps(value, ensure_ascii=False))

    def keys(self) -> list[str]:
        try:
            with get_db_context(self.session_factory) as db:
                return [entry.key for entry in db.query(KeyValueEntry).order_by(KeyValueEntry.key).all()]
        except SQLAlchemyError as e:
            raise StorageError("Failed to list local storage keys") from e
