"""
Record persistence for the ledger stores.

Every collection is saved as a JSON array of backup records under its
storage key, so the persisted shape and the backup shape never drift apart.
"""

from typing import Any, Optional, Sequence, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger.errors import PersistenceError
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.backup import amounts_as_numbers, loads_exact
from expense_tracker.services.storage import KeyValueStorage, StorageError


RecordT = TypeVar("RecordT", bound=BaseModel)

_RAW_ROWS = TypeAdapter(list[dict[str, Any]])


class RecordPersister:
    """Loads and saves lists of records through a KeyValueStorage."""

    def __init__(self, storage: KeyValueStorage, audit: AuditLogger):
        self._storage = storage
        self._audit = audit

    def load_rows(
        self,
        key: str,
        record_type: type[RecordT],
    ) -> Optional[list[RecordT]]:
        """
        Load the records stored under a key.

        Returns None when nothing usable is stored (key absent, or payload
        not a JSON array). Rows that fail validation are dropped one by one.

        Raises:
            PersistenceError: If the storage backend could not be read
        """
        try:
            payload = self._storage.load(key)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.persistence_failed(key, str(e)))
            raise PersistenceError(key, f"Could not load '{key}': {e}") from e

        if payload is None:
            return None

        try:
            raw_rows = _RAW_ROWS.validate_python(loads_exact(payload))
        except ValueError as e:
            self._audit.log(
                AuditEventBuilder.stored_row_dropped(key, "*", f"corrupt_payload: {type(e).__name__}")
            )
            return None

        records = []
        for raw in raw_rows:
            try:
                records.append(record_type.model_validate(raw))
            except ValidationError:
                self._audit.log(
                    AuditEventBuilder.stored_row_dropped(key, str(raw.get("id", "?")), "invalid_row")
                )
        return records

    def save_rows(
        self,
        key: str,
        records: Sequence[RecordT],
        record_type: type[RecordT],
    ) -> None:
        """
        Replace the records stored under a key.

        Raises:
            PersistenceError: If the write failed
        """
        payload = amounts_as_numbers(
            TypeAdapter(list[record_type]).dump_json(list(records), by_alias=True)
        )
        try:
            self._storage.save(key, payload)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.persistence_failed(key, str(e)))
            raise PersistenceError(key, f"Could not save '{key}': {e}") from e

    def drop(self, key: str, record_id: str, reason: str) -> None:
        """Record that a stored row was left out while loading."""
        self._audit.log(AuditEventBuilder.stored_row_dropped(key, record_id, reason))
