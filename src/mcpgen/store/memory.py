"""Process-local record store, the default backend."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic

from mcpgen.errors import RecordNotFoundError, StoreError
from mcpgen.store.base import RecordT
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryRecordStore(Generic[RecordT]):
    """Dict-backed store keeping records in insertion order."""

    def __init__(self, model: type[RecordT], parent_field: str = "project_id") -> None:
        """Initialize an empty store.

        Args:
            model: Pydantic model class of the stored records.
            parent_field: Attribute holding the parent id used for scoping.
        """
        self._model = model
        self._parent_field = parent_field
        self._records: dict[str, RecordT] = {}

    async def create(self, record: RecordT) -> RecordT:
        record_id = record.id  # type: ignore[attr-defined]
        if record_id in self._records:
            raise StoreError(f"{self._model.__name__} {record_id} already exists")
        self._records[record_id] = record
        logger.debug("record_created", model=self._model.__name__, id=record_id)
        return record

    async def get(self, record_id: str) -> RecordT | None:
        return self._records.get(record_id)

    async def list_by_parent(self, parent_id: str) -> list[RecordT]:
        return [r for r in self._records.values() if getattr(r, self._parent_field) == parent_id]

    async def update(self, record_id: str, changes: dict[str, Any]) -> RecordT:
        """Apply field changes and bump ``updated_at`` when the model has one.

        Raises:
            RecordNotFoundError: When no record has ``record_id``.
        """
        current = self._records.get(record_id)
        if current is None:
            raise RecordNotFoundError(f"{self._model.__name__} {record_id} not found")
        values = {**current.model_dump(), **changes, "id": record_id}
        if "updated_at" in self._model.model_fields:
            values["updated_at"] = datetime.now(UTC)
        updated = self._model.model_validate(values)
        self._records[record_id] = updated
        return updated

    async def delete(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    async def delete_by_parent(self, parent_id: str) -> int:
        doomed = [key for key, r in self._records.items() if getattr(r, self._parent_field) == parent_id]
        for key in doomed:
            del self._records[key]
        return len(doomed)
