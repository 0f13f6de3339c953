"""SQLite-backed record store; each record is kept as a JSON document."""

from __future__ import annotations

import re
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Generic

import aiosqlite

from mcpgen.errors import RecordNotFoundError, StoreError
from mcpgen.store.base import RecordT
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_TABLE_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    id TEXT PRIMARY KEY,
    parent_id TEXT NOT NULL,
    data TEXT NOT NULL,
    inserted_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_{table}_parent ON {table}(parent_id);
"""


class SqliteRecordStore(Generic[RecordT]):
    """Async SQLite store for one record type."""

    def __init__(self, db_path: str, table: str, model: type[RecordT], parent_field: str = "project_id") -> None:
        """Initialize the store.

        Args:
            db_path: Filesystem path for the SQLite database file.
            table: Table holding this record type (lowercase identifier).
            model: Pydantic model class of the stored records.
            parent_field: Attribute holding the parent id used for scoping.

        Raises:
            StoreError: If ``table`` is not a plain identifier.
        """
        if not _TABLE_NAME_RE.match(table):
            raise StoreError(f"Invalid table name: {table!r}")
        self._db_path = db_path
        self._table = table
        self._model = model
        self._parent_field = parent_field

    async def initialize(self) -> None:
        """Create the table if it doesn't exist.

        Raises:
            StoreError: If database initialization fails.
        """
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.executescript(_CREATE_TABLE_SQL.format(table=self._table))
                await db.commit()
            logger.info("store_initialized", path=self._db_path, table=self._table)
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to initialize {self._table} table: {exc}") from exc

    async def create(self, record: RecordT) -> RecordT:
        """Insert a new record.

        Raises:
            StoreError: If the id already exists or the write fails.
        """
        record_id = record.id  # type: ignore[attr-defined]
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute(
                    f"INSERT INTO {self._table} (id, parent_id, data, inserted_at) VALUES (?, ?, ?, ?)",
                    (record_id, getattr(record, self._parent_field), record.model_dump_json(), time.time()),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise StoreError(f"{self._model.__name__} {record_id} already exists") from exc
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to store {self._model.__name__}: {exc}") from exc

        logger.debug("record_created", table=self._table, id=record_id)
        return record

    async def get(self, record_id: str) -> RecordT | None:
        try:
            async with aiosqlite.connect(self._db_path) as db:
                async with db.execute(f"SELECT data FROM {self._table} WHERE id = ?", (record_id,)) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to read {self._model.__name__} {record_id}: {exc}") from exc
        return self._model.model_validate_json(row[0]) if row else None

    async def list_by_parent(self, parent_id: str) -> list[RecordT]:
        """Records under ``parent_id`` in insertion order."""
        try:
            async with aiosqlite.connect(self._db_path) as db:
                async with db.execute(
                    f"SELECT data FROM {self._table} WHERE parent_id = ? ORDER BY inserted_at, rowid",
                    (parent_id,),
                ) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to list {self._table}: {exc}") from exc
        return [self._model.model_validate_json(row[0]) for row in rows]

    async def update(self, record_id: str, changes: dict[str, Any]) -> RecordT:
        """Apply field changes and bump ``updated_at`` when the model has one.

        Raises:
            RecordNotFoundError: When no record has ``record_id``.
            StoreError: If the write fails.
        """
        current = await self.get(record_id)
        if current is None:
            raise RecordNotFoundError(f"{self._model.__name__} {record_id} not found")
        values = {**current.model_dump(), **changes, "id": record_id}
        if "updated_at" in self._model.model_fields:
            values["updated_at"] = datetime.now(UTC)
        updated = self._model.model_validate(values)

        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute(
                    f"UPDATE {self._table} SET parent_id = ?, data = ? WHERE id = ?",
                    (getattr(updated, self._parent_field), updated.model_dump_json(), record_id),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to update {self._model.__name__} {record_id}: {exc}") from exc
        return updated

    async def delete(self, record_id: str) -> bool:
        try:
            async with aiosqlite.connect(self._db_path) as db:
                cursor = await db.execute(f"DELETE FROM {self._table} WHERE id = ?", (record_id,))
                await db.commit()
                return cursor.rowcount > 0
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to delete {self._model.__name__} {record_id}: {exc}") from exc

    async def delete_by_parent(self, parent_id: str) -> int:
        """Remove every record under ``parent_id``.

        Returns:
            Number of records removed.
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                cursor = await db.execute(f"DELETE FROM {self._table} WHERE parent_id = ?", (parent_id,))
                await db.commit()
                count = cursor.rowcount
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to delete {self._table} records: {exc}") from exc

        if count:
            logger.info("records_deleted", table=self._table, parent_id=parent_id, count=count)
        return count
