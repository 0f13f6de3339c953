"""Keyed record-store protocol shared by every persistence backend.

Records are pydantic models with an ``id`` and a parent key (``project_id``
for definitions and configurations, ``configuration_id`` for deployments).
Only the application wiring in ``mcpgen.projects`` talks to a store; the
import pipeline, editor and generators never do.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from mcpgen.models import ApiDefinition, Deployment, ServerConfigRecord

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordStore(Protocol[RecordT]):
    """CRUD over one record type, scoped by a parent id."""

    async def create(self, record: RecordT) -> RecordT: ...

    async def get(self, record_id: str) -> RecordT | None: ...

    async def list_by_parent(self, parent_id: str) -> list[RecordT]: ...

    async def update(self, record_id: str, changes: dict[str, Any]) -> RecordT: ...

    async def delete(self, record_id: str) -> bool: ...

    async def delete_by_parent(self, parent_id: str) -> int: ...


ApiDefinitionStore = RecordStore[ApiDefinition]
ServerConfigStore = RecordStore[ServerConfigRecord]
DeploymentStore = RecordStore[Deployment]
