"""Unit tests for the in-memory and SQLite record stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from mcpgen.errors import RecordNotFoundError, StoreError
from mcpgen.models import ApiDefinition, ApiFormat, Deployment, Endpoint
from mcpgen.store import InMemoryRecordStore, SqliteRecordStore


@pytest.fixture(params=["memory", "sqlite"])
async def definition_store(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryRecordStore(ApiDefinition)
    store = SqliteRecordStore(str(tmp_path / "store.db"), "api_definitions", ApiDefinition)
    await store.initialize()
    return store


@pytest.fixture(params=["memory", "sqlite"])
async def deployment_store(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryRecordStore(Deployment, parent_field="configuration_id")
    store = SqliteRecordStore(str(tmp_path / "store.db"), "deployments", Deployment, parent_field="configuration_id")
    await store.initialize()
    return store


def _definition(project_id: str = "proj-1", name: str = "Widgets") -> ApiDefinition:
    return ApiDefinition(
        project_id=project_id,
        name=name,
        format=ApiFormat.OPENAPI3,
        content="openapi: 3.0.0",
        endpoint_definition=[Endpoint(id="get--widgets", path="/widgets", method="GET", mcp_type="resource")],
    )


async def test_create_and_get(definition_store) -> None:
    record = await definition_store.create(_definition())

    loaded = await definition_store.get(record.id)
    assert loaded == record
    assert loaded.endpoint_definition[0].mcp_type == "resource"
    assert await definition_store.get("missing") is None


async def test_duplicate_id_rejected(definition_store) -> None:
    record = await definition_store.create(_definition())
    with pytest.raises(StoreError, match="already exists"):
        await definition_store.create(record)


async def test_list_by_parent_keeps_insertion_order(definition_store) -> None:
    first = await definition_store.create(_definition(name="first"))
    await definition_store.create(_definition(project_id="proj-2"))
    second = await definition_store.create(_definition(name="second"))

    listed = await definition_store.list_by_parent("proj-1")
    assert [r.id for r in listed] == [first.id, second.id]
    assert await definition_store.list_by_parent("nobody") == []


async def test_update_merges_changes(definition_store) -> None:
    record = await definition_store.create(_definition())

    updated = await definition_store.update(
        record.id,
        {"name": "Renamed", "endpoint_definition": [Endpoint(path="/a", method="POST", mcp_type="tool")]},
    )

    assert updated.id == record.id
    assert updated.name == "Renamed"
    assert updated.content == record.content
    assert updated.endpoint_definition[0].method == "POST"
    assert updated.updated_at >= record.updated_at
    assert await definition_store.get(record.id) == updated


async def test_update_missing_record(definition_store) -> None:
    with pytest.raises(RecordNotFoundError):
        await definition_store.update("missing", {"name": "x"})


async def test_delete(definition_store) -> None:
    record = await definition_store.create(_definition())
    assert await definition_store.delete(record.id) is True
    assert await definition_store.delete(record.id) is False
    assert await definition_store.get(record.id) is None


async def test_delete_by_parent_is_scoped(deployment_store) -> None:
    for configuration_id in ("cfg-1", "cfg-1", "cfg-2"):
        await deployment_store.create(Deployment(project_id="proj-1", configuration_id=configuration_id))

    assert await deployment_store.delete_by_parent("cfg-1") == 2
    assert await deployment_store.list_by_parent("cfg-1") == []
    assert len(await deployment_store.list_by_parent("cfg-2")) == 1


def test_sqlite_rejects_odd_table_names(tmp_path: Path) -> None:
    with pytest.raises(StoreError, match="Invalid table name"):
        SqliteRecordStore(str(tmp_path / "x.db"), "defs; DROP TABLE x", ApiDefinition)


async def test_sqlite_persists_across_instances(tmp_path: Path) -> None:
    db_path = str(tmp_path / "nested" / "store.db")
    first = SqliteRecordStore(db_path, "api_definitions", ApiDefinition)
    await first.initialize()
    record = await first.create(_definition())

    second = SqliteRecordStore(db_path, "api_definitions", ApiDefinition)
    await second.initialize()
    assert await second.get(record.id) == record
