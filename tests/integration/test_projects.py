"""Integration tests for the store-backed project workflow."""

from __future__ import annotations

import json

import pytest

from mcpgen.config import MCPGenConfig
from mcpgen.errors import ConfigurationError, DefinitionValidationError, RecordNotFoundError
from mcpgen.models import AuthConfig, HostingConfig, ServerConfig
from mcpgen.projects import ProjectService, config_record


@pytest.fixture(params=["memory", "sqlite"])
async def service(request, mcpgen_config: MCPGenConfig) -> ProjectService:
    mcpgen_config.store_backend = request.param
    return await ProjectService.from_config(mcpgen_config)


async def test_unknown_backend(mcpgen_config: MCPGenConfig) -> None:
    mcpgen_config.store_backend = "postgres"
    with pytest.raises(ConfigurationError):
        await ProjectService.from_config(mcpgen_config)


async def test_import_definition(service: ProjectService, openapi3_text: str) -> None:
    definition = await service.import_definition("proj-1", "Widgets", openapi3_text, "widgets.yaml")

    assert definition.format == "OpenAPI3"
    assert len(definition.content_hash) == 64
    assert [ep.id for ep in definition.endpoint_definition] == [
        "get--widgets",
        "post--widgets",
        "get--widgets--widgetId-",
        "delete--widgets--widgetId-",
    ]


async def test_invalid_definition_is_not_stored(service: ProjectService) -> None:
    with pytest.raises(DefinitionValidationError) as exc_info:
        await service.import_definition("proj-1", "Broken", '{"openapi": "3.0.0"}', "broken.json")

    assert "Missing info object" in exc_info.value.errors
    assert await service.delete_project("proj-1") == {"deployments": 0, "configurations": 0, "definitions": 0}


async def test_refresh_keeps_mappings(service: ProjectService, openapi3_text: str) -> None:
    definition = await service.import_definition("proj-1", "Widgets", openapi3_text, "widgets.yaml")
    endpoints = [
        ep.model_copy(update={"selected": ep.method != "DELETE"}) for ep in definition.endpoint_definition
    ]
    await service.save_endpoint_mappings(definition.id, endpoints)

    unchanged = await service.refresh_definition(definition.id, openapi3_text, "widgets.yaml")
    assert unchanged.content_hash == definition.content_hash

    refreshed = await service.refresh_definition(
        definition.id, openapi3_text.replace("version: 1.2.0", "version: 1.3.0"), "widgets.yaml"
    )
    assert refreshed.content_hash != definition.content_hash
    assert [ep.selected for ep in refreshed.endpoint_definition] == [True, True, True, False]


async def test_refresh_missing_definition(service: ProjectService, openapi3_text: str) -> None:
    with pytest.raises(RecordNotFoundError):
        await service.refresh_definition("missing", openapi3_text)


def test_config_record_drops_credential() -> None:
    config = ServerConfig(
        name="Widgets",
        authentication=AuthConfig(type="ApiKey", location="header", name="X-Key", value="s3cret"),
        hosting=HostingConfig(provider="AWS", type="Serverless", region="eu-west-1"),
    )
    record = config_record("proj-1", config)
    assert record.authentication_details == {"location": "header", "name": "X-Key"}
    assert "s3cret" not in record.model_dump_json()
    assert record.hosting_region == "eu-west-1"


async def test_configure_generate_and_deploy(service: ProjectService, openapi3_text: str) -> None:
    definition = await service.import_definition("proj-1", "Widgets", openapi3_text, "widgets.yaml")
    config = ServerConfig(
        name="Widgets",
        language="Go",
        authentication=AuthConfig(type="Bearer"),
        hosting=HostingConfig(provider="AWS", type="Container", region="eu-west-1"),
    )
    record = await service.save_server_config("proj-1", config)

    loaded = await service.load_server_config(record.id, definition.id)
    assert loaded.language == "Go"
    assert loaded.authentication.type == "Bearer"
    assert len(loaded.endpoints) == 4

    generated = service.generate(loaded)
    assert generated.success

    statuses: list[str] = []
    deployment = await service.deploy(
        "proj-1", record.id, loaded, on_status=lambda status, _progress, _message: statuses.append(status)
    )
    assert statuses == ["preparing", "deploying", "configuring", "success"]
    assert deployment.status == "success"
    assert deployment.server_url == "https://api-eu-west-1.amazonaws.com/mcp-server"
    assert "ecs-task-definition.json" in json.loads(deployment.logs)["files"]

    history = await service.list_deployments(record.id)
    assert [d.id for d in history] == [deployment.id]
    assert history[0].status == "success"


async def test_deploy_records_generation_failure(service: ProjectService) -> None:
    config = ServerConfig(name="Proxy", language="Go", mode="proxy", target_base_url="https://x.example")
    record = await service.save_server_config("proj-1", config)

    deployment = await service.deploy("proj-1", record.id, config)

    assert deployment.status == "failed"
    assert json.loads(deployment.logs)["stage"] == "generate"


async def test_delete_project_cascades(service: ProjectService, openapi3_text: str) -> None:
    await service.import_definition("proj-1", "Widgets", openapi3_text, "widgets.yaml")
    await service.import_definition("proj-2", "Other", openapi3_text, "widgets.yaml")
    record = await service.save_server_config("proj-1", ServerConfig(name="Widgets"))
    await service.deploy("proj-1", record.id, ServerConfig(name="Widgets"))
    await service.deploy("proj-1", record.id, ServerConfig(name="Widgets"))

    counts = await service.delete_project("proj-1")

    assert counts == {"deployments": 2, "configurations": 1, "definitions": 1}
    assert await service.list_deployments(record.id) == []
    assert await service.delete_project("proj-2") == {"deployments": 0, "configurations": 0, "definitions": 1}
