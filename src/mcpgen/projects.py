"""Store-backed project workflow: import, map, configure, generate, deploy."""

from __future__ import annotations

import json
from typing import Any

from mcpgen.config import MCPGenConfig
from mcpgen.deploy.packager import DeploymentPackager, StatusCallback
from mcpgen.errors import ConfigurationError, DefinitionValidationError, RecordNotFoundError
from mcpgen.generators.factory import generate_server_code
from mcpgen.importer.pipeline import merge_endpoint_mappings, parse_api_definition
from mcpgen.models import (
    ApiDefinition,
    AuthConfig,
    Deployment,
    Endpoint,
    GenerationResult,
    HostingConfig,
    ServerConfig,
    ServerConfigRecord,
)
from mcpgen.store.base import ApiDefinitionStore, DeploymentStore, ServerConfigStore
from mcpgen.store.memory import InMemoryRecordStore
from mcpgen.store.sqlite import SqliteRecordStore
from mcpgen.utils.ids import hash_content
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)


def _content_text(content: Any) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    if isinstance(content, str):
        return content
    return json.dumps(content, indent=2)


def config_record(project_id: str, config: ServerConfig) -> ServerConfigRecord:
    """Flatten a server configuration into its stored snapshot.

    The credential value itself is never stored.
    """
    auth = config.authentication
    details = {key: value for key, value in (("location", auth.location), ("name", auth.name)) if value}
    return ServerConfigRecord(
        project_id=project_id,
        name=config.name,
        description=config.description,
        language=config.language,
        mode=config.mode,
        authentication_type=auth.type,
        authentication_details=details,
        hosting_provider=config.hosting.provider,
        hosting_type=config.hosting.type,
        hosting_region=config.hosting.region,
    )


def server_config_from_record(record: ServerConfigRecord, endpoints: list[Endpoint]) -> ServerConfig:
    """Rebuild a generator-ready configuration from a stored snapshot."""
    return ServerConfig(
        name=record.name,
        description=record.description,
        language=record.language,
        mode=record.mode,
        authentication=AuthConfig(type=record.authentication_type, **record.authentication_details),
        hosting=HostingConfig(
            provider=record.hosting_provider,
            type=record.hosting_type,
            region=record.hosting_region,
        ),
        endpoints=endpoints,
    )


class ProjectService:
    """Application wiring between the record stores and the core pipeline."""

    def __init__(
        self,
        definitions: ApiDefinitionStore,
        configurations: ServerConfigStore,
        deployments: DeploymentStore,
        packager: DeploymentPackager | None = None,
    ) -> None:
        self._definitions = definitions
        self._configurations = configurations
        self._deployments = deployments
        self._packager = packager or DeploymentPackager()

    @classmethod
    async def from_config(cls, config: MCPGenConfig) -> ProjectService:
        """Build a service on the backend named by ``config.store_backend``.

        Raises:
            ConfigurationError: If the backend name is unknown.
            StoreError: If the SQLite tables cannot be created.
        """
        packager = DeploymentPackager.from_config(config)
        if config.store_backend == "memory":
            return cls(
                InMemoryRecordStore(ApiDefinition),
                InMemoryRecordStore(ServerConfigRecord),
                InMemoryRecordStore(Deployment, parent_field="configuration_id"),
                packager,
            )
        if config.store_backend == "sqlite":
            definitions = SqliteRecordStore(config.store_db_path, "api_definitions", ApiDefinition)
            configurations = SqliteRecordStore(config.store_db_path, "server_configs", ServerConfigRecord)
            deployments = SqliteRecordStore(
                config.store_db_path, "deployments", Deployment, parent_field="configuration_id"
            )
            for store in (definitions, configurations, deployments):
                await store.initialize()
            return cls(definitions, configurations, deployments, packager)
        raise ConfigurationError(f"Unknown store backend: {config.store_backend}")

    # ------------------------------------------------------------------
    # API definitions
    # ------------------------------------------------------------------

    async def import_definition(
        self,
        project_id: str,
        name: str,
        content: Any,
        filename: str | None = None,
    ) -> ApiDefinition:
        """Validate, extract and store an uploaded definition.

        Args:
            project_id: Owning project.
            name: Display name of the definition.
            content: Raw text, bytes or a decoded document.
            filename: Original file name, used as a format hint.

        Returns:
            The stored definition with its extracted endpoints.

        Raises:
            DefinitionValidationError: If the definition has validation errors;
                nothing is stored in that case.
        """
        result = parse_api_definition(content, filename)
        validation = result.validation
        if not validation.is_valid or validation.format is None:
            logger.warning("definition_rejected", project_id=project_id, errors=validation.errors)
            raise DefinitionValidationError(f"API definition '{name}' is invalid", validation.errors)

        text = _content_text(content)
        record = ApiDefinition(
            project_id=project_id,
            name=name,
            format=validation.format,
            content=text,
            content_hash=hash_content(text),
            endpoint_definition=result.endpoints,
        )
        await self._definitions.create(record)
        logger.info(
            "definition_imported",
            project_id=project_id,
            definition_id=record.id,
            format=str(record.format),
            endpoints=len(result.endpoints),
        )
        return record

    async def refresh_definition(self, definition_id: str, content: Any, filename: str | None = None) -> ApiDefinition:
        """Replace a definition's content, keeping saved roles and selections.

        Raises:
            RecordNotFoundError: If the definition does not exist.
            DefinitionValidationError: If the new content is invalid.
        """
        current = await self._require_definition(definition_id)
        result = parse_api_definition(content, filename)
        if not result.validation.is_valid or result.validation.format is None:
            raise DefinitionValidationError(f"API definition '{current.name}' is invalid", result.validation.errors)

        text = _content_text(content)
        if hash_content(text) == current.content_hash:
            return current
        endpoints = merge_endpoint_mappings(result.endpoints, current.endpoint_definition or [])
        return await self._definitions.update(
            definition_id,
            {
                "content": text,
                "content_hash": hash_content(text),
                "format": result.validation.format,
                "endpoint_definition": endpoints,
            },
        )

    async def save_endpoint_mappings(self, definition_id: str, endpoints: list[Endpoint]) -> ApiDefinition:
        """Persist an edited endpoint list on its definition."""
        return await self._definitions.update(definition_id, {"endpoint_definition": endpoints})

    async def _require_definition(self, definition_id: str) -> ApiDefinition:
        definition = await self._definitions.get(definition_id)
        if definition is None:
            raise RecordNotFoundError(f"ApiDefinition {definition_id} not found")
        return definition

    # ------------------------------------------------------------------
    # Server configurations
    # ------------------------------------------------------------------

    async def save_server_config(self, project_id: str, config: ServerConfig) -> ServerConfigRecord:
        record = await self._configurations.create(config_record(project_id, config))
        logger.info("server_config_saved", project_id=project_id, configuration_id=record.id)
        return record

    async def load_server_config(self, configuration_id: str, definition_id: str) -> ServerConfig:
        """Combine a stored configuration with a definition's endpoint mapping.

        Raises:
            RecordNotFoundError: If either record does not exist.
        """
        record = await self._configurations.get(configuration_id)
        if record is None:
            raise RecordNotFoundError(f"ServerConfigRecord {configuration_id} not found")
        definition = await self._require_definition(definition_id)
        return server_config_from_record(record, definition.endpoint_definition or [])

    # ------------------------------------------------------------------
    # Generation and deployment
    # ------------------------------------------------------------------

    def generate(self, config: ServerConfig) -> GenerationResult:
        return generate_server_code(config)

    async def deploy(
        self,
        project_id: str,
        configuration_id: str,
        config: ServerConfig,
        on_status: StatusCallback | None = None,
    ) -> Deployment:
        """Generate and deploy a server, recording progress in the deployment store.

        The record is created as ``pending``, moves to ``processing`` and
        ends as ``success`` or ``failed`` with JSON logs.

        Returns:
            The final state of the deployment record.
        """
        deployment = await self._deployments.create(
            Deployment(project_id=project_id, configuration_id=configuration_id)
        )
        await self._deployments.update(deployment.id, {"status": "processing"})

        result = generate_server_code(config)
        if not result.success:
            logger.error("deployment_generation_failed", deployment_id=deployment.id, error=result.error)
            return await self._deployments.update(
                deployment.id,
                {"status": "failed", "logs": json.dumps({"error": result.error, "stage": "generate"})},
            )

        outcome = await self._packager.deploy(
            config,
            result.files or [],
            deployment.id,
            on_status=on_status,
            project_id=project_id,
            configuration_id=configuration_id,
        )
        return await self._deployments.update(
            deployment.id,
            {"status": outcome.status, "server_url": outcome.server_url, "logs": outcome.logs},
        )

    async def list_deployments(self, configuration_id: str) -> list[Deployment]:
        return await self._deployments.list_by_parent(configuration_id)

    async def delete_project(self, project_id: str) -> dict[str, int]:
        """Delete every record belonging to a project.

        Returns:
            Number of deleted records per kind.
        """
        deployments = 0
        for record in await self._configurations.list_by_parent(project_id):
            deployments += await self._deployments.delete_by_parent(record.id)
        counts = {
            "deployments": deployments,
            "configurations": await self._configurations.delete_by_parent(project_id),
            "definitions": await self._definitions.delete_by_parent(project_id),
        }
        logger.info("project_deleted", project_id=project_id, **counts)
        return counts
