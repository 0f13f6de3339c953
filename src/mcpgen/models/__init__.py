"""Pydantic models for mcpgen: endpoints, server configs, generation and stored records."""

from __future__ import annotations

import posixpath
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mcpgen.utils.ids import random_id

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
McpType = Literal["resource", "tool", "none"]
Language = Literal["TypeScript", "Python", "Go"]
ServerMode = Literal["direct", "proxy"]
AuthType = Literal["None", "ApiKey", "Basic", "Bearer"]
AuthLocation = Literal["header", "query"]
FileType = Literal["code", "config", "documentation"]
DeploymentStatus = Literal["pending", "processing", "success", "failed"]

# Labels used by older saved configurations
_LEGACY_AUTH_TYPES: dict[str, str] = {
    "API Key": "ApiKey",
    "Bearer Token": "Bearer",
    "Basic Auth": "Basic",
    "none": "None",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ApiFormat(StrEnum):
    """Recognized API description formats."""

    OPENAPI2 = "OpenAPI2"
    OPENAPI3 = "OpenAPI3"
    RAML = "RAML"
    API_BLUEPRINT = "APIBlueprint"


class ContentType(StrEnum):
    """Surface syntax detected by the sniffer."""

    JSON = "json"
    YAML = "yaml"
    RAML = "raml"
    API_BLUEPRINT = "apiblueprint"
    UNKNOWN = "unknown"


class _AliasedModel(BaseModel):
    """Base for models whose wire names are camelCase."""

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Endpoint model
# ---------------------------------------------------------------------------


class Parameter(BaseModel):
    """A single endpoint parameter."""

    name: str
    type: str = "string"  # "string" | "number" | "integer" | "boolean" | "array" | "object"
    required: bool = False
    description: str = ""


class Response(_AliasedModel):
    """A documented response of an endpoint."""

    status_code: int | str = Field(alias="statusCode")
    description: str = ""
    schema_: Any = Field(default=None, alias="schema")


class Endpoint(_AliasedModel):
    """Normalized representation of a single API endpoint."""

    id: str = ""
    path: str
    method: HttpMethod
    description: str = ""
    parameters: list[Parameter] = Field(default_factory=list)
    responses: list[Response] = Field(default_factory=list)
    mcp_type: McpType | None = Field(default=None, alias="mcpType")
    selected: bool = True

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Server configuration
# ---------------------------------------------------------------------------


class AuthConfig(BaseModel):
    """Authentication settings for a generated server."""

    type: AuthType = "None"
    location: AuthLocation | None = None
    name: str | None = None
    value: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _LEGACY_AUTH_TYPES.get(value, value)
        return value

    @property
    def enabled(self) -> bool:
        return self.type != "None"


class HostingConfig(BaseModel):
    """Where and how a generated server is deployed."""

    provider: str = "Self-hosted"  # "AWS" | "GCP" | "Azure" | "Supabase" | "Self-hosted" | ...
    type: str = "Container"  # "Serverless" | "Container" | "VM" | ...
    region: str | None = None


class ServerConfig(_AliasedModel):
    """Everything a generator needs to render a server source tree."""

    name: str
    description: str = ""
    language: Language = "TypeScript"
    mode: ServerMode = "direct"
    authentication: AuthConfig = Field(default_factory=AuthConfig)
    hosting: HostingConfig = Field(default_factory=HostingConfig)
    endpoints: list[Endpoint] = Field(default_factory=list)

    # Proxy mode only
    target_base_url: str | None = Field(default=None, alias="targetBaseUrl")
    cache_enabled: bool = Field(default=False, alias="cacheEnabled")
    rate_limiting_enabled: bool = Field(default=False, alias="rateLimitingEnabled")


# ---------------------------------------------------------------------------
# Generation output
# ---------------------------------------------------------------------------


class ServerFile(BaseModel):
    """A single generated file."""

    name: str
    path: str  # directory, "/" for the project root
    content: str
    type: FileType = "code"
    language: str | None = None

    @property
    def full_path(self) -> str:
        """Relative POSIX path of the file inside the generated tree."""
        return posixpath.join(self.path.strip("/"), self.name).lstrip("/")


class GenerationResult(_AliasedModel):
    """Outcome of a generation run; failures are carried, never raised."""

    success: bool
    server_url: str | None = Field(default=None, alias="serverUrl")
    error: str | None = None
    files: list[ServerFile] | None = None


# ---------------------------------------------------------------------------
# Import pipeline output
# ---------------------------------------------------------------------------


class ValidationResult(BaseModel):
    """Result of validating an uploaded definition."""

    is_valid: bool
    format: ApiFormat | None = None
    errors: list[str] = Field(default_factory=list)
    parsed_definition: Any = None
    classified_by_fallback: bool = False


class ImportResult(BaseModel):
    """Validation outcome plus the endpoints extracted from a definition."""

    validation: ValidationResult
    endpoints: list[Endpoint] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


class ApiDefinition(BaseModel):
    """An uploaded API definition belonging to a project."""

    id: str = Field(default_factory=random_id)
    project_id: str
    name: str
    format: ApiFormat
    content: str
    content_hash: str = ""
    endpoint_definition: list[Endpoint] | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ServerConfigRecord(BaseModel):
    """Saved snapshot of a server configuration."""

    id: str = Field(default_factory=random_id)
    project_id: str
    name: str
    description: str = ""
    language: Language
    mode: ServerMode = "direct"
    authentication_type: AuthType = "None"
    authentication_details: dict[str, Any] = Field(default_factory=dict)
    hosting_provider: str
    hosting_type: str
    hosting_region: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Deployment(BaseModel):
    """A (simulated) deployment of a generated server."""

    id: str = Field(default_factory=random_id)
    project_id: str
    configuration_id: str
    status: DeploymentStatus = "pending"
    server_url: str | None = None
    logs: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
