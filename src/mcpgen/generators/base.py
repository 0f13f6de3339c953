"""Shared generator contract and snippet helpers used by every target language."""

from __future__ import annotations

import json
import keyword
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from mcpgen.errors import GenerationError
from mcpgen.generators.template_manager import TemplateManager
from mcpgen.models import (
    AuthConfig,
    Endpoint,
    FileType,
    GenerationResult,
    Language,
    McpType,
    Parameter,
    ServerConfig,
    ServerFile,
    ServerMode,
)
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")

# Credential prefix stripped from the header value before comparison
_AUTH_SCHEMES: dict[str, str] = {"Bearer": "Bearer ", "Basic": "Basic "}


# ---------------------------------------------------------------------------
# Snippet helpers
# ---------------------------------------------------------------------------


def quote_literal(value: Any) -> str:
    """Double-quoted string literal valid in TypeScript, Python and Go."""
    return json.dumps("" if value is None else str(value), ensure_ascii=False)


def list_literal(values: list[str]) -> str:
    """Bracketed list of string literals, e.g. ``["GET /a", "POST /b"]``."""
    return "[" + ", ".join(quote_literal(v) for v in values) + "]"


def path_params(path: str) -> list[str]:
    """Names of ``{param}`` tokens in a path template, in order."""
    return _PATH_PARAM_RE.findall(path)


def identifier_parts(method: str, path: str) -> list[str]:
    """Alphanumeric chunks of ``method`` + ``path`` used to build handler names."""
    return [part for part in _NON_ALNUM_RE.sub("_", f"{method}_{path}").split("_") if part]


def snake_identifier(name: str, reserved: frozenset[str] = frozenset()) -> str:
    """Turn an arbitrary string into a snake_case Python identifier.

    Args:
        name: Raw name (parameter name, path chunk...).
        reserved: Extra names that must not be produced verbatim.

    Returns:
        Safe identifier; keywords and reserved names get a trailing underscore.
    """
    sanitized = _NON_ALNUM_RE.sub("_", name)
    sanitized = re.sub(r"_+", "_", sanitized).strip("_").lower()
    if sanitized and sanitized[0].isdigit():
        sanitized = f"p_{sanitized}"
    sanitized = sanitized or "param"
    if keyword.iskeyword(sanitized) or sanitized in reserved:
        sanitized = f"{sanitized}_"
    return sanitized


def pascal_identifier(parts: list[str]) -> str:
    return "".join(part[:1].upper() + part[1:] for part in parts)


def effective_parameters(endpoint: Endpoint) -> list[Parameter]:
    """Parameters with same-named duplicates collapsed, later entries winning.

    Extraction keeps path-level and operation-level duplicates side by side;
    generated code cannot declare one name twice, so the later definition
    replaces the earlier one while keeping its position.
    """
    by_name: dict[str, Parameter] = {}
    for param in endpoint.parameters:
        by_name[param.name] = param
    return list(by_name.values())


def non_path_parameters(endpoint: Endpoint) -> list[Parameter]:
    names = set(path_params(endpoint.path))
    return [p for p in effective_parameters(endpoint) if p.name not in names]


def auth_location(auth: AuthConfig) -> str:
    return auth.location or "header"


def auth_key_name(auth: AuthConfig) -> str:
    """Header or query parameter carrying the credential."""
    if auth.name:
        return auth.name
    if auth_location(auth) == "query":
        return "api_key"
    return "X-API-Key" if auth.type == "ApiKey" else "Authorization"


def auth_scheme(auth: AuthConfig) -> str:
    return _AUTH_SCHEMES.get(auth.type, "")


class HandlerNames:
    """Hands out unique handler names, suffixing repeats with a counter."""

    def __init__(self) -> None:
        self._issued: set[str] = set()

    def claim(self, name: str) -> str:
        candidate, suffix = name, 1
        while candidate in self._issued:
            suffix += 1
            candidate = f"{name}{suffix}"
        self._issued.add(candidate)
        return candidate


def _cell(text: Any) -> str:
    """Markdown table cell text."""
    return str(text).replace("|", "\\|").replace("\n", " ") or "-"


def endpoint_docs(endpoints: list[Endpoint]) -> str:
    """Markdown documentation block for every endpoint.

    Args:
        endpoints: Endpoints to document, in display order.

    Returns:
        One section per endpoint with parameter and response tables.
    """
    if not endpoints:
        return "No endpoints configured."

    sections: list[str] = []
    for endpoint in endpoints:
        lines = [f"### {endpoint.method} {endpoint.path}", ""]
        if endpoint.description:
            lines += [endpoint.description, ""]
        lines.append(f"- **MCP type:** {endpoint.mcp_type or 'none'}")
        lines.append(f"- **Included:** {'yes' if endpoint.selected and endpoint.mcp_type != 'none' else 'no'}")

        if endpoint.parameters:
            lines += ["", "**Parameters**", "", "| Name | Type | Required | Description |", "|------|------|----------|-------------|"]
            for param in endpoint.parameters:
                lines.append(
                    f"| {_cell(param.name)} | {_cell(param.type)} | {'Yes' if param.required else 'No'} | {_cell(param.description)} |"
                )

        if endpoint.responses:
            lines += ["", "**Responses**", "", "| Status | Description |", "|--------|-------------|"]
            for response in endpoint.responses:
                lines.append(f"| {_cell(response.status_code)} | {_cell(response.description)} |")

        sections.append("\n".join(lines))
    return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Generator base class
# ---------------------------------------------------------------------------


class BaseGenerator(ABC):
    """Renders a ServerConfig into a list of ServerFile objects.

    Subclasses implement ``build_files``; ``generate_server`` wraps it so no
    exception ever escapes a generation call.
    """

    language: ClassVar[Language]
    mode: ClassVar[ServerMode] = "direct"
    template_group: ClassVar[str]
    default_port: ClassVar[int]

    def __init__(self, templates: TemplateManager | None = None) -> None:
        self._templates = templates or TemplateManager(self.template_group)

    @property
    def templates(self) -> TemplateManager:
        return self._templates

    def generate_server(self, config: ServerConfig) -> GenerationResult:
        """Generate the full source tree for a server.

        Args:
            config: Server configuration with the finalized endpoint list.

        Returns:
            Successful result with files, or a failed result with the error message.
        """
        try:
            if config.language != self.language or config.mode != self.mode:
                raise GenerationError(
                    f"{type(self).__name__} generates {self.language}/{self.mode} servers, "
                    f"got {config.language}/{config.mode}"
                )
            files = self.build_files(config)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "server_generation_failed",
                server=config.name,
                language=self.language,
                mode=self.mode,
                error=str(exc),
            )
            return GenerationResult(success=False, error=str(exc))

        logger.info(
            "server_generated",
            server=config.name,
            language=self.language,
            mode=self.mode,
            files=len(files),
        )
        return GenerationResult(success=True, files=files)

    @abstractmethod
    def build_files(self, config: ServerConfig) -> list[ServerFile]:
        """Build every file of the server; may raise on internal errors."""

    # ------------------------------------------------------------------
    # Shared building blocks
    # ------------------------------------------------------------------

    @staticmethod
    def routable(config: ServerConfig, role: McpType) -> list[Endpoint]:
        """Selected endpoints with the given role; these get routes."""
        return [ep for ep in config.endpoints if ep.selected and ep.mcp_type == role]

    @staticmethod
    def capability_names(config: ServerConfig, role: McpType) -> list[str]:
        """Every endpoint with the given role, selected or not."""
        return [f"{ep.method} {ep.path}" for ep in config.endpoints if ep.mcp_type == role]

    def make_file(self, name: str, path: str, content: str, file_type: FileType = "code") -> ServerFile:
        return ServerFile(name=name, path=path, content=content, type=file_type, language=self.language)

    def readme_file(self, config: ServerConfig, getting_started: str) -> ServerFile:
        """README.md summarizing the server and documenting its endpoints."""
        context = {
            "config": config,
            "endpointCount": len(config.endpoints),
            "resourceCount": len(self.capability_names(config, "resource")),
            "toolCount": len(self.capability_names(config, "tool")),
            "gettingStarted": getting_started,
            "authSection": self._auth_section(config.authentication),
            "endpointDocs": endpoint_docs(config.endpoints),
        }
        content = self._templates.render_template("readme", context)
        return self.make_file("README.md", "/", content, "documentation")

    def env_file(self, config: ServerConfig, extra_variables: list[str] | None = None) -> ServerFile:
        """``.env.example`` listing the variables the server reads."""
        variables: list[str] = []
        if config.authentication.enabled:
            variables.append("API_KEY=change-me")
        variables.extend(extra_variables or [])
        context = {"config": config, "port": self.default_port, "extraVariables": "\n".join(variables)}
        return self.make_file(".env.example", "/", self._templates.render_template("env", context), "config")

    def proxy_env_variables(self, config: ServerConfig) -> list[str]:
        variables = [f"TARGET_BASE_URL={config.target_base_url or ''}", "TARGET_API_KEY="]
        if config.cache_enabled:
            variables.append("CACHE_TTL_SECONDS=60")
        if config.rate_limiting_enabled:
            variables.append("RATE_LIMIT_PER_MINUTE=60")
        return variables

    @staticmethod
    def require_target(config: ServerConfig) -> str:
        if not config.target_base_url:
            raise GenerationError("Proxy mode requires a target base URL")
        return config.target_base_url

    @staticmethod
    def _auth_section(auth: AuthConfig) -> str:
        if not auth.enabled:
            return "This server does not require authentication."
        where = "query parameter" if auth_location(auth) == "query" else "header"
        scheme = auth_scheme(auth)
        prefix = f" with the `{scheme.strip()}` scheme" if scheme else ""
        return (
            f"Requests must send the credential in the `{auth_key_name(auth)}` {where}{prefix}. "
            "The expected value is read from the `API_KEY` environment variable."
        )
