"""Endpoint extraction: walk a parsed definition into normalized Endpoint models."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError

from mcpgen.models import HTTP_METHODS, ApiFormat, Endpoint, McpType, Parameter, Response
from mcpgen.utils.ids import endpoint_id, random_id
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_METHOD_KEYS = frozenset(m.lower() for m in HTTP_METHODS)

# RAML line scan: "/path:" resource lines and "  get:" method lines
_RAML_RESOURCE_RE = re.compile(r"^(\s*)(/[^\s:]*):\s*$")
_RAML_METHOD_RE = re.compile(r"^(\s+)(get|post|put|delete|patch|head|options):\s*$", re.IGNORECASE)

# API Blueprint line scan
_BP_GROUP_RE = re.compile(r"^#+\s*Group\s+(.+?)\s*$")
_BP_RESOURCE_RE = re.compile(r"^#+\s*(.*?)\s*\[(/[^\]\s]*)\]\s*$")
_BP_ACTION_BRACKET_RE = re.compile(
    r"^#+\s*(.*?)\s*\[(GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)(?:\s+(/[^\]\s]*))?\]\s*$", re.IGNORECASE
)
_BP_ACTION_BARE_RE = re.compile(r"^#*\s*(GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)\s+(/\S*)\s*$")
_BP_RESPONSE_RE = re.compile(r"^[+\-*]\s*Response\s+(\d{3})")


def default_role(method: str) -> McpType:
    """Verb-based MCP role: GET endpoints are resources, everything else a tool."""
    return "resource" if method.upper() == "GET" else "tool"


class EndpointExtractor:
    """Turn a parsed API definition into a list of Endpoint models.

    Extraction never raises. A document that cannot be walked yields an empty
    list, and the caller decides how to surface that.
    """

    def __init__(self, include_base_path: bool = False) -> None:
        """Initialize the extractor.

        Args:
            include_base_path: Prefix OpenAPI paths with ``basePath`` (v2) or
                the path of the first server URL (v3).
        """
        self._include_base_path = include_base_path
        self._document: dict[str, Any] = {}

    def extract(self, parsed: Any, api_format: ApiFormat) -> list[Endpoint]:
        """Extract endpoints from a parsed definition.

        Args:
            parsed: Output of ``content_parser.parse`` (or an external RAML /
                Blueprint AST carrying ``resources`` / ``ast.resourceGroups``).
            api_format: Format from the classifier.

        Returns:
            Endpoints in document order, each with an id and an MCP role.
        """
        try:
            endpoints = self._extract_by_format(parsed, api_format)
            if not endpoints and isinstance(parsed, dict) and isinstance(parsed.get("endpoints"), list):
                endpoints = self._extract_custom(parsed["endpoints"])
            endpoints = [self._finalize(ep) for ep in endpoints]
        except Exception as exc:  # noqa: BLE001
            logger.error("endpoint_extraction_failed", format=str(api_format), error=str(exc))
            return []

        if not endpoints:
            logger.warning("no_endpoints_extracted", format=str(api_format))
        else:
            logger.info("endpoints_extracted", format=str(api_format), count=len(endpoints))
        return endpoints

    def _extract_by_format(self, parsed: Any, api_format: ApiFormat) -> list[Endpoint]:
        if not isinstance(parsed, dict):
            return []
        self._document = parsed
        if api_format in (ApiFormat.OPENAPI2, ApiFormat.OPENAPI3):
            return self._extract_openapi(parsed, api_format)
        if api_format == ApiFormat.RAML:
            return self._extract_raml(parsed)
        if api_format == ApiFormat.API_BLUEPRINT:
            return self._extract_blueprint(parsed)
        return []

    # ------------------------------------------------------------------
    # OpenAPI 2 / 3
    # ------------------------------------------------------------------

    def _extract_openapi(self, document: dict[str, Any], api_format: ApiFormat) -> list[Endpoint]:
        paths = document.get("paths")
        if not isinstance(paths, dict):
            return []

        prefix = self._base_path(document, api_format) if self._include_base_path else ""
        endpoints: list[Endpoint] = []

        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            path_level_params = path_item.get("parameters") or []

            for key, operation in path_item.items():
                # parameters, summary, servers, $ref ... are not operations
                if not isinstance(key, str) or key.lower() not in _METHOD_KEYS:
                    continue
                if not isinstance(operation, dict):
                    continue

                operation_params = operation.get("parameters") or []
                raw_params = list(path_level_params) + list(operation_params)
                full_path = f"{prefix}{path}" if prefix else str(path)

                endpoints.append(
                    Endpoint(
                        id=endpoint_id(key, full_path),
                        path=full_path,
                        method=key.upper(),
                        description=str(operation.get("summary") or operation.get("description") or ""),
                        parameters=self._openapi_parameters(raw_params, api_format),
                        responses=self._openapi_responses(operation.get("responses"), api_format),
                        mcp_type=default_role(key),
                    )
                )

        return endpoints

    def _openapi_parameters(self, raw_params: list[Any], api_format: ApiFormat) -> list[Parameter]:
        """Convert raw parameter objects in order, keeping same-named duplicates."""
        params: list[Parameter] = []
        for raw in raw_params:
            if not isinstance(raw, dict):
                continue
            if "$ref" in raw:
                raw = self._resolve_ref(raw["$ref"]) or {}  # noqa: PLW2901
            name = raw.get("name")
            if not name:
                continue

            schema = raw.get("schema") if isinstance(raw.get("schema"), dict) else {}
            if api_format == ApiFormat.OPENAPI2:
                param_type = raw.get("type") or schema.get("type")
            else:
                param_type = schema.get("type")

            params.append(
                Parameter(
                    name=str(name),
                    type=self._type_name(param_type),
                    required=bool(raw.get("required", False)),
                    description=str(raw.get("description") or ""),
                )
            )
        return params

    def _openapi_responses(self, responses: Any, api_format: ApiFormat) -> list[Response]:
        if not isinstance(responses, dict):
            return []
        result: list[Response] = []
        for status_code, response in responses.items():
            if not isinstance(response, dict):
                response = {}  # noqa: PLW2901
            if "$ref" in response:
                response = self._resolve_ref(response["$ref"]) or {}  # noqa: PLW2901
            schema = response.get("schema") if api_format == ApiFormat.OPENAPI2 else response.get("content")
            result.append(
                Response(
                    status_code=self._status_code(status_code),
                    description=str(response.get("description") or ""),
                    schema=schema,
                )
            )
        return result

    def _base_path(self, document: dict[str, Any], api_format: ApiFormat) -> str:
        if api_format == ApiFormat.OPENAPI2:
            base = str(document.get("basePath") or "")
        else:
            servers = document.get("servers")
            url = servers[0].get("url", "") if isinstance(servers, list) and servers and isinstance(servers[0], dict) else ""
            base = urlparse(str(url)).path
        return base.rstrip("/")

    def _resolve_ref(self, ref: Any) -> dict[str, Any] | None:
        """Resolve a local ``#/...`` pointer against the current document."""
        if not isinstance(ref, str) or not ref.startswith("#/"):
            return None

        node: Any = self._document
        try:
            for part in ref[2:].split("/"):
                node = node[part.replace("~1", "/").replace("~0", "~")]
            return dict(node) if isinstance(node, dict) else None
        except (KeyError, TypeError):
            return None

    @staticmethod
    def _type_name(raw_type: Any) -> str:
        if isinstance(raw_type, list):
            # Nullable types like ["string", "null"]
            non_null = [t for t in raw_type if t != "null"]
            return str(non_null[0]) if non_null else "string"
        return str(raw_type) if raw_type else "string"

    @staticmethod
    def _status_code(raw: Any) -> int | str:
        text = str(raw)
        return int(text) if text.isdigit() else text

    # ------------------------------------------------------------------
    # RAML
    # ------------------------------------------------------------------

    def _extract_raml(self, document: dict[str, Any]) -> list[Endpoint]:
        resources = document.get("resources")
        if isinstance(resources, list):
            endpoints: list[Endpoint] = []
            for resource in resources:
                self._walk_raml_resource(resource, "", endpoints)
            return endpoints
        content = document.get("content")
        if isinstance(content, str):
            return self._scan_raml(content)
        return []

    def _walk_raml_resource(self, resource: Any, parent_uri: str, endpoints: list[Endpoint]) -> None:
        if not isinstance(resource, dict):
            return
        uri = f"{parent_uri}{resource.get('relativeUri', '')}"
        uri_params = self._raml_params(resource.get("uriParameters"), required_default=True)

        methods = resource.get("methods") or []
        if isinstance(methods, dict):
            methods = [{"method": name, **(body if isinstance(body, dict) else {})} for name, body in methods.items()]

        for method in methods:
            if not isinstance(method, dict):
                continue
            verb = str(method.get("method", "")).upper()
            if verb not in HTTP_METHODS:
                continue
            params = uri_params + self._raml_params(method.get("queryParameters"), required_default=False)
            endpoints.append(
                Endpoint(
                    id=endpoint_id(verb.lower(), uri),
                    path=uri or "/",
                    method=verb,
                    description=str(method.get("description") or method.get("displayName") or ""),
                    parameters=params,
                    responses=self._raml_responses(method.get("responses")),
                    mcp_type=default_role(verb),
                )
            )

        children = resource.get("resources")
        for child in children if isinstance(children, list) else []:
            self._walk_raml_resource(child, uri, endpoints)

    def _raml_params(self, raw: Any, required_default: bool) -> list[Parameter]:
        if isinstance(raw, dict):
            items = [{"name": name, **(body if isinstance(body, dict) else {})} for name, body in raw.items()]
        elif isinstance(raw, list):
            items = [item for item in raw if isinstance(item, dict)]
        else:
            return []
        return [
            Parameter(
                name=str(item.get("name") or item.get("displayName")),
                type=self._type_name(item.get("type")),
                required=bool(item.get("required", required_default)),
                description=str(item.get("description") or ""),
            )
            for item in items
            if item.get("name") or item.get("displayName")
        ]

    def _raml_responses(self, raw: Any) -> list[Response]:
        if isinstance(raw, dict):
            responses: list[Response] = []
            for code, body in raw.items():
                description = body.get("description") if isinstance(body, dict) else None
                responses.append(Response(status_code=self._status_code(code), description=str(description or "")))
            return responses
        if isinstance(raw, list):
            return [
                Response(status_code=self._status_code(item.get("code", 200)), description=str(item.get("description") or ""))
                for item in raw
                if isinstance(item, dict)
            ]
        return [Response(status_code=200, description="Successful response")]

    def _scan_raml(self, text: str) -> list[Endpoint]:
        """Line-oriented RAML scan: nested ``/resource:`` lines and verb lines."""
        endpoints: list[Endpoint] = []
        # (indent, segment) for the resource lines currently open
        stack: list[tuple[int, str]] = []

        for line in text.splitlines():
            resource_match = _RAML_RESOURCE_RE.match(line)
            if resource_match:
                indent = len(resource_match.group(1))
                while stack and stack[-1][0] >= indent:
                    stack.pop()
                stack.append((indent, resource_match.group(2)))
                continue

            method_match = _RAML_METHOD_RE.match(line)
            if method_match and stack:
                indent = len(method_match.group(1))
                while stack and stack[-1][0] >= indent:
                    stack.pop()
                if not stack:
                    continue
                path = "".join(segment for _, segment in stack)
                verb = method_match.group(2).upper()
                endpoints.append(
                    Endpoint(
                        id=endpoint_id(verb.lower(), path),
                        path=path,
                        method=verb,
                        description=f"{verb} {path}",
                        responses=[Response(status_code=200, description="Successful response")],
                        mcp_type=default_role(verb),
                    )
                )

        return endpoints

    # ------------------------------------------------------------------
    # API Blueprint
    # ------------------------------------------------------------------

    def _extract_blueprint(self, document: dict[str, Any]) -> list[Endpoint]:
        ast = document.get("ast")
        if isinstance(ast, dict) and isinstance(ast.get("resourceGroups"), list):
            return self._walk_blueprint_ast(ast["resourceGroups"])
        content = document.get("content")
        if isinstance(content, str):
            return self._scan_blueprint(content)
        return []

    def _walk_blueprint_ast(self, groups: list[Any]) -> list[Endpoint]:
        endpoints: list[Endpoint] = []
        for group in groups:
            if not isinstance(group, dict):
                continue
            for resource in group.get("resources") or []:
                if not isinstance(resource, dict):
                    continue
                resource_params = self._blueprint_params(resource.get("parameters"))
                for action in resource.get("actions") or []:
                    if not isinstance(action, dict):
                        continue
                    verb = str(action.get("method", "")).upper()
                    if verb not in HTTP_METHODS:
                        continue
                    attributes = action.get("attributes") if isinstance(action.get("attributes"), dict) else {}
                    path = str(attributes.get("uriTemplate") or resource.get("uriTemplate") or "/")
                    responses: list[Response] = []
                    for example in action.get("examples") or []:
                        for response in (example or {}).get("responses") or []:
                            if isinstance(response, dict):
                                responses.append(
                                    Response(
                                        status_code=self._status_code(response.get("name", 200)),
                                        description=str(response.get("description") or ""),
                                        schema=response.get("schema") or None,
                                    )
                                )
                    endpoints.append(
                        Endpoint(
                            id=endpoint_id(verb.lower(), path),
                            path=path,
                            method=verb,
                            description=str(action.get("name") or action.get("description") or resource.get("name") or ""),
                            parameters=resource_params + self._blueprint_params(action.get("parameters")),
                            responses=responses,
                            mcp_type=default_role(verb),
                        )
                    )
        return endpoints

    def _blueprint_params(self, raw: Any) -> list[Parameter]:
        if not isinstance(raw, list):
            return []
        return [
            Parameter(
                name=str(item["name"]),
                type=self._type_name(item.get("type")),
                required=bool(item.get("required", False)),
                description=str(item.get("description") or ""),
            )
            for item in raw
            if isinstance(item, dict) and item.get("name")
        ]

    def _scan_blueprint(self, text: str) -> list[Endpoint]:
        """Line scan for ``# Group`` headers, ``[METHOD /path]`` and ``METHOD /path`` actions."""
        drafts: list[dict[str, Any]] = []
        group = ""
        resource_path = ""

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line:
                continue

            group_match = _BP_GROUP_RE.match(line)
            if group_match:
                group = group_match.group(1)
                continue

            action_match = _BP_ACTION_BRACKET_RE.match(line)
            if action_match:
                path = action_match.group(3) or resource_path
                if path:
                    drafts.append(
                        {"method": action_match.group(2).upper(), "path": path, "title": action_match.group(1), "group": group}
                    )
                continue

            resource_match = _BP_RESOURCE_RE.match(line)
            if resource_match:
                resource_path = resource_match.group(2)
                continue

            bare_match = _BP_ACTION_BARE_RE.match(line)
            if bare_match:
                drafts.append({"method": bare_match.group(1), "path": bare_match.group(2), "title": "", "group": group})
                continue

            response_match = _BP_RESPONSE_RE.match(line)
            if response_match and drafts:
                drafts[-1].setdefault("responses", []).append(int(response_match.group(1)))

        endpoints: list[Endpoint] = []
        for draft in drafts:
            title = draft["title"] or (f"{draft['group']}: {draft['method']} {draft['path']}" if draft["group"] else "")
            endpoints.append(
                Endpoint(
                    id=endpoint_id(draft["method"].lower(), draft["path"]),
                    path=draft["path"],
                    method=draft["method"],
                    description=title,
                    responses=[Response(status_code=code) for code in draft.get("responses", [])],
                    mcp_type=default_role(draft["method"]),
                )
            )
        return endpoints

    # ------------------------------------------------------------------
    # Custom shapes and post-pass
    # ------------------------------------------------------------------

    def _extract_custom(self, items: list[Any]) -> list[Endpoint]:
        """Map a bare ``endpoints`` array; items without path or method are skipped."""
        endpoints: list[Endpoint] = []
        for item in items:
            if not isinstance(item, dict) or not item.get("path") or not item.get("method"):
                continue
            try:
                endpoints.append(Endpoint.model_validate(item))
            except ValidationError as exc:
                logger.warning("custom_endpoint_skipped", path=item.get("path"), error=str(exc))
        return endpoints

    @staticmethod
    def _finalize(endpoint: Endpoint) -> Endpoint:
        updates: dict[str, Any] = {}
        if not endpoint.id:
            updates["id"] = random_id()
        if endpoint.mcp_type is None:
            updates["mcp_type"] = default_role(endpoint.method)
        return endpoint.model_copy(update=updates) if updates else endpoint


def extract_endpoints(parsed: Any, api_format: ApiFormat, include_base_path: bool = False) -> list[Endpoint]:
    """Extract endpoints with a fresh ``EndpointExtractor``.

    Args:
        parsed: Parsed definition document.
        api_format: Format from the classifier.
        include_base_path: Prefix OpenAPI paths with the document's base path.

    Returns:
        Extracted endpoints; empty when nothing could be found.
    """
    return EndpointExtractor(include_base_path=include_base_path).extract(parsed, api_format)
