"""Go / Gorilla Mux server generator (direct mode only)."""

from __future__ import annotations

import re

from mcpgen.generators.base import (
    BaseGenerator,
    HandlerNames,
    auth_key_name,
    auth_location,
    auth_scheme,
    identifier_parts,
    non_path_parameters,
    pascal_identifier,
    quote_literal,
)
from mcpgen.models import Endpoint, McpType, ServerConfig, ServerFile
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_THIRD_PARTY_IMPORTS = ("github.com/gorilla/mux", "github.com/joho/godotenv", "github.com/rs/cors")

_ROUTE_PREFIXES: tuple[tuple[McpType, str], ...] = (("resource", "/resources"), ("tool", "/tools"))

_GETTING_STARTED = """```bash
cp .env.example .env
go mod tidy
go run .
```

Or build the container image:

```bash
docker build -t mcp-server .
docker run --env-file .env -p 8080:8080 mcp-server
```"""


def handler_name(endpoint: Endpoint) -> str:
    """PascalCase handler name such as ``handleGetPetsPetId``."""
    return "handle" + pascal_identifier(identifier_parts(endpoint.method.lower(), endpoint.path))


def import_block(standard: list[str], third_party: list[str]) -> str:
    """gofmt-style import list: standard library first, then modules."""
    groups = [sorted(standard), sorted(third_party)]
    return "\n\n".join("\n".join(f'\t"{name}"' for name in group) for group in groups if group)


def string_slice_items(values: list[str]) -> str:
    return ", ".join(quote_literal(v) for v in values)


def _comment(endpoint: Endpoint, name: str) -> str:
    summary = " ".join(endpoint.description.split())
    return f"// {name} serves {endpoint.method} {endpoint.path}" + (f": {summary}" if summary else "")


def _required_check(names: list[str], condition: str) -> str:
    if not names:
        return ""
    return (
        f"\tfor _, key := range []string{{{string_slice_items(names)}}} {{\n"
        f"\t\tif {condition} {{\n"
        '\t\t\trespondWithJSON(w, http.StatusBadRequest, Response{Success: false, Error: "Missing required parameter: " + key})\n'
        "\t\t\treturn\n"
        "\t\t}\n"
        "\t}\n"
    )


def resource_handler(endpoint: Endpoint, name: str) -> str:
    """Go handler echoing mux vars and query values for a resource."""
    required = [p.name for p in non_path_parameters(endpoint) if p.required]
    checks = _required_check(required, 'query.Get(key) == ""')
    return (
        f"{_comment(endpoint, name)}\n"
        f"func {name}(w http.ResponseWriter, r *http.Request) {{\n"
        "\tparams := mux.Vars(r)\n"
        "\tquery := r.URL.Query()\n"
        f"{checks}"
        "\trespondWithJSON(w, http.StatusOK, Response{\n"
        "\t\tSuccess: true,\n"
        "\t\tData: map[string]interface{}{\n"
        f'\t\t\t"id":      {quote_literal(endpoint.path)},\n'
        '\t\t\t"params":  params,\n'
        '\t\t\t"query":   query,\n'
        f'\t\t\t"content": []map[string]string{{{{"type": "text", "text": {quote_literal(f"Sample resource data for {endpoint.path}")}}}}},\n'
        "\t\t},\n"
        "\t})\n"
        "}"
    )


def tool_handler(endpoint: Endpoint, name: str) -> str:
    """Go handler decoding and echoing the JSON body for a tool."""
    required = [p.name for p in non_path_parameters(endpoint) if p.required]
    checks = _required_check(required, "_, ok := body[key]; !ok")
    return (
        f"{_comment(endpoint, name)}\n"
        f"func {name}(w http.ResponseWriter, r *http.Request) {{\n"
        "\tparams := mux.Vars(r)\n"
        "\tbody := map[string]interface{}{}\n"
        "\tif r.Body != nil && r.ContentLength != 0 {\n"
        "\t\tif err := json.NewDecoder(r.Body).Decode(&body); err != nil {\n"
        '\t\t\trespondWithJSON(w, http.StatusBadRequest, Response{Success: false, Error: "Invalid JSON body"})\n'
        "\t\t\treturn\n"
        "\t\t}\n"
        "\t}\n"
        f"{checks}"
        "\trespondWithJSON(w, http.StatusOK, Response{\n"
        "\t\tSuccess: true,\n"
        "\t\tResult: map[string]interface{}{\n"
        f'\t\t\t"id":          {quote_literal(endpoint.path)},\n'
        '\t\t\t"params":      params,\n'
        '\t\t\t"requestData": body,\n'
        f'\t\t\t"content":     []map[string]string{{{{"type": "text", "text": {quote_literal(f"Sample tool result for {endpoint.path}")}}}}},\n'
        "\t\t},\n"
        "\t})\n"
        "}"
    )


def route_registration(route: str, method: str, name: str, auth_enabled: bool) -> str:
    """One ``router.HandleFunc`` line, wrapped in authMiddleware when auth is on."""
    if auth_enabled:
        return (
            f"\trouter.Handle({quote_literal(route)}, authMiddleware(http.HandlerFunc({name})))"
            f".Methods({quote_literal(method)})"
        )
    return f"\trouter.HandleFunc({quote_literal(route)}, {name}).Methods({quote_literal(method)})"


class GoGenerator(BaseGenerator):
    """net/http + Gorilla Mux server whose handlers return sample MCP payloads."""

    language = "Go"
    mode = "direct"
    template_group = "go"
    default_port = 8080

    def build_files(self, config: ServerConfig) -> list[ServerFile]:
        handlers: list[str] = []
        registrations: list[str] = []
        names = HandlerNames()
        auth_enabled = config.authentication.enabled

        for role, prefix in _ROUTE_PREFIXES:
            for endpoint in self.routable(config, role):
                name = names.claim(handler_name(endpoint))
                method = "GET" if role == "resource" else endpoint.method
                handlers.append(self.handler_snippet(endpoint, name, role))
                registrations.append(route_registration(f"{prefix}{endpoint.path}", method, name, auth_enabled))

        module_name = re.sub(r"[^a-z0-9-]+", "-", config.name.lower()).strip("-") or "mcp-server"
        return [
            self.make_file("go.mod", "/", self._templates.render_template("go_mod", {"moduleName": module_name}), "config"),
            self.make_file("main.go", "/", self._main_go(config, registrations)),
            self.make_file("handlers.go", "/", self._handlers_go(config, handlers)),
            self.make_file(
                "Dockerfile",
                "/",
                self._templates.render_template("dockerfile", {"binaryName": "server", "port": self.default_port}),
                "config",
            ),
            self.readme_file(config, _GETTING_STARTED),
            self.env_file(config),
        ]

    def handler_snippet(self, endpoint: Endpoint, name: str, role: McpType) -> str:
        return resource_handler(endpoint, name) if role == "resource" else tool_handler(endpoint, name)

    def _main_go(self, config: ServerConfig, registrations: list[str]) -> str:
        auth_enabled = config.authentication.enabled
        standard = ["encoding/json", "log", "net/http", "os"]
        if auth_enabled:
            standard.append("strings")
        context = {
            "imports": import_block(standard, list(_THIRD_PARTY_IMPORTS)),
            "serverNameLiteral": quote_literal(config.name),
            "serverDescriptionLiteral": quote_literal(config.description),
            "resourcesList": string_slice_items(self.capability_names(config, "resource")),
            "toolsList": string_slice_items(self.capability_names(config, "tool")),
            "routeRegistrations": "".join(f"{line}\n" for line in registrations),
            "authMiddleware": self._auth_middleware(config) if auth_enabled else "",
        }
        return self._templates.render_template("main_go", context)

    def _handlers_go(self, config: ServerConfig, handlers: list[str]) -> str:
        standard: list[str] = []
        third_party: list[str] = []
        if handlers:
            standard.append("net/http")
            third_party.append("github.com/gorilla/mux")
        if self.routable(config, "tool"):
            standard.append("encoding/json")
        context = {
            "imports": import_block(standard, third_party),
            "handlers": "".join(f"\n{snippet}\n" for snippet in handlers),
        }
        return self._templates.render_template("handlers_go", context)

    def _auth_middleware(self, config: ServerConfig) -> str:
        auth = config.authentication
        key = quote_literal(auth_key_name(auth))
        lookup = f"r.URL.Query().Get({key})" if auth_location(auth) == "query" else f"r.Header.Get({key})"
        context = {"credentialLookup": lookup, "authSchemeLiteral": quote_literal(auth_scheme(auth))}
        return self._templates.render_template("auth_middleware", context)
