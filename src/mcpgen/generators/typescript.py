"""TypeScript / Express server generators (direct and proxy modes)."""

from __future__ import annotations

import re

from mcpgen.generators.base import (
    BaseGenerator,
    HandlerNames,
    auth_key_name,
    auth_location,
    auth_scheme,
    list_literal,
    non_path_parameters,
    path_params,
    quote_literal,
)
from mcpgen.models import Endpoint, McpType, ServerConfig, ServerFile
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_NON_WORD_RE = re.compile(r"[^a-zA-Z0-9_]")

_GETTING_STARTED = """```bash
npm install
cp .env.example .env
npm run build
npm start
```

For development with automatic TypeScript compilation run `npm run dev`."""


def _param_name(name: str) -> str:
    """Express route parameters must be word characters."""
    return _NON_WORD_RE.sub("_", name)


def express_path(path: str) -> str:
    """Convert ``/pets/{petId}`` into Express syntax ``/pets/:petId``."""
    converted = path
    for name in path_params(path):
        converted = converted.replace(f"{{{name}}}", f":{_param_name(name)}")
    return converted


def upstream_template(path: str) -> str:
    """Path template whose placeholder names match Express's ``req.params`` keys."""
    converted = path
    for name in path_params(path):
        converted = converted.replace(f"{{{name}}}", f"{{{_param_name(name)}}}")
    return converted


def handler_name(endpoint: Endpoint) -> str:
    """Handler name kept close to the route: ``handle_get_pets__petId_``."""
    return "handle_" + _NON_WORD_RE.sub("_", f"{endpoint.method.lower()}{endpoint.path}")


def _comment(endpoint: Endpoint) -> str:
    summary = " ".join(endpoint.description.split())
    return f"// {endpoint.method} {endpoint.path}" + (f": {summary}" if summary else "")


def _required_check(names: list[str], source: str) -> str:
    if not names:
        return ""
    return (
        f"  const missing = {list_literal(names)}.filter((key) => {source}[key] === undefined);\n"
        "  if (missing.length > 0) {\n"
        "    res.status(400).json({ success: false, error: `Missing required parameters: ${missing.join(', ')}` });\n"
        "    return;\n"
        "  }\n"
    )


def resource_route(endpoint: Endpoint, name: str) -> str:
    """Express GET route echoing path and query data for a resource."""
    required = [p.name for p in non_path_parameters(endpoint) if p.required]
    return (
        f"{_comment(endpoint)}\n"
        f"router.get({quote_literal(express_path(endpoint.path))}, function {name}(req: Request, res: Response) {{\n"
        f"{_required_check(required, 'req.query')}"
        "  res.json({\n"
        "    success: true,\n"
        "    data: {\n"
        f"      id: {quote_literal(endpoint.path)},\n"
        "      params: req.params,\n"
        "      query: req.query,\n"
        f"      content: [{{ type: 'text', text: {quote_literal(f'Sample resource data for {endpoint.path}')} }}],\n"
        "    },\n"
        "  });\n"
        "});"
    )


def tool_route(endpoint: Endpoint, name: str) -> str:
    """Express route with the endpoint's method echoing the request body for a tool."""
    required = [p.name for p in non_path_parameters(endpoint) if p.required]
    checks = _required_check(required, "(req.body ?? {})")
    return (
        f"{_comment(endpoint)}\n"
        f"router.{endpoint.method.lower()}({quote_literal(express_path(endpoint.path))}, "
        f"function {name}(req: Request, res: Response) {{\n"
        f"{checks}"
        "  res.json({\n"
        "    success: true,\n"
        "    result: {\n"
        f"      id: {quote_literal(endpoint.path)},\n"
        "      params: req.params,\n"
        "      requestData: req.body,\n"
        f"      content: [{{ type: 'text', text: {quote_literal(f'Sample tool result for {endpoint.path}')} }}],\n"
        "    },\n"
        "  });\n"
        "});"
    )


def proxy_route(endpoint: Endpoint, name: str, role: McpType) -> str:
    """Express route forwarding to the upstream API through proxyService."""
    method = "get" if role == "resource" else endpoint.method.lower()
    body_arg = "" if role == "resource" else ", req.body"
    envelope_key = "data" if role == "resource" else "result"
    return (
        f"{_comment(endpoint)}\n"
        f"router.{method}({quote_literal(express_path(endpoint.path))}, "
        f"async function {name}(req: Request, res: Response) {{\n"
        "  try {\n"
        f"    const upstream = await forwardRequest({quote_literal(endpoint.method)}, "
        f"buildTargetPath({quote_literal(upstream_template(endpoint.path))}, req.params), req.query{body_arg});\n"
        "    res.json({\n"
        "      success: true,\n"
        f"      {envelope_key}: {{\n"
        f"        id: {quote_literal(endpoint.path)},\n"
        "        params: req.params,\n"
        "        content: [{ type: 'text', text: JSON.stringify(upstream) }],\n"
        "      },\n"
        "    });\n"
        "  } catch (error) {\n"
        "    sendProxyError(res, error);\n"
        "  }\n"
        "});"
    )


class TypeScriptGenerator(BaseGenerator):
    """Express server whose routes return sample MCP payloads."""

    language = "TypeScript"
    mode = "direct"
    template_group = "typescript"
    default_port = 3000

    def build_files(self, config: ServerConfig) -> list[ServerFile]:
        auth_enabled = config.authentication.enabled
        files = [
            self.make_file("package.json", "/", self._package_json(config), "config"),
            self.make_file("tsconfig.json", "/", self._templates.render_template("tsconfig", {"target": "ES2020"}), "config"),
            self.make_file("index.ts", "/src", self._index_ts(config)),
            self.make_file("resourceRoutes.ts", "/src/routes", self._routes(config, "resource")),
            self.make_file("toolRoutes.ts", "/src/routes", self._routes(config, "tool")),
        ]
        if auth_enabled:
            files.append(self.make_file("auth.ts", "/src/middleware", self._auth(config)))
        files.extend(self.extra_files(config))
        files.append(self.readme_file(config, _GETTING_STARTED))
        files.append(self.env_file(config, self.extra_env_variables(config)))
        return files

    def extra_files(self, config: ServerConfig) -> list[ServerFile]:
        return []

    def extra_env_variables(self, config: ServerConfig) -> list[str]:
        return []

    def route_imports(self) -> str:
        return ""

    def route_snippet(self, endpoint: Endpoint, name: str, role: McpType) -> str:
        return resource_route(endpoint, name) if role == "resource" else tool_route(endpoint, name)

    def _package_json(self, config: ServerConfig) -> str:
        package_name = re.sub(r"[^a-z0-9-]+", "-", config.name.lower()).strip("-") or "mcp-server"
        context = {
            "packageNameLiteral": quote_literal(package_name),
            "descriptionLiteral": quote_literal(config.description or f"MCP server for {config.name}"),
        }
        return self._templates.render_template("package_json", context)

    def _index_ts(self, config: ServerConfig) -> str:
        auth_enabled = config.authentication.enabled
        context = {
            "authImport": "import { authMiddleware } from './middleware/auth';\n" if auth_enabled else "",
            "serverNameLiteral": quote_literal(config.name),
            "serverDescriptionLiteral": quote_literal(config.description),
            "mode": config.mode,
            "resourcesList": list_literal(self.capability_names(config, "resource")),
            "toolsList": list_literal(self.capability_names(config, "tool")),
            "authMiddleware": "authMiddleware, " if auth_enabled else "",
        }
        return self._templates.render_template("index_ts", context)

    def _routes(self, config: ServerConfig, role: McpType) -> str:
        names = HandlerNames()
        snippets = [
            self.route_snippet(endpoint, names.claim(handler_name(endpoint)), role)
            for endpoint in self.routable(config, role)
        ]
        template = "resource_routes" if role == "resource" else "tool_routes"
        return self._templates.render_template(template, {"imports": self.route_imports(), "routes": "\n\n".join(snippets)})

    def _auth(self, config: ServerConfig) -> str:
        auth = config.authentication
        context = {
            "authLocationLiteral": quote_literal(auth_location(auth)),
            "authNameLiteral": quote_literal(auth_key_name(auth)),
            "authSchemeLiteral": quote_literal(auth_scheme(auth)),
        }
        return self._templates.render_template("auth", context)


class TypeScriptProxyGenerator(TypeScriptGenerator):
    """Express server that forwards every route to an upstream API."""

    mode = "proxy"

    def build_files(self, config: ServerConfig) -> list[ServerFile]:
        self.require_target(config)
        return super().build_files(config)

    def extra_files(self, config: ServerConfig) -> list[ServerFile]:
        context = {
            "targetBaseUrlLiteral": quote_literal(config.target_base_url),
            "cacheEnabled": config.cache_enabled,
            "rateLimitingEnabled": config.rate_limiting_enabled,
        }
        content = self._templates.render_template("proxy_service", context)
        return [self.make_file("proxyService.ts", "/src/services", content)]

    def extra_env_variables(self, config: ServerConfig) -> list[str]:
        return self.proxy_env_variables(config)

    def route_imports(self) -> str:
        return "import { buildTargetPath, forwardRequest, sendProxyError } from '../services/proxyService';\n"

    def route_snippet(self, endpoint: Endpoint, name: str, role: McpType) -> str:
        return proxy_route(endpoint, name, role)
