"""Python / FastAPI server generators (direct and proxy modes)."""

from __future__ import annotations

from mcpgen.generators.base import (
    BaseGenerator,
    HandlerNames,
    auth_key_name,
    auth_location,
    auth_scheme,
    identifier_parts,
    list_literal,
    non_path_parameters,
    pascal_identifier,
    path_params,
    quote_literal,
    snake_identifier,
)
from mcpgen.models import Endpoint, McpType, Parameter, ServerConfig, ServerFile
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

# Names already taken inside generated handler signatures
_RESERVED = frozenset({"request", "body", "router", "status"})

_TYPE_MAP: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "array": "List[Any]",
    "object": "Dict[str, Any]",
}

_GETTING_STARTED = """```bash
python -m venv .venv
source .venv/bin/activate
pip install -r requirements.txt
cp .env.example .env
python main.py
```

Interactive API docs are served at `/docs` once the server is running."""


def python_type(param_type: str) -> str:
    return _TYPE_MAP.get(param_type, "Any")


def handler_name(endpoint: Endpoint) -> str:
    """snake_case handler name such as ``get_pets_pet_id``."""
    return snake_identifier("_".join(identifier_parts(endpoint.method, endpoint.path)), _RESERVED)


def model_name(endpoint: Endpoint) -> str:
    return pascal_identifier(identifier_parts(endpoint.method.lower(), endpoint.path)) + "Request"


def fastapi_path(path: str) -> str:
    """Route path whose placeholders are valid Python argument names."""
    converted = path
    for name in path_params(path):
        converted = converted.replace(f"{{{name}}}", f"{{{snake_identifier(name, _RESERVED)}}}")
    return converted


def _path_arguments(endpoint: Endpoint) -> list[str]:
    declared = {p.name: p for p in endpoint.parameters}
    arguments = []
    for name in path_params(endpoint.path):
        param = declared.get(name)
        arguments.append(f"{snake_identifier(name, _RESERVED)}: {python_type(param.type) if param else 'str'}")
    return arguments


def _query_argument(param: Parameter) -> str:
    safe = snake_identifier(param.name, _RESERVED)
    options = ["..."] if param.required else ["None"]
    if safe != param.name:
        options.append(f"alias={quote_literal(param.name)}")
    if param.description:
        options.append(f"description={quote_literal(param.description)}")
    annotation = python_type(param.type) if param.required else f"Optional[{python_type(param.type)}]"
    return f"{safe}: {annotation} = Query({', '.join(options)})"


def _signature(arguments: list[str]) -> str:
    if len(arguments) <= 2:
        return ", ".join(arguments)
    inner = "".join(f"    {argument},\n" for argument in arguments)
    return f"\n{inner}"


def _docstring(endpoint: Endpoint) -> str:
    summary = " ".join(endpoint.description.split()) or f"{endpoint.method} {endpoint.path}"
    return f"    {quote_literal(summary)}\n"


def resource_route(endpoint: Endpoint, name: str) -> str:
    """FastAPI GET handler echoing path and query data for a resource."""
    arguments = ["request: Request", *_path_arguments(endpoint)]
    arguments += [_query_argument(p) for p in non_path_parameters(endpoint)]
    return (
        f"@router.get({quote_literal(fastapi_path(endpoint.path))})\n"
        f"async def {name}({_signature(arguments)}) -> Dict[str, Any]:\n"
        f"{_docstring(endpoint)}"
        "    return {\n"
        '        "success": True,\n'
        '        "data": {\n'
        f'            "id": {quote_literal(endpoint.path)},\n'
        '            "params": dict(request.path_params),\n'
        '            "query": dict(request.query_params),\n'
        f'            "content": [{{"type": "text", "text": {quote_literal(f"Sample resource data for {endpoint.path}")}}}],\n'
        "        },\n"
        "    }"
    )


def request_model(endpoint: Endpoint, name: str) -> str:
    """Pydantic request model for a tool's body parameters."""
    lines = [f"class {name}(BaseModel):"]
    for param in non_path_parameters(endpoint):
        safe = snake_identifier(param.name, _RESERVED)
        options = ["..."] if param.required else ["None"]
        if safe != param.name:
            options.append(f"alias={quote_literal(param.name)}")
        if param.description:
            options.append(f"description={quote_literal(param.description)}")
        annotation = python_type(param.type) if param.required else f"Optional[{python_type(param.type)}]"
        lines.append(f"    {safe}: {annotation} = Field({', '.join(options)})")
    return "\n".join(lines)


def tool_route(endpoint: Endpoint, name: str, body_model: str | None) -> str:
    """FastAPI handler with the endpoint's method echoing the request body for a tool."""
    arguments = ["request: Request", *_path_arguments(endpoint)]
    if body_model:
        arguments.append(f"body: {body_model}")
        request_data = "body.model_dump(by_alias=True)"
    else:
        arguments.append("body: Optional[Dict[str, Any]] = Body(None)")
        request_data = "body"
    return (
        f"@router.{endpoint.method.lower()}({quote_literal(fastapi_path(endpoint.path))})\n"
        f"async def {name}({_signature(arguments)}) -> Dict[str, Any]:\n"
        f"{_docstring(endpoint)}"
        "    return {\n"
        '        "success": True,\n'
        '        "result": {\n'
        f'            "id": {quote_literal(endpoint.path)},\n'
        '            "params": dict(request.path_params),\n'
        f'            "requestData": {request_data},\n'
        f'            "content": [{{"type": "text", "text": {quote_literal(f"Sample tool result for {endpoint.path}")}}}],\n'
        "        },\n"
        "    }"
    )


def proxy_route(endpoint: Endpoint, name: str, role: McpType) -> str:
    """FastAPI handler forwarding to the upstream API."""
    arguments = ["request: Request", *_path_arguments(endpoint)]
    substitutions = ", ".join(
        f"{quote_literal(param)}: {snake_identifier(param, _RESERVED)}" for param in path_params(endpoint.path)
    )
    if role == "resource":
        decorator = "get"
        envelope_key = "data"
        body_arg = ""
    else:
        decorator = endpoint.method.lower()
        envelope_key = "result"
        arguments.append("body: Optional[Dict[str, Any]] = Body(None)")
        body_arg = "        body=body,\n"
    return (
        f"@router.{decorator}({quote_literal(fastapi_path(endpoint.path))})\n"
        f"async def {name}({_signature(arguments)}) -> Dict[str, Any]:\n"
        f"{_docstring(endpoint)}"
        "    upstream = await forward_request(\n"
        f"        {quote_literal(endpoint.method)},\n"
        f"        build_target_path({quote_literal(endpoint.path)}, {{{substitutions}}}),\n"
        "        params=dict(request.query_params),\n"
        f"{body_arg}"
        "    )\n"
        "    return {\n"
        '        "success": True,\n'
        f'        "{envelope_key}": {{\n'
        f'            "id": {quote_literal(endpoint.path)},\n'
        '            "params": dict(request.path_params),\n'
        '            "content": [{"type": "text", "text": json.dumps(upstream)}],\n'
        "        },\n"
        "    }"
    )


class PythonGenerator(BaseGenerator):
    """FastAPI server whose routes return sample MCP payloads."""

    language = "Python"
    mode = "direct"
    template_group = "python"
    default_port = 8000

    def build_files(self, config: ServerConfig) -> list[ServerFile]:
        auth_enabled = config.authentication.enabled
        files = [
            self.make_file("main.py", "/", self._main_py(config)),
            self.make_file("requirements.txt", "/", self._requirements(), "config"),
            self.make_file("__init__.py", "/routes", ""),
            self.make_file("resources.py", "/routes", self._routes(config, "resource")),
            self.make_file("tools.py", "/routes", self._routes(config, "tool")),
        ]
        if auth_enabled:
            files.append(self.make_file("__init__.py", "/middleware", ""))
            files.append(self.make_file("auth.py", "/middleware", self._auth(config)))
        files.extend(self.extra_files(config))
        files.append(self.readme_file(config, _GETTING_STARTED))
        files.append(self.env_file(config, self.extra_env_variables(config)))
        return files

    def extra_files(self, config: ServerConfig) -> list[ServerFile]:
        return []

    def extra_env_variables(self, config: ServerConfig) -> list[str]:
        return []

    def extra_requirements(self) -> list[str]:
        return []

    def route_imports(self) -> str:
        return ""

    def route_snippets(self, endpoint: Endpoint, name: str, role: McpType, models: HandlerNames) -> list[str]:
        """Source blocks for one endpoint (a request model may precede the handler)."""
        if role == "resource":
            return [resource_route(endpoint, name)]
        if non_path_parameters(endpoint):
            body_model = models.claim(model_name(endpoint))
            return [request_model(endpoint, body_model), tool_route(endpoint, name, body_model)]
        return [tool_route(endpoint, name, None)]

    def _requirements(self) -> str:
        return self._templates.render_template("requirements", {"extraRequirements": "\n".join(self.extra_requirements())})

    def _main_py(self, config: ServerConfig) -> str:
        auth_enabled = config.authentication.enabled
        dependencies = ", dependencies=[Depends(api_key_auth)]" if auth_enabled else ""
        registration = (
            f'app.include_router(resources_router, prefix="/resources", tags=["resources"]{dependencies})\n'
            f'app.include_router(tools_router, prefix="/tools", tags=["tools"]{dependencies})'
        )
        context = {
            "fastapiImports": ", Depends" if auth_enabled else "",
            "authImport": "from middleware.auth import api_key_auth\n" if auth_enabled else "",
            "serverNameLiteral": quote_literal(config.name),
            "serverDescriptionLiteral": quote_literal(config.description),
            "mode": config.mode,
            "resourcesList": list_literal(self.capability_names(config, "resource")),
            "toolsList": list_literal(self.capability_names(config, "tool")),
            "routerRegistration": registration,
        }
        return self._templates.render_template("main_py", context)

    def _routes(self, config: ServerConfig, role: McpType) -> str:
        names = HandlerNames()
        models = HandlerNames()
        blocks: list[str] = []
        for endpoint in self.routable(config, role):
            blocks.extend(self.route_snippets(endpoint, names.claim(handler_name(endpoint)), role, models))
        template = "resource_routes" if role == "resource" else "tool_routes"
        return self._templates.render_template(template, {"imports": self.route_imports(), "routes": "\n\n\n".join(blocks)})

    def _auth(self, config: ServerConfig) -> str:
        auth = config.authentication
        context = {
            "authLocationLiteral": quote_literal(auth_location(auth)),
            "authNameLiteral": quote_literal(auth_key_name(auth)),
            "authSchemeLiteral": quote_literal(auth_scheme(auth)),
        }
        return self._templates.render_template("auth", context)


class PythonProxyGenerator(PythonGenerator):
    """FastAPI server that forwards every route to an upstream API with httpx."""

    mode = "proxy"

    def build_files(self, config: ServerConfig) -> list[ServerFile]:
        self.require_target(config)
        return super().build_files(config)

    def extra_files(self, config: ServerConfig) -> list[ServerFile]:
        context = {
            "targetBaseUrlLiteral": quote_literal(config.target_base_url),
            "cacheEnabled": "True" if config.cache_enabled else "False",
            "rateLimitingEnabled": "True" if config.rate_limiting_enabled else "False",
        }
        return [
            self.make_file("__init__.py", "/services", ""),
            self.make_file("proxy.py", "/services", self._templates.render_template("proxy_service", context)),
        ]

    def extra_env_variables(self, config: ServerConfig) -> list[str]:
        return self.proxy_env_variables(config)

    def extra_requirements(self) -> list[str]:
        return ["httpx>=0.27.0"]

    def route_imports(self) -> str:
        return "\nimport json\n\nfrom services.proxy import build_target_path, forward_request\n"

    def route_snippets(self, endpoint: Endpoint, name: str, role: McpType, models: HandlerNames) -> list[str]:
        return [proxy_route(endpoint, name, role)]
