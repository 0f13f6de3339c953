"""Unit tests for the Python / FastAPI generators."""

from __future__ import annotations

import ast

import pytest

from mcpgen.generators.python import (
    PythonGenerator,
    PythonProxyGenerator,
    fastapi_path,
    handler_name,
    model_name,
    python_type,
)
from mcpgen.models import AuthConfig, Endpoint, Parameter


def _files(result) -> dict[str, str]:
    return {f.full_path: f.content for f in result.files}


def test_handler_and_model_names() -> None:
    endpoint = Endpoint(path="/pets/{petId}", method="POST")
    assert handler_name(endpoint) == "post_pets_petid"
    assert model_name(endpoint) == "PostPetsPetIdRequest"


def test_fastapi_path_uses_safe_argument_names() -> None:
    assert fastapi_path("/orgs/{org-id}/repos/{class}") == "/orgs/{org_id}/repos/{class_}"


@pytest.mark.parametrize(
    ("param_type", "expected"),
    [("string", "str"), ("integer", "int"), ("number", "float"), ("array", "List[Any]"), ("file", "Any")],
)
def test_python_type(param_type: str, expected: str) -> None:
    assert python_type(param_type) == expected


def test_direct_server_layout(make_config) -> None:
    result = PythonGenerator().generate_server(make_config(language="Python"))

    assert result.success
    assert sorted(_files(result)) == [
        ".env.example",
        "README.md",
        "main.py",
        "requirements.txt",
        "routes/__init__.py",
        "routes/resources.py",
        "routes/tools.py",
    ]


def test_generated_python_parses(make_config) -> None:
    for auth in (AuthConfig(), AuthConfig(type="ApiKey", location="query")):
        files = _files(PythonGenerator().generate_server(make_config(language="Python", authentication=auth)))
        for path, content in files.items():
            if path.endswith(".py"):
                ast.parse(content, filename=path)


def test_resource_handlers(make_config) -> None:
    resources = _files(PythonGenerator().generate_server(make_config(language="Python")))["routes/resources.py"]

    assert '@router.get("/widgets")' in resources
    assert (
        "async def get_widgets(request: Request, "
        'limit: Optional[int] = Query(None, description="Page size")) -> Dict[str, Any]:'
    ) in resources
    assert "async def get_widgets_id(request: Request, id: str) -> Dict[str, Any]:" in resources
    assert "post_widgets" not in resources


def test_tool_handler_uses_request_model(make_config) -> None:
    tools = _files(PythonGenerator().generate_server(make_config(language="Python")))["routes/tools.py"]

    assert "class PostWidgetsRequest(BaseModel):\n    name: str = Field(...)" in tools
    assert "async def post_widgets(request: Request, body: PostWidgetsRequest) -> Dict[str, Any]:" in tools
    assert '"requestData": body.model_dump(by_alias=True),' in tools


def test_awkward_parameter_names_get_aliases(make_config) -> None:
    endpoint = Endpoint(
        id="get--search",
        path="/search",
        method="GET",
        parameters=[Parameter(name="page-size", type="integer", required=True)],
        mcp_type="resource",
    )
    files = _files(PythonGenerator().generate_server(make_config(language="Python", endpoints=[endpoint])))
    resources = files["routes/resources.py"]
    assert 'page_size: int = Query(..., alias="page-size")' in resources
    ast.parse(resources)


def test_auth_dependency(make_config) -> None:
    files = _files(
        PythonGenerator().generate_server(
            make_config(language="Python", authentication=AuthConfig(type="ApiKey", name="X-Token"))
        )
    )
    assert 'AUTH_KEY_NAME = "X-Token"' in files["middleware/auth.py"]
    assert "middleware/__init__.py" in files
    assert "from fastapi import FastAPI, Depends" in files["main.py"]
    assert 'prefix="/tools", tags=["tools"], dependencies=[Depends(api_key_auth)])' in files["main.py"]


def test_proxy_server(make_config) -> None:
    config = make_config(language="Python", mode="proxy", target_base_url="https://api.example.com/v1")
    result = PythonProxyGenerator().generate_server(config)

    assert result.success
    files = _files(result)
    assert "services/proxy.py" in files
    assert "httpx>=0.27.0" in files["requirements.txt"]
    assert 'build_target_path("/widgets/{id}", {"id": id})' in files["routes/resources.py"]
    for path, content in files.items():
        if path.endswith(".py"):
            ast.parse(content, filename=path)


def test_proxy_requires_target(make_config) -> None:
    result = PythonProxyGenerator().generate_server(make_config(language="Python", mode="proxy"))
    assert result.success is False


def test_non_bmp_description_encodes_as_utf8(make_config) -> None:
    files = _files(PythonGenerator().generate_server(make_config(language="Python", description="Widget API \U0001F680")))

    tree = ast.parse(files["main.py"])
    strings = [node.value for node in ast.walk(tree) if isinstance(node, ast.Constant) and isinstance(node.value, str)]
    assert "Widget API \U0001F680" in strings
    for value in strings:
        value.encode("utf-8")
