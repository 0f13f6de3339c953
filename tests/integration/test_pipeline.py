"""End-to-end: definition text in, conformant server trees out."""

from __future__ import annotations

import pytest

from mcpgen.editor import EndpointEditor
from mcpgen.generators import generate_server_code, get_supported_languages
from mcpgen.generators.conformance import validate_generation_result
from mcpgen.importer.pipeline import merge_endpoint_mappings, parse_api_definition
from mcpgen.models import ApiFormat, AuthConfig, ServerConfig


MINIMAL_OPENAPI = """
openapi: 3.0.0
info:
  title: Widgets
  version: "1.0"
paths:
  /widgets:
    get:
      summary: List widgets
      responses:
        "200":
          description: OK
    post:
      summary: Create a widget
      responses:
        "201":
          description: Created
"""


def test_minimal_widgets_to_typescript() -> None:
    result = parse_api_definition(MINIMAL_OPENAPI)

    assert [(ep.method, ep.mcp_type) for ep in result.endpoints] == [("GET", "resource"), ("POST", "tool")]

    config = ServerConfig(name="Widgets", language="TypeScript", endpoints=result.endpoints)
    generated = generate_server_code(config)
    files = {f.full_path: f.content for f in generated.files}

    assert generated.success
    assert 'router.get("/widgets"' in files["src/routes/resourceRoutes.ts"]
    assert 'router.post("/widgets"' in files["src/routes/toolRoutes.ts"]
    assert not any(path.startswith("src/middleware/") for path in files)


@pytest.mark.parametrize(
    ("fixture_name", "filename", "expected_format", "expected_count"),
    [
        ("openapi3_text", "widgets.yaml", ApiFormat.OPENAPI3, 4),
        ("swagger2_text", "petstore.json", ApiFormat.OPENAPI2, 3),
        ("raml_text", "library.raml", ApiFormat.RAML, 5),
        ("blueprint_text", "notes.apib", ApiFormat.API_BLUEPRINT, 4),
    ],
)
def test_every_format_generates_every_language(
    request, fixture_name: str, filename: str, expected_format: ApiFormat, expected_count: int
) -> None:
    result = parse_api_definition(request.getfixturevalue(fixture_name), filename)

    assert result.validation.is_valid, result.validation.errors
    assert result.validation.format == expected_format
    assert len(result.endpoints) == expected_count

    for language in get_supported_languages():
        config = ServerConfig(
            name=f"{expected_format} server",
            language=language,
            authentication=AuthConfig(type="ApiKey"),
            endpoints=result.endpoints,
        )
        generated = generate_server_code(config)
        assert validate_generation_result(generated, language) == [], language


def test_roles_flow_into_typescript_routes(openapi3_text: str) -> None:
    endpoints = parse_api_definition(openapi3_text, "widgets.yaml").endpoints
    editor = EndpointEditor(endpoints)
    editor.set_role("get--widgets", "tool")
    editor.toggle_selection("delete--widgets--widgetId-")

    config = ServerConfig(name="Widgets", language="TypeScript", endpoints=editor.endpoints)
    files = {f.full_path: f.content for f in generate_server_code(config).files}
    resources = files["src/routes/resourceRoutes.ts"]
    tools = files["src/routes/toolRoutes.ts"]

    assert 'router.get("/widgets/:widgetId", function handle_get_widgets__widgetId_(' in resources
    assert 'router.get("/widgets", function handle_get_widgets(' in tools
    assert 'router.post("/widgets", function handle_post_widgets(' in tools
    assert "router.delete(" not in tools
    # Deselected endpoints still show up as capabilities
    assert '"DELETE /widgets/{widgetId}"' in files["src/index.ts"]


def test_duplicate_path_parameter_is_declared_once(openapi3_text: str) -> None:
    endpoints = parse_api_definition(openapi3_text, "widgets.yaml").endpoints
    assert [p.name for p in endpoints[2].parameters] == ["widgetId", "widgetId"]

    config = ServerConfig(name="Widgets", language="Python", endpoints=endpoints)
    resources = {f.full_path: f.content for f in generate_server_code(config).files}["routes/resources.py"]
    assert "async def get_widgets_widgetid(request: Request, widgetid: str)" in resources


def test_invalid_definition_extracts_nothing() -> None:
    result = parse_api_definition('{"openapi": "3.0.0", "info": {"title": "x"}}', "broken.json")

    assert result.validation.is_valid is False
    assert result.validation.format == ApiFormat.OPENAPI3
    assert result.endpoints == []


def test_unparseable_definition() -> None:
    result = parse_api_definition("{not json at all", "api.json")
    assert result.validation.is_valid is False
    assert result.validation.format is None
    assert result.validation.errors


def test_merge_keeps_saved_choices(openapi3_text: str) -> None:
    first = parse_api_definition(openapi3_text, "widgets.yaml").endpoints
    editor = EndpointEditor(first)
    editor.set_role("get--widgets", "none")
    editor.toggle_selection("post--widgets")
    saved = editor.endpoints

    changed = openapi3_text.replace("summary: List widgets", "summary: List all widgets")
    refreshed = parse_api_definition(changed, "widgets.yaml").endpoints
    merged = merge_endpoint_mappings(refreshed, saved)

    assert [ep.id for ep in merged] == [ep.id for ep in saved]
    assert merged[0].description == "List all widgets"
    assert merged[0].mcp_type == "none"
    assert merged[1].selected is False
    assert merged[2].mcp_type == "resource"


def test_merge_drops_vanished_endpoints(openapi3_text: str) -> None:
    saved = parse_api_definition(openapi3_text, "widgets.yaml").endpoints
    merged = merge_endpoint_mappings(saved[:2], saved)
    assert [(ep.method, ep.path) for ep in merged] == [("GET", "/widgets"), ("POST", "/widgets")]
