"""Shared pytest fixtures for the mcpgen test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from mcpgen.config import MCPGenConfig
from mcpgen.models import AuthConfig, Endpoint, Parameter, Response, ServerConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def mcpgen_config(tmp_path: Path) -> MCPGenConfig:
    """Return a test MCPGenConfig with no artificial deployment delays."""
    return MCPGenConfig(
        output_dir=str(tmp_path / "out"),
        store_db_path=str(tmp_path / "data" / "mcpgen.db"),
        deploy_delay_seconds=0.0,
        configure_delay_seconds=0.0,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def openapi3_text() -> str:
    """Widget API in OpenAPI 3 YAML."""
    return (FIXTURES_DIR / "widgets_openapi3.yaml").read_text(encoding="utf-8")


@pytest.fixture
def swagger2_text() -> str:
    """Petstore API in Swagger 2.0 JSON."""
    return (FIXTURES_DIR / "petstore_swagger2.json").read_text(encoding="utf-8")


@pytest.fixture
def raml_text() -> str:
    return (FIXTURES_DIR / "library.raml").read_text(encoding="utf-8")


@pytest.fixture
def blueprint_text() -> str:
    return (FIXTURES_DIR / "notes.apib").read_text(encoding="utf-8")


@pytest.fixture
def widget_endpoints() -> list[Endpoint]:
    """One resource and one tool on /widgets plus a path-parameter resource."""
    return [
        Endpoint(
            id="get--widgets",
            path="/widgets",
            method="GET",
            description="List widgets",
            parameters=[Parameter(name="limit", type="integer", description="Page size")],
            responses=[Response(status_code=200, description="A list of widgets")],
            mcp_type="resource",
        ),
        Endpoint(
            id="post--widgets",
            path="/widgets",
            method="POST",
            description="Create a widget",
            parameters=[Parameter(name="name", type="string", required=True)],
            responses=[Response(status_code=201, description="Created")],
            mcp_type="tool",
        ),
        Endpoint(
            id="get--widgets--id-",
            path="/widgets/{id}",
            method="GET",
            description="Get a widget",
            parameters=[Parameter(name="id", type="string", required=True)],
            mcp_type="resource",
        ),
    ]


@pytest.fixture
def make_config(widget_endpoints: list[Endpoint]):
    """Factory for ServerConfig objects over the widget endpoints."""

    def _make(**overrides) -> ServerConfig:
        values = {
            "name": "Widget Server",
            "description": "Serves widgets",
            "language": "TypeScript",
            "mode": "direct",
            "authentication": AuthConfig(),
            "endpoints": widget_endpoints,
        }
        values.update(overrides)
        return ServerConfig(**values)

    return _make
