"""Demo script walking the widget API from definition to simulated deployment."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Imports a definition, edits the endpoint mapping, generates a TypeScript
# server and deploys it with the in-memory stores.
# Usage: python examples/demo.py [definition] [output_dir]
# ---------------------------------------------------------------------------

DEFAULT_DEFINITION = Path(__file__).parent.parent / "tests" / "fixtures" / "widgets_openapi3.yaml"


async def demo(definition_path: Path, output_dir: str) -> None:
    """Run a scripted mcpgen workflow demonstration."""
    from mcpgen.__main__ import write_server_files
    from mcpgen.config import load_config
    from mcpgen.editor import EndpointEditor
    from mcpgen.models import AuthConfig, HostingConfig, ServerConfig
    from mcpgen.projects import ProjectService
    from mcpgen.utils.logging import setup_logging

    setup_logging("WARNING")
    config = load_config()
    config.store_backend = "memory"
    service = await ProjectService.from_config(config)

    print("=" * 60)
    print("mcpgen Demo Flow")
    print("=" * 60)

    # Step 1: Import
    print(f"\n[1] import_definition('{definition_path.name}')")
    definition = await service.import_definition(
        "demo", definition_path.stem, definition_path.read_text(encoding="utf-8"), definition_path.name
    )
    print(f"  Format: {definition.format}")
    for endpoint in definition.endpoint_definition or []:
        print(f"    {endpoint.method:7} {endpoint.path} -> {endpoint.mcp_type}")

    # Step 2: Edit the mapping
    print("\n[2] Deselect every DELETE endpoint")
    editor = EndpointEditor(definition.endpoint_definition)
    for endpoint in editor.endpoints:
        if endpoint.method == "DELETE":
            editor.toggle_selection(endpoint.id)
    definition = await service.save_endpoint_mappings(definition.id, editor.endpoints)
    selected = [ep for ep in definition.endpoint_definition or [] if ep.selected]
    print(f"  {len(selected)} of {len(definition.endpoint_definition or [])} endpoints selected")

    # Step 3: Generate
    server_config = ServerConfig(
        name=f"{definition.name} MCP Server",
        language="TypeScript",
        authentication=AuthConfig(type="ApiKey"),
        hosting=HostingConfig(provider="AWS", type="Serverless", region="eu-west-1"),
    )
    record = await service.save_server_config("demo", server_config)
    server_config = await service.load_server_config(record.id, definition.id)

    print(f"\n[3] generate('{server_config.language}')")
    result = service.generate(server_config)
    if not result.success:
        print(f"  Generation failed: {result.error}")
        return
    for path in write_server_files(result.files or [], output_dir):
        print(f"    {path}")

    # Step 4: Deploy
    print("\n[4] deploy()")
    deployment = await service.deploy(
        "demo",
        record.id,
        server_config,
        on_status=lambda status, progress, message: print(f"  [{progress:3d}%] {status}: {message}"),
    )
    print(f"  Status: {deployment.status}")
    if deployment.server_url:
        print(f"  URL: {deployment.server_url}")
    print(f"  Files: {json.loads(deployment.logs or '{}').get('files', [])}")

    print("\n" + "=" * 60)
    print(f"Demo complete. Generated server written to {output_dir}")
    print("=" * 60)


if __name__ == "__main__":
    source = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_DEFINITION
    target = sys.argv[2] if len(sys.argv) > 2 else "./demo-output"
    asyncio.run(demo(source, target))
