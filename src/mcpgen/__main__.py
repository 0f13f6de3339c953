"""mcpgen CLI entry point: `inspect`, `generate`, `deploy` and `languages` commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from mcpgen.config import load_config
from mcpgen.errors import MCPGenError
from mcpgen.models import ServerConfig, ServerFile
from mcpgen.utils.logging import get_logger, setup_logging


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="mcpgen",
        description="mcpgen: turn an API definition into a runnable MCP server",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    inspect_parser = subparsers.add_parser("inspect", help="Validate a definition and list its endpoints")
    inspect_parser.add_argument("source", help="Path or http(s) URL of the API definition")
    inspect_parser.add_argument("--filename", default=None, help="File name used as a format hint")
    inspect_parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra request header for URL sources (repeatable)",
    )

    generate_parser = subparsers.add_parser("generate", help="Generate server code from a JSON server config")
    generate_parser.add_argument("config", help="Path to a ServerConfig JSON file")
    generate_parser.add_argument("output_dir", help="Directory to write the generated files into")
    generate_parser.add_argument(
        "--definition",
        default=None,
        help="API definition whose endpoints replace those in the config",
    )

    deploy_parser = subparsers.add_parser("deploy", help="Generate, package and run a simulated deployment")
    deploy_parser.add_argument("config", help="Path to a ServerConfig JSON file")
    deploy_parser.add_argument("--definition", default=None, help="API definition supplying the endpoints")

    languages_parser = subparsers.add_parser("languages", help="List supported target languages")
    languages_parser.add_argument("--mode", choices=["direct", "proxy"], default="direct")

    return parser


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            raise MCPGenError(f"Invalid header {value!r}, expected NAME:VALUE")
        headers[name.strip()] = header_value.strip()
    return headers


def _load_server_config(path: str) -> ServerConfig:
    try:
        return ServerConfig.model_validate_json(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise MCPGenError(f"Cannot read config file {path}: {exc}") from exc
    except ValidationError as exc:
        raise MCPGenError(f"Invalid server config {path}: {exc}") from exc


async def _with_definition(config: ServerConfig, definition: str | None) -> ServerConfig:
    """Replace the config's endpoints with those extracted from ``definition``."""
    if definition is None:
        return config

    from mcpgen.importer.fetcher import fetch_definition  # noqa: PLC0415
    from mcpgen.importer.pipeline import parse_api_definition  # noqa: PLC0415

    fetched = await fetch_definition(definition, timeout=load_config().fetch_timeout_seconds)
    result = parse_api_definition(fetched.content, fetched.filename)
    if not result.validation.is_valid:
        raise MCPGenError("Invalid API definition: " + "; ".join(result.validation.errors))
    return config.model_copy(update={"endpoints": result.endpoints})


def write_server_files(files: list[ServerFile], output_dir: str) -> list[Path]:
    """Write every file to ``output_dir/<path>/<name>``.

    Args:
        files: Generated files.
        output_dir: Root directory, created when missing.

    Returns:
        Paths written, in file-list order.
    """
    root = Path(output_dir)
    written: list[Path] = []
    for server_file in files:
        target = root / server_file.full_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(server_file.content, encoding="utf-8")
        written.append(target)
    return written


async def _cmd_inspect(args: argparse.Namespace) -> int:
    """Execute the inspect command.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Exit code (0 = valid definition).
    """
    from mcpgen.importer.fetcher import fetch_definition  # noqa: PLC0415
    from mcpgen.importer.pipeline import parse_api_definition  # noqa: PLC0415

    config = load_config()
    fetched = await fetch_definition(
        args.source,
        headers=_parse_headers(args.header),
        timeout=config.fetch_timeout_seconds,
    )
    result = parse_api_definition(fetched.content, args.filename or fetched.filename)
    validation = result.validation

    report = {
        "source": fetched.source,
        "valid": validation.is_valid,
        "format": str(validation.format) if validation.format else None,
        "classifiedByFallback": validation.classified_by_fallback,
        "errors": validation.errors,
        "endpoints": [ep.model_dump(mode="json", by_alias=True) for ep in result.endpoints],
    }
    print(json.dumps(report, indent=2))
    return 0 if validation.is_valid else 1


async def _cmd_generate(args: argparse.Namespace) -> int:
    """Execute the generate command.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Exit code (0 = success).
    """
    from mcpgen.generators.factory import generate_server_code  # noqa: PLC0415

    logger = get_logger(__name__)
    server_config = await _with_definition(_load_server_config(args.config), args.definition)
    result = generate_server_code(server_config)
    if not result.success:
        print(f"Error generating server: {result.error}", file=sys.stderr)
        return 1

    written = write_server_files(result.files or [], args.output_dir)
    logger.info("server_written", output_dir=args.output_dir, files=len(written))
    print(f"Generated {len(written)} files in {args.output_dir}")
    for path in written:
        print(f"  {path}")
    return 0


async def _cmd_deploy(args: argparse.Namespace) -> int:
    """Execute the deploy command.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Exit code (0 = deployment succeeded).
    """
    from mcpgen.deploy.packager import DeploymentPackager  # noqa: PLC0415
    from mcpgen.generators.factory import generate_server_code  # noqa: PLC0415
    from mcpgen.utils.ids import random_id  # noqa: PLC0415

    server_config = await _with_definition(_load_server_config(args.config), args.definition)
    result = generate_server_code(server_config)
    if not result.success:
        print(f"Error generating server: {result.error}", file=sys.stderr)
        return 1

    def _print_status(status: str, progress: int, message: str) -> None:
        print(f"[{progress:3d}%] {status}: {message}")

    packager = DeploymentPackager.from_config(load_config())
    deployment = await packager.deploy(server_config, result.files or [], random_id(), on_status=_print_status)
    if deployment.status != "success":
        print(f"Deployment failed: {deployment.logs}", file=sys.stderr)
        return 1

    print(f"Deployed to {deployment.server_url}")
    return 0


async def _cmd_languages(args: argparse.Namespace) -> int:
    from mcpgen.generators.factory import get_supported_languages  # noqa: PLC0415

    for language in get_supported_languages(args.mode):
        print(language)
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point invoked by `mcpgen` script or `python -m mcpgen`."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Load config early for log level
    try:
        config = load_config()
        setup_logging(config.log_level)
    except Exception:  # noqa: BLE001
        setup_logging("INFO")

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    command_map = {
        "inspect": _cmd_inspect,
        "generate": _cmd_generate,
        "deploy": _cmd_deploy,
        "languages": _cmd_languages,
    }

    handler = command_map.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = asyncio.run(handler(args))
    except MCPGenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
