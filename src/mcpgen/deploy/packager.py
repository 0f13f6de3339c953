"""Provider manifests and the simulated deployment of a generated server."""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from mcpgen.config import MCPGenConfig
from mcpgen.errors import DeploymentError
from mcpgen.models import Deployment, ServerConfig, ServerFile
from mcpgen.utils.logging import get_logger

logger = get_logger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"

StatusCallback = Callable[[str, int, str], None]

_RUNTIMES: dict[str, dict[str, str]] = {
    "TypeScript": {"lambda": "nodejs18.x", "handler": "dist/index.handler", "app_engine": "nodejs18"},
    "Python": {"lambda": "python3.11", "handler": "handler.handler", "app_engine": "python311"},
    "Go": {"lambda": "provided.al2", "handler": "bootstrap", "app_engine": "go121"},
}

_PORTS: dict[str, int] = {"TypeScript": 3000, "Python": 8000, "Go": 8080}

_DEFAULT_URL = "https://mcp-server.example.com"


def service_name(config: ServerConfig) -> str:
    """DNS-safe slug of the server name used in manifests."""
    return re.sub(r"[^a-z0-9-]+", "-", config.name.lower()).strip("-") or "mcp-server"


def mock_server_url(provider: str, region: str) -> str:
    """URL reported for a simulated deployment to ``provider``."""
    urls = {
        "AWS": f"https://api-{region}.amazonaws.com/mcp-server",
        "GCP": "https://mcp-server-dot-project.appspot.com",
        "Azure": f"https://mcp-server-{region}.azurewebsites.net",
        "Supabase": "https://xyzabc123.supabase.co/functions/v1/mcp-server",
        "Self-hosted": _DEFAULT_URL,
    }
    return urls.get(provider, _DEFAULT_URL)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


class DeploymentPackager:
    """Adds hosting manifests to a generated tree and simulates its rollout."""

    def __init__(
        self,
        deploy_delay_seconds: float = 2.0,
        configure_delay_seconds: float = 1.0,
        default_region: str = "us-east-1",
    ) -> None:
        """Initialize the packager.

        Args:
            deploy_delay_seconds: Simulated upload time.
            configure_delay_seconds: Simulated post-deploy configuration time.
            default_region: Region used when the hosting config has none.
        """
        self._deploy_delay = deploy_delay_seconds
        self._configure_delay = configure_delay_seconds
        self._default_region = default_region
        self._env = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    @classmethod
    def from_config(cls, config: MCPGenConfig) -> DeploymentPackager:
        return cls(
            deploy_delay_seconds=config.deploy_delay_seconds,
            configure_delay_seconds=config.configure_delay_seconds,
            default_region=config.default_region,
        )

    def region(self, config: ServerConfig) -> str:
        return config.hosting.region or self._default_region

    def _context(self, config: ServerConfig) -> dict[str, Any]:
        port = _PORTS.get(config.language, 3000)
        environment = [{"name": "PORT", "value": str(port)}]
        if config.authentication.enabled:
            environment.append({"name": "API_KEY", "value": "change-me"})
        return {
            "service_name": service_name(config),
            "language": config.language,
            "runtime": _RUNTIMES.get(config.language, _RUNTIMES["TypeScript"]),
            "region": self.region(config),
            "port": port,
            "auth_enabled": config.authentication.enabled,
            "environment": environment,
        }

    def _render(self, template_name: str, context: dict[str, Any]) -> str:
        try:
            return self._env.get_template(f"{template_name}.j2").render(**context)
        except Exception as exc:
            raise DeploymentError(f"Failed to render {template_name}: {exc}") from exc

    def manifest_files(self, config: ServerConfig) -> list[ServerFile]:
        """Provider-specific manifests chosen by hosting provider and type.

        Args:
            config: Server configuration with hosting settings.

        Returns:
            Manifest files to add at the root of the generated tree.

        Raises:
            DeploymentError: If a manifest template fails to render.
        """
        hosting = config.hosting
        if hosting.provider == "AWS" and hosting.type == "Serverless":
            names = ["serverless.yml", "deploy.sh"]
        elif hosting.provider == "AWS":
            names = ["ecs-task-definition.json"]
        elif hosting.provider == "GCP":
            names = ["app.yaml"]
        elif hosting.provider == "Azure":
            names = ["host.json"]
        else:
            names = ["docker-compose.yml"]

        context = self._context(config)
        return [ServerFile(name=name, path="/", content=self._render(name, context), type="config") for name in names]

    def package(self, config: ServerConfig, files: list[ServerFile]) -> list[ServerFile]:
        """Return the generated files followed by the hosting manifests."""
        return [*files, *self.manifest_files(config)]

    async def deploy(
        self,
        config: ServerConfig,
        files: list[ServerFile],
        deployment_id: str,
        on_status: StatusCallback | None = None,
        project_id: str = "",
        configuration_id: str = "",
    ) -> Deployment:
        """Simulate a deployment and report progress through ``on_status``.

        Steps are preparing (10), deploying (30), configuring (70) and
        success (100). Any failure is reported as ``failed`` (0) and returned
        as a failed record.

        Args:
            config: Server configuration with hosting settings.
            files: Generated server files.
            deployment_id: Id of the deployment record being driven.
            on_status: Optional ``(status, progress, message)`` callback.
            project_id: Owning project of the record.
            configuration_id: Server configuration the record belongs to.

        Returns:
            Deployment record with status ``success`` or ``failed``.
        """

        def _report(status: str, progress: int, message: str) -> None:
            logger.info("deployment_status", deployment_id=deployment_id, status=status, progress=progress)
            if on_status is not None:
                on_status(status, progress, message)

        try:
            _report("preparing", 10, "Preparing deployment files...")
            packaged = self.package(config, files)

            _report("deploying", 30, "Deploying to cloud provider...")
            await asyncio.sleep(self._deploy_delay)
            server_url = mock_server_url(config.hosting.provider, self.region(config))

            _report("configuring", 70, "Configuring and starting services...")
            await asyncio.sleep(self._configure_delay)

            _report("success", 100, "Deployment successful!")
        except Exception as exc:  # noqa: BLE001
            logger.error("deployment_failed", deployment_id=deployment_id, error=str(exc))
            if on_status is not None:
                on_status("failed", 0, f"Deployment failed: {exc}")
            return Deployment(
                id=deployment_id,
                project_id=project_id,
                configuration_id=configuration_id,
                status="failed",
                logs=json.dumps({"timestamp": _timestamp(), "error": str(exc), "type": type(exc).__name__}),
            )

        logs = {
            "timestamp": _timestamp(),
            "steps": [
                {"name": "prepare", "status": "success"},
                {"name": "deploy", "status": "success"},
                {"name": "configure", "status": "success"},
            ],
            "files": [f.full_path for f in packaged],
            "message": "Deployment completed successfully",
        }
        return Deployment(
            id=deployment_id,
            project_id=project_id,
            configuration_id=configuration_id,
            status="success",
            server_url=server_url,
            logs=json.dumps(logs),
        )
