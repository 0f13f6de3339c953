"""Pydantic settings for mcpgen loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class MCPGenConfig(BaseSettings):
    """Main mcpgen configuration loaded from MCPGEN_ prefixed environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MCPGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    # Import
    fetch_timeout_seconds: float = 30.0

    # Generation
    output_dir: str = "./mcp-server-output"

    # Deployment simulation
    deploy_delay_seconds: float = 2.0
    configure_delay_seconds: float = 1.0
    default_region: str = "us-east-1"

    # Record stores
    store_backend: str = "memory"  # "memory" | "sqlite"
    store_db_path: str = "./data/mcpgen.db"


def load_config() -> MCPGenConfig:
    """Load and return the mcpgen configuration.

    Returns:
        Populated MCPGenConfig instance.
    """
    return MCPGenConfig()
