"""
Application Configuration

Settings class using pydantic-settings for environment variable loading.
Defines storage layout, resource limits and render engine options.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For example, MAX_SOURCE_SIZE can be set via the MAX_SOURCE_SIZE env var.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="TSX Render API", description="Application name")
    service_name: str = Field(default="tsx-renderer", description="Service id reported by /health")
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="0.1.0", description="API version")

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address for `tsxrender serve`")
    port: int = Field(default=3000, description="Bind port for `tsxrender serve`")

    # Storage
    storage_path: str = Field(
        default="./data",
        alias="STORAGE_PATH",
        description="Root path holding the temp/ and outputs/ areas",
    )
    temp_dir_name: str = Field(default="temp", description="Job source files area")
    output_dir_name: str = Field(default="outputs", description="Rendered video area")
    project_temp_root: Optional[str] = Field(
        default=None,
        description="Parent directory for per-job temp projects (default: OS temp dir)",
    )
    project_dir_prefix: str = Field(
        default="remotion-render-",
        description="Name prefix of per-job temp project directories",
    )

    # Resource Limits
    max_source_size: int = Field(
        default=1024 * 1024,  # 1MB
        description="Maximum TSX source length in characters (default: 1MB)",
    )
    stale_file_max_age_seconds: int = Field(
        default=60 * 60,  # 1 hour
        description="Files older than this are removed by the sweep",
    )
    sweep_interval_seconds: int = Field(
        default=30 * 60,  # 30 minutes
        description="Period of the stale file sweep",
    )

    # Render engine (Remotion CLI)
    remotion_command: str = Field(
        default="npx remotion",
        description="Command used to invoke the Remotion CLI",
    )
    node_project_dir: str = Field(
        default=".",
        description="Node project whose node_modules provides remotion/react",
    )
    render_codec: str = Field(default="h264", description="Output codec")
    engine_log_level: str = Field(default="error", description="Remotion --log level")
    engine_timeout_seconds: Optional[int] = Field(
        default=None,
        description="Optional per-command timeout for the Remotion CLI",
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def storage_root(self) -> Path:
        return Path(self.storage_path).resolve()

    @property
    def temp_dir(self) -> Path:
        return self.storage_root / self.temp_dir_name

    @property
    def output_dir(self) -> Path:
        return self.storage_root / self.output_dir_name

    @property
    def project_root_dir(self) -> Path:
        """Directory under which per-job temp projects are created."""
        return Path(self.project_temp_root or tempfile.gettempdir())

    @property
    def node_modules_dir(self) -> Path:
        """Dependency resolution root handed to the bundler."""
        return (Path(self.node_project_dir) / "node_modules").resolve()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.

    Returns:
        Settings: Application settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.max_source_size)
        1048576
    """
    return Settings()
