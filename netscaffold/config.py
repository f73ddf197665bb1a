"""netscaffold configuration.

Centralised, typed configuration for the scaffolding service. All settings use
Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


_TRUTHY = {"1", "true", "yes", "on"}


class DotNetConfig(BaseModel):
    """Settings for the external ``dotnet`` CLI."""

    executable: str = Field(default="dotnet")
    default_framework: str = Field(default="net8.0")
    command_timeout: int = Field(
        default=60, ge=5, description="Per-command timeout in seconds"
    )
    install_timeout: int = Field(
        default=300, ge=30, description="Timeout of the SDK install script in seconds"
    )
    install_script_url: str = Field(default="https://dot.net/v1/dotnet-install.sh")
    install_script_url_windows: str = Field(default="https://dot.net/v1/dotnet-install.ps1")


class NetScaffoldConfig(BaseModel):
    """Global service configuration.

    One instance is created by the application factory and stored on
    ``app.state``; scaffolder components receive it through their
    constructors.
    """

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    work_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "netscaffold"
    )
    cleanup_delay: float = Field(
        default=60.0, ge=0, description="Seconds before a downloaded scaffold is deleted"
    )
    cors_origin: str = Field(default="*")
    enable_dev_routes: bool = Field(default=False)
    max_entities: int = Field(default=50, ge=1)
    dotnet: DotNetConfig = Field(default_factory=DotNetConfig)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def archives_dir(self) -> Path:
        """Directory holding per-request scaffold workspaces."""
        return self.work_dir / "scaffolds"

    def ensure_directories(self) -> None:
        """Create the working directories if they do not exist."""
        self.archives_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "NetScaffoldConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "NetScaffoldConfig":
        """Build a ``NetScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            NETSCAFFOLD_HOST, NETSCAFFOLD_PORT, NETSCAFFOLD_WORK_DIR,
            NETSCAFFOLD_CLEANUP_DELAY, NETSCAFFOLD_CORS_ORIGIN,
            NETSCAFFOLD_ENABLE_DEV_ROUTES, NETSCAFFOLD_MAX_ENTITIES,
            NETSCAFFOLD_DOTNET_BIN, NETSCAFFOLD_DEFAULT_FRAMEWORK,
            NETSCAFFOLD_COMMAND_TIMEOUT, NETSCAFFOLD_INSTALL_TIMEOUT.
        """
        dotnet_kwargs: dict[str, Any] = {}
        if os.environ.get("NETSCAFFOLD_DOTNET_BIN"):
            dotnet_kwargs["executable"] = os.environ["NETSCAFFOLD_DOTNET_BIN"]
        if os.environ.get("NETSCAFFOLD_DEFAULT_FRAMEWORK"):
            dotnet_kwargs["default_framework"] = os.environ["NETSCAFFOLD_DEFAULT_FRAMEWORK"]
        if os.environ.get("NETSCAFFOLD_COMMAND_TIMEOUT"):
            dotnet_kwargs["command_timeout"] = int(os.environ["NETSCAFFOLD_COMMAND_TIMEOUT"])
        if os.environ.get("NETSCAFFOLD_INSTALL_TIMEOUT"):
            dotnet_kwargs["install_timeout"] = int(os.environ["NETSCAFFOLD_INSTALL_TIMEOUT"])

        kwargs: dict[str, Any] = {"dotnet": DotNetConfig(**dotnet_kwargs)}
        if os.environ.get("NETSCAFFOLD_HOST"):
            kwargs["host"] = os.environ["NETSCAFFOLD_HOST"]
        if os.environ.get("NETSCAFFOLD_PORT"):
            kwargs["port"] = int(os.environ["NETSCAFFOLD_PORT"])
        if os.environ.get("NETSCAFFOLD_WORK_DIR"):
            kwargs["work_dir"] = Path(os.environ["NETSCAFFOLD_WORK_DIR"])
        if os.environ.get("NETSCAFFOLD_CLEANUP_DELAY"):
            kwargs["cleanup_delay"] = float(os.environ["NETSCAFFOLD_CLEANUP_DELAY"])
        if os.environ.get("NETSCAFFOLD_CORS_ORIGIN"):
            kwargs["cors_origin"] = os.environ["NETSCAFFOLD_CORS_ORIGIN"]
        if os.environ.get("NETSCAFFOLD_ENABLE_DEV_ROUTES"):
            kwargs["enable_dev_routes"] = (
                os.environ["NETSCAFFOLD_ENABLE_DEV_ROUTES"].strip().lower() in _TRUTHY
            )
        if os.environ.get("NETSCAFFOLD_MAX_ENTITIES"):
            kwargs["max_entities"] = int(os.environ["NETSCAFFOLD_MAX_ENTITIES"])

        return cls(**kwargs)
