"""create-absolute runtime settings.

Everything the scaffolder would otherwise read from the process environment
(tool locations, timeouts, retry policy) is resolved once into a
``ScaffoldSettings`` instance and passed explicitly to every stage.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

# Docker Desktop does not always put ``docker`` on PATH for new shells.
WINDOWS_DOCKER_PATH = r"C:\Program Files\Docker\Docker\resources\bin\docker.exe"


class ToolSettings(BaseModel):
    """Locations of the external executables the scaffolder drives."""

    docker_executable: str = Field(default="docker")
    git_executable: str = Field(default="git")


class TimeoutSettings(BaseModel):
    """Per-command timeouts in seconds."""

    command: float = Field(default=120, gt=0, description="git and pre-flight checks")
    install: float = Field(default=600, gt=0, description="dependency install and formatting")
    container: float = Field(default=300, gt=0, description="docker compose operations")


class RemovalSettings(BaseModel):
    """Retry policy for removing a previously scaffolded project."""

    max_attempts: int = Field(default=5, ge=1)
    base_delay: float = Field(
        default=0.2, ge=0, description="Backoff unit in seconds, multiplied by the attempt number"
    )


class ScaffoldSettings(BaseModel):
    """Settings shared by every scaffold stage."""

    tools: ToolSettings = Field(default_factory=ToolSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    removal: RemovalSettings = Field(default_factory=RemovalSettings)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "ScaffoldSettings":
        """Load previously-saved settings from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> "ScaffoldSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            ABSOLUTE_DOCKER_PATH, ABSOLUTE_GIT_PATH, ABSOLUTE_COMMAND_TIMEOUT,
            ABSOLUTE_INSTALL_TIMEOUT, ABSOLUTE_CONTAINER_TIMEOUT,
            ABSOLUTE_REMOVE_ATTEMPTS, ABSOLUTE_REMOVE_DELAY.
        """
        env = os.environ if environ is None else environ
        platform = platform or sys.platform

        tool_kwargs: dict[str, Any] = {
            "docker_executable": _resolve_docker(env, platform),
        }
        if env.get("ABSOLUTE_GIT_PATH"):
            tool_kwargs["git_executable"] = env["ABSOLUTE_GIT_PATH"]

        timeout_kwargs: dict[str, Any] = {}
        if env.get("ABSOLUTE_COMMAND_TIMEOUT"):
            timeout_kwargs["command"] = float(env["ABSOLUTE_COMMAND_TIMEOUT"])
        if env.get("ABSOLUTE_INSTALL_TIMEOUT"):
            timeout_kwargs["install"] = float(env["ABSOLUTE_INSTALL_TIMEOUT"])
        if env.get("ABSOLUTE_CONTAINER_TIMEOUT"):
            timeout_kwargs["container"] = float(env["ABSOLUTE_CONTAINER_TIMEOUT"])

        removal_kwargs: dict[str, Any] = {}
        if env.get("ABSOLUTE_REMOVE_ATTEMPTS"):
            removal_kwargs["max_attempts"] = int(env["ABSOLUTE_REMOVE_ATTEMPTS"])
        if env.get("ABSOLUTE_REMOVE_DELAY"):
            removal_kwargs["base_delay"] = float(env["ABSOLUTE_REMOVE_DELAY"])

        return cls(
            tools=ToolSettings(**tool_kwargs),
            timeouts=TimeoutSettings(**timeout_kwargs),
            removal=RemovalSettings(**removal_kwargs),
        )


def _resolve_docker(env: Mapping[str, str], platform: str) -> str:
    """Pick the docker executable: explicit override, Docker Desktop on Windows, PATH."""
    if env.get("ABSOLUTE_DOCKER_PATH"):
        return env["ABSOLUTE_DOCKER_PATH"]
    if platform == "win32" and Path(WINDOWS_DOCKER_PATH).exists():
        return WINDOWS_DOCKER_PATH
    return "docker"
