"""Shared pytest fixtures for the create-absolute test suite.

Provides reusable fixtures for:
- Settings with fast retry timings
- A fake command runner standing in for git, docker and package managers
- The real template renderer
- Common ProjectOptions
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import pytest

from create_absolute.config import RemovalSettings, ScaffoldSettings
from create_absolute.options.models import DatabaseEngine, Frontend, ORM, ProjectOptions
from create_absolute.scaffolder.templates import TemplateRenderer
from create_absolute.utils import CommandResult


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------


def _contains(argv: Sequence[str], needle: Sequence[str]) -> bool:
    """True if *needle* appears in *argv* as a contiguous run."""
    size = len(needle)
    return any(list(argv[i:i + size]) == list(needle) for i in range(len(argv) - size + 1))


class FakeRunner:
    """Records every command and answers with canned results.

    Every command succeeds unless a rule registered with :meth:`respond`
    matches it; the most recently registered matching rule wins.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._rules: list[tuple[tuple[str, ...], dict[str, Any]]] = []

    def respond(
        self,
        *needle: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        self._rules.append(
            (
                needle,
                {"exit_code": exit_code, "stdout": stdout, "stderr": stderr, "timed_out": timed_out},
            )
        )

    def fail(self, *needle: str, exit_code: int = 1, stderr: str = "boom") -> None:
        self.respond(*needle, exit_code=exit_code, stderr=stderr)

    async def __call__(
        self,
        argv: Sequence[str],
        cwd: Optional[str | Path] = None,
        env: Optional[dict[str, str]] = None,
        timeout: float = 120,
    ) -> CommandResult:
        argv = [str(part) for part in argv]
        self.calls.append({"argv": argv, "cwd": cwd, "env": env, "timeout": timeout})
        for needle, result in reversed(self._rules):
            if _contains(argv, needle):
                return CommandResult(argv=argv, **result)
        return CommandResult(argv=argv, exit_code=0)

    @property
    def argvs(self) -> list[list[str]]:
        return [call["argv"] for call in self.calls]

    def ran(self, *needle: str) -> bool:
        return any(_contains(argv, needle) for argv in self.argvs)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# ---------------------------------------------------------------------------
# Settings & rendering
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> ScaffoldSettings:
    """Default settings with no removal backoff."""
    return ScaffoldSettings(removal=RemovalSettings(max_attempts=3, base_delay=0))


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


@pytest.fixture
def react_options() -> ProjectOptions:
    """Single React frontend, no database."""
    return ProjectOptions(project_name="demo-app", frontends=[Frontend.REACT])


@pytest.fixture
def postgres_options() -> ProjectOptions:
    """React + local PostgreSQL through Drizzle."""
    return ProjectOptions(
        project_name="demo-app",
        frontends=[Frontend.REACT],
        database_engine=DatabaseEngine.POSTGRESQL,
        orm=ORM.DRIZZLE,
    )
