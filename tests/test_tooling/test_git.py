"""Unit tests for git initialisation (create_absolute.tooling.git)."""

from __future__ import annotations

from pathlib import Path

import pytest

from create_absolute.config import ScaffoldSettings, ToolSettings
from create_absolute.tooling.git import git_available, initialize_git
from create_absolute.utils import ExternalToolError

pytestmark = pytest.mark.unit


class TestInitializeGit:
    @pytest.mark.asyncio
    async def test_runs_commands_in_order(self, tmp_path: Path, settings, fake_runner):
        await initialize_git(tmp_path, settings, fake_runner)
        assert fake_runner.argvs == [
            ["git", "--version"],
            ["git", "init", "-b", "main"],
            ["git", "add", "-A"],
            ["git", "commit", "-m", "Initial commit"],
        ]
        assert all(call["cwd"] == tmp_path for call in fake_runner.calls[1:])

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, tmp_path: Path, settings, fake_runner):
        fake_runner.fail("git", "add", stderr="index.lock exists")
        with pytest.raises(ExternalToolError, match="index.lock exists") as exc_info:
            await initialize_git(tmp_path, settings, fake_runner)
        assert exc_info.value.argv == ["git", "add", "-A"]
        assert not fake_runner.ran("commit")

    @pytest.mark.asyncio
    async def test_missing_git(self, tmp_path: Path, settings, fake_runner):
        fake_runner.respond("git", "--version", exit_code=127)
        with pytest.raises(ExternalToolError, match="Git is not installed"):
            await initialize_git(tmp_path, settings, fake_runner)
        assert fake_runner.argvs == [["git", "--version"]]

    @pytest.mark.asyncio
    async def test_uses_configured_executable(self, tmp_path: Path, fake_runner):
        settings = ScaffoldSettings(tools=ToolSettings(git_executable="/opt/git/bin/git"))
        assert await git_available(settings, fake_runner)
        assert fake_runner.argvs == [["/opt/git/bin/git", "--version"]]
