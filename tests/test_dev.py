"""Tests for the delete-and-re-scaffold loop (create_absolute.dev).

Covers:
- db:reset is only run when package.json defines it; failures continue
- Container cleanup is only attempted when a compose file exists
- rescaffold removes the old tree before running the orchestrator
- A locked directory aborts the loop
"""

from __future__ import annotations

import errno
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from create_absolute.dev import (
    cleanup_database_container,
    previous_compose_target,
    rescaffold,
    reset_database,
)
from create_absolute.options.models import DatabaseEngine, PackageManager, ProjectOptions
from create_absolute.utils import DirectoryLockedError, save_json

pytestmark = pytest.mark.unit


@pytest.fixture
def previous_project(tmp_path: Path) -> Path:
    """A project left behind by an earlier run with a local PostgreSQL database."""
    root = tmp_path / "demo-app"
    (root / "db").mkdir(parents=True)
    (root / "db" / "docker-compose.db.yml").write_text("services: {}\n", encoding="utf-8")
    save_json({"name": "demo-app", "scripts": {"db:reset": "docker compose down -v"}}, root / "package.json")
    return root


class TestResetDatabase:
    @pytest.mark.asyncio
    async def test_runs_reset_script(self, previous_project, settings, fake_runner):
        assert await reset_database(previous_project, PackageManager.NPM, settings, fake_runner)
        assert fake_runner.calls == [
            {
                "argv": ["npm", "run", "db:reset"],
                "cwd": previous_project,
                "env": None,
                "timeout": settings.timeouts.container,
            }
        ]

    @pytest.mark.asyncio
    async def test_no_package_json(self, tmp_path: Path, settings, fake_runner):
        assert not await reset_database(tmp_path, PackageManager.BUN, settings, fake_runner)
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_no_reset_script(self, tmp_path: Path, settings, fake_runner):
        save_json({"scripts": {"dev": "bun run dev"}}, tmp_path / "package.json")
        assert not await reset_database(tmp_path, PackageManager.BUN, settings, fake_runner)
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_unreadable_package_json(self, tmp_path: Path, settings, fake_runner, capsys):
        (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
        assert not await reset_database(tmp_path, PackageManager.BUN, settings, fake_runner)
        assert "Could not read" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, previous_project, settings, fake_runner, capsys):
        fake_runner.fail("db:reset", exit_code=2)
        assert not await reset_database(previous_project, PackageManager.BUN, settings, fake_runner)
        assert "db:reset failed (exit 2), continuing with re-scaffold..." in capsys.readouterr().out


class TestCleanupDatabaseContainer:
    @pytest.mark.asyncio
    async def test_without_compose_file(self, tmp_path: Path, postgres_options, settings, fake_runner):
        assert await cleanup_database_container(tmp_path, postgres_options, settings, fake_runner) is None
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_scoped_teardown(self, previous_project, postgres_options, settings, fake_runner):
        report = await cleanup_database_container(previous_project, postgres_options, settings, fake_runner)
        assert report.succeeded
        assert fake_runner.argvs == [
            [
                "docker", "compose", "-p", "demo-app-postgresql", "-f", "db/docker-compose.db.yml",
                "down", "-v", "--remove-orphans",
            ]
        ]


    @pytest.mark.asyncio
    async def test_targets_previous_engine_and_directory(self, tmp_path: Path, settings, fake_runner):
        root = tmp_path / "demo-app"
        (root / "data").mkdir(parents=True)
        (root / "data" / "docker-compose.db.yml").write_text("services: {}\n", encoding="utf-8")
        compose = "docker compose -p demo-app-mysql -f data/docker-compose.db.yml"
        save_json({"scripts": {"db:up": f"{compose} up -d db"}}, root / "package.json")
        new_options = ProjectOptions(project_name="demo-app", database_engine=DatabaseEngine.POSTGRESQL)

        report = await cleanup_database_container(root, new_options, settings, fake_runner)

        assert report.succeeded
        assert fake_runner.argvs[0][:6] == [
            "docker", "compose", "-p", "demo-app-mysql", "-f", "data/docker-compose.db.yml",
        ]


class TestPreviousComposeTarget:
    def test_reads_db_up_script(self, previous_project):
        save_json(
            {"scripts": {"db:up": "docker compose -p shop-mariadb -f db/docker-compose.db.yml up -d db"}},
            previous_project / "package.json",
        )
        assert previous_compose_target(previous_project) == ("shop-mariadb", "db/docker-compose.db.yml")

    def test_without_db_up_script(self, previous_project):
        assert previous_compose_target(previous_project) is None

    def test_without_package_json(self, tmp_path: Path):
        assert previous_compose_target(tmp_path) is None

    def test_incomplete_command(self, tmp_path: Path):
        save_json({"scripts": {"db:up": "docker compose up -d db"}}, tmp_path / "package.json")
        assert previous_compose_target(tmp_path) is None


class TestRescaffold:
    @pytest.mark.asyncio
    async def test_fresh_directory_skips_teardown(self, tmp_path: Path, react_options, settings, fake_runner):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=tmp_path / "demo-app")
        result = await rescaffold(react_options, tmp_path, settings, fake_runner, orchestrator)
        assert result == tmp_path / "demo-app"
        orchestrator.run.assert_awaited_once_with(react_options, tmp_path)
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_existing_project_is_replaced(
        self, previous_project, postgres_options, settings, fake_runner
    ):
        (previous_project / "stale.txt").write_text("old", encoding="utf-8")
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=previous_project)

        await rescaffold(postgres_options, previous_project.parent, settings, fake_runner, orchestrator)

        assert not previous_project.exists()
        assert fake_runner.ran("bun", "run", "db:reset")
        assert fake_runner.ran("--remove-orphans")
        orchestrator.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_runs_real_orchestrator(self, tmp_path: Path, react_options, settings, fake_runner):
        (tmp_path / "demo-app").mkdir()
        (tmp_path / "demo-app" / "old.txt").write_text("old", encoding="utf-8")
        root = await rescaffold(react_options, tmp_path, settings, fake_runner)
        assert not (root / "old.txt").exists()
        assert (root / "package.json").is_file()

    @pytest.mark.asyncio
    async def test_locked_directory_aborts(self, previous_project, postgres_options, settings, fake_runner):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock()
        busy = OSError(errno.EBUSY, "Device or resource busy")
        with patch("create_absolute.utils.shutil.rmtree", side_effect=busy), patch(
            "create_absolute.utils.asyncio.sleep", new_callable=AsyncMock
        ):
            with pytest.raises(DirectoryLockedError) as exc_info:
                await rescaffold(postgres_options, previous_project.parent, settings, fake_runner, orchestrator)
        assert exc_info.value.attempts == settings.removal.max_attempts
        orchestrator.run.assert_not_awaited()
