"""Docker Compose control for the local database container.

Every compose invocation is scoped with ``-p <project>`` and ``-f <file>`` so
teardown targets exactly the resources a scaffold run created.
"""

from __future__ import annotations

from pathlib import Path

from create_absolute.config import ScaffoldSettings
from create_absolute.options.models import DatabaseEngine
from create_absolute.utils import (
    CommandResult,
    CommandRunner,
    ExternalToolError,
    console,
    run_command,
    sanitize_name,
)

from .cleanup import CleanupStrategy

COMPOSE_FILE_NAME = "docker-compose.db.yml"
DB_SERVICE = "db"


def compose_project_name(project_name: str, engine: DatabaseEngine) -> str:
    """Compose project used for a project's database container."""
    return f"{sanitize_name(project_name) or 'project'}-{engine.value}"


class DockerCompose:
    """Runs ``docker compose`` against one project's database definition."""

    def __init__(
        self,
        project_root: Path,
        compose_project: str,
        compose_file: str,
        settings: ScaffoldSettings,
        runner: CommandRunner = run_command,
    ) -> None:
        self.project_root = project_root
        self.compose_project = compose_project
        self.compose_file = compose_file
        self.settings = settings
        self.runner = runner

    @property
    def docker(self) -> str:
        return self.settings.tools.docker_executable

    @property
    def container_name(self) -> str:
        """Name compose v2 gives the single database container."""
        return f"{self.compose_project}-{DB_SERVICE}-1"

    def compose_argv(self, *args: str) -> list[str]:
        return [
            self.docker, "compose",
            "-p", self.compose_project,
            "-f", self.compose_file,
            *args,
        ]

    # -- Pre-flight ---------------------------------------------------------

    async def ensure_available(self) -> None:
        """Check that docker is installed and its daemon answers.

        Raises:
            ExternalToolError: With an actionable message for either failure.
        """
        timeout = self.settings.timeouts.command
        version = await self.runner([self.docker, "--version"], timeout=timeout)
        if not version.ok:
            raise ExternalToolError(
                "Docker is not installed. Install Docker or pick a hosted database.",
                argv=version.argv,
                exit_code=version.exit_code,
                stderr=version.stderr,
            )

        info = await self.runner([self.docker, "info"], timeout=timeout)
        if not info.ok:
            raise ExternalToolError(
                "The Docker daemon is not reachable. Start Docker and try again.",
                argv=info.argv,
                exit_code=info.exit_code,
                stdout=info.stdout,
                stderr=info.stderr,
            )
        console.print(f"  [green]+[/green] {version.stdout or 'Docker available'}")

    # -- Lifecycle ----------------------------------------------------------

    async def _compose(self, *args: str) -> CommandResult:
        result = await self.runner(
            self.compose_argv(*args),
            cwd=self.project_root,
            timeout=self.settings.timeouts.container,
        )
        return result.raise_for_status()

    async def up(self, wait: bool = False) -> CommandResult:
        args = ["up", "-d"]
        if wait:
            args.append("--wait")
        return await self._compose(*args, DB_SERVICE)

    async def exec_shell(self, script: str) -> CommandResult:
        return await self._compose("exec", "-T", DB_SERVICE, "bash", "-lc", script)

    async def down(self) -> CommandResult:
        return await self._compose("down")

    # -- Teardown -----------------------------------------------------------

    def cleanup_strategies(self) -> list[CleanupStrategy]:
        return container_cleanup_strategies(
            self.docker, self.compose_project, self.compose_file
        )


def container_cleanup_strategies(
    docker: str,
    compose_project: str,
    compose_file: str,
) -> list[CleanupStrategy]:
    """Primary compose teardown, then removal of the one known container."""
    container = f"{compose_project}-{DB_SERVICE}-1"
    return [
        CleanupStrategy(
            name=f"compose down ({compose_project})",
            argv=[
                docker, "compose", "-p", compose_project, "-f", compose_file,
                "down", "-v", "--remove-orphans",
            ],
        ),
        CleanupStrategy(
            name=f"remove container {container}",
            argv=[docker, "rm", "-f", "-v", container],
        ),
    ]
