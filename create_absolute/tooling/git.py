"""Git repository initialisation for a freshly scaffolded project."""

from __future__ import annotations

from pathlib import Path

from create_absolute.config import ScaffoldSettings
from create_absolute.utils import CommandRunner, ExternalToolError, console, run_command

INITIAL_BRANCH = "main"
INITIAL_COMMIT_MESSAGE = "Initial commit"


async def _run_git(
    *args: str,
    cwd: Path,
    settings: ScaffoldSettings,
    runner: CommandRunner,
) -> str:
    """Run one git command and return its stdout.

    Raises ExternalToolError if the command exits with a non-zero code.
    """
    argv = [settings.tools.git_executable, *args]
    result = await runner(argv, cwd=cwd, timeout=settings.timeouts.command)
    result.raise_for_status(f"Git command failed (exit {result.exit_code}): {' '.join(argv)}")
    return result.stdout


async def git_available(settings: ScaffoldSettings, runner: CommandRunner = run_command) -> bool:
    result = await runner(
        [settings.tools.git_executable, "--version"], timeout=settings.timeouts.command
    )
    return result.ok


async def initialize_git(
    project_root: Path,
    settings: ScaffoldSettings,
    runner: CommandRunner = run_command,
) -> None:
    """Create a repository on ``main`` and commit the generated tree.

    The three commands run in order; the first failure stops the sequence.

    Raises:
        ExternalToolError: If git is missing or any command fails.
    """
    if not await git_available(settings, runner):
        raise ExternalToolError(
            "Git is not installed. Install git or re-run without --git.",
            argv=[settings.tools.git_executable, "--version"],
        )

    console.print("  Initializing git repository...")
    await _run_git("init", "-b", INITIAL_BRANCH, cwd=project_root, settings=settings, runner=runner)
    await _run_git("add", "-A", cwd=project_root, settings=settings, runner=runner)
    await _run_git(
        "commit", "-m", INITIAL_COMMIT_MESSAGE,
        cwd=project_root, settings=settings, runner=runner,
    )
