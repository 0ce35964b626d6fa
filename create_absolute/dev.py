"""Development loop: tear down a previously generated project and scaffold it again.

Database reset and container cleanup are best-effort; only a directory that
stays locked after every removal attempt stops the loop.  Both steps target
what the previous run generated, read back from its ``package.json``, so an
engine or directory change between runs still cleans up the old container.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Optional

from create_absolute.config import ScaffoldSettings
from create_absolute.options.models import PackageManager, ProjectOptions
from create_absolute.scaffolder.orchestrator import ScaffoldOrchestrator
from create_absolute.tooling.cleanup import CleanupReport, cleanup_external_resource
from create_absolute.tooling.docker import (
    COMPOSE_FILE_NAME,
    compose_project_name,
    container_cleanup_strategies,
)
from create_absolute.tooling.packages import script_command
from create_absolute.utils import (
    CommandRunner,
    console,
    load_json,
    print_warning,
    remove_directory,
    run_command,
)

RESET_SCRIPT = "db:reset"
UP_SCRIPT = "db:up"


def read_scripts(project_root: Path) -> dict[str, str]:
    """The ``scripts`` table of a generated project, or ``{}`` if unreadable."""
    package_json = project_root / "package.json"
    if not package_json.is_file():
        return {}
    try:
        package = load_json(package_json)
    except (OSError, ValueError) as exc:
        print_warning(f"Could not read {package_json}: {exc}")
        return {}
    scripts = package.get("scripts") if isinstance(package, dict) else None
    return scripts if isinstance(scripts, dict) else {}


def previous_compose_target(project_root: Path) -> Optional[tuple[str, str]]:
    """``(compose project, compose file)`` recorded in the old ``db:up`` script."""
    command = read_scripts(project_root).get(UP_SCRIPT)
    if not isinstance(command, str):
        return None
    try:
        words = shlex.split(command)
    except ValueError:
        return None
    flags: dict[str, str] = {}
    for flag, value in zip(words, words[1:]):
        if flag in ("-p", "-f") and flag not in flags:
            flags[flag] = value
    if "-p" not in flags or "-f" not in flags:
        return None
    return flags["-p"], flags["-f"]


async def reset_database(
    project_root: Path,
    manager: PackageManager,
    settings: ScaffoldSettings,
    runner: CommandRunner = run_command,
) -> bool:
    """Run the project's ``db:reset`` script if its ``package.json`` defines one.

    Returns:
        True if the script ran and succeeded.  A failure is only reported.
    """
    if RESET_SCRIPT not in read_scripts(project_root):
        return False

    result = await runner(
        script_command(manager, RESET_SCRIPT),
        cwd=project_root,
        timeout=settings.timeouts.container,
    )
    if not result.ok:
        print_warning(
            f"{RESET_SCRIPT} failed (exit {result.exit_code}), continuing with re-scaffold..."
        )
        return False
    return True


async def cleanup_database_container(
    project_root: Path,
    options: ProjectOptions,
    settings: ScaffoldSettings,
    runner: CommandRunner = run_command,
) -> Optional[CleanupReport]:
    """Tear down the container of a previous run, if it had one.

    The compose project and file come from the old ``db:up`` script when it
    exists; otherwise they are derived from *options*.
    """
    target = previous_compose_target(project_root)
    if target is None:
        target = (
            compose_project_name(options.project_name, options.database_engine),
            f"{options.database_directory}/{COMPOSE_FILE_NAME}",
        )
    compose_project, compose_file = target
    if not (project_root / compose_file).is_file():
        return None
    strategies = container_cleanup_strategies(
        settings.tools.docker_executable,
        compose_project,
        compose_file,
    )
    return await cleanup_external_resource(
        strategies,
        cwd=project_root,
        timeout=settings.timeouts.container,
        runner=runner,
    )


async def rescaffold(
    options: ProjectOptions,
    output_dir: str | Path,
    settings: Optional[ScaffoldSettings] = None,
    runner: CommandRunner = run_command,
    orchestrator: Optional[ScaffoldOrchestrator] = None,
) -> Path:
    """Remove ``<output_dir>/<project_name>`` if present, then scaffold it afresh.

    Raises:
        DirectoryLockedError: If the old project cannot be removed.
        ScaffoldError: If the new run fails.
    """
    settings = settings or ScaffoldSettings()
    project_root = Path(output_dir) / options.project_name

    if project_root.exists():
        console.print(f"  Resetting existing project at [bold]{project_root}[/bold]")
        await reset_database(project_root, options.package_manager, settings, runner)
        await cleanup_database_container(project_root, options, settings, runner)
        await remove_directory(
            project_root,
            max_attempts=settings.removal.max_attempts,
            base_delay=settings.removal.base_delay,
        )

    orchestrator = orchestrator or ScaffoldOrchestrator(settings, runner)
    return await orchestrator.run(options, output_dir)
