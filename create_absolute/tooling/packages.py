"""Package-manager commands for installing and formatting generated projects."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from create_absolute.config import ScaffoldSettings
from create_absolute.options.models import PackageManager
from create_absolute.utils import CommandResult, CommandRunner, console, run_command

# Both tables must cover every PackageManager member.
INSTALL_COMMANDS: dict[PackageManager, tuple[str, ...]] = {
    PackageManager.BUN: ("bun", "install"),
    PackageManager.NPM: ("npm", "install"),
    PackageManager.PNPM: ("pnpm", "install"),
    PackageManager.YARN: ("yarn", "install"),
}

FORMAT_COMMANDS: dict[PackageManager, tuple[str, ...]] = {
    PackageManager.BUN: ("bun", "run", "format"),
    PackageManager.NPM: ("npm", "run", "format"),
    PackageManager.PNPM: ("pnpm", "run", "format"),
    PackageManager.YARN: ("yarn", "format"),
}


def script_command(manager: PackageManager, script: str) -> list[str]:
    """Return the argv that runs a ``package.json`` script."""
    if manager is PackageManager.YARN:
        return ["yarn", script]
    return [manager.value, "run", script]


def detect_package_manager(user_agent: Optional[str]) -> PackageManager:
    """Guess the invoking package manager from ``npm_config_user_agent``.

    The agent string looks like ``"pnpm/9.1.0 npm/? node/v20.11.0 linux x64"``.
    """
    if not user_agent:
        return PackageManager.BUN
    name = user_agent.strip().split(" ", 1)[0].split("/", 1)[0]
    return PackageManager.from_raw(name)


async def install_dependencies(
    manager: PackageManager,
    project_root: Path,
    settings: ScaffoldSettings,
    runner: CommandRunner = run_command,
) -> CommandResult:
    """Run ``<pm> install`` in the project root.

    Raises:
        ExternalToolError: If the install exits non-zero or times out.
    """
    argv = list(INSTALL_COMMANDS[manager])
    console.print(f"  Installing dependencies with [bold]{manager.value}[/bold]...")
    result = await runner(argv, cwd=project_root, timeout=settings.timeouts.install)
    return result.raise_for_status(f"Dependency installation failed ({' '.join(argv)})")


async def format_project(
    manager: PackageManager,
    project_root: Path,
    settings: ScaffoldSettings,
    runner: CommandRunner = run_command,
) -> CommandResult:
    """Run the project's ``format`` script.

    Raises:
        ExternalToolError: If formatting exits non-zero or times out.
    """
    argv = list(FORMAT_COMMANDS[manager])
    console.print("  Formatting files...")
    result = await runner(argv, cwd=project_root, timeout=settings.timeouts.install)
    return result.raise_for_status(f"Formatting failed ({' '.join(argv)})")
