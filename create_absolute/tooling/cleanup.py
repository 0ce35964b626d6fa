"""Best-effort teardown of external resources.

Each recovery step is a ``CleanupStrategy``; they are tried in order until
one succeeds.  Failure of every strategy is reported, never raised, so a
stuck container cannot block local re-scaffolding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from create_absolute.utils import CommandResult, CommandRunner, console, print_warning, run_command


@dataclass(frozen=True)
class CleanupStrategy:
    """One teardown command."""

    name: str
    argv: list[str]


@dataclass
class CleanupReport:
    """What happened while tearing a resource down."""

    succeeded: bool
    strategy: Optional[str] = None
    attempts: list[CommandResult] = field(default_factory=list)


async def cleanup_external_resource(
    strategies: list[CleanupStrategy],
    cwd: Optional[Path] = None,
    timeout: float = 120,
    runner: CommandRunner = run_command,
) -> CleanupReport:
    """Try each strategy once, stopping at the first success."""
    report = CleanupReport(succeeded=False)
    for strategy in strategies:
        console.print(f"  [dim]Cleanup: {strategy.name}[/dim]")
        result = await runner(strategy.argv, cwd=cwd, timeout=timeout)
        report.attempts.append(result)
        if result.ok:
            report.succeeded = True
            report.strategy = strategy.name
            return report

    if strategies:
        last = report.attempts[-1]
        print_warning(
            f"Could not clean up external resources ({last.stderr or f'exit {last.exit_code}'}); "
            "continuing anyway."
        )
    return report
