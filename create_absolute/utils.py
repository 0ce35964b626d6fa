"""Shared utility functions for create-absolute.

Provides async command execution, retrying directory removal, JSON I/O,
name helpers, and Rich-based console reporting.  External commands never
raise on a non-zero exit; callers decide what counts as fatal by calling
:meth:`CommandResult.raise_for_status`.
"""

from __future__ import annotations

import asyncio
import errno
import json
import os
import re
import shutil
import signal
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# Seconds between SIGTERM and SIGKILL for a command that outlived its timeout.
KILL_GRACE_SECONDS = 1.0

# Children run in their own session so a timeout can kill the whole tree.
_POSIX = os.name == "posix"

# Exit code reported when the executable itself cannot be started.
COMMAND_NOT_FOUND = 127

# Removal errors that usually mean another process holds a lock.
_TRANSIENT_ERRNOS = frozenset({errno.EBUSY, errno.EACCES, errno.EPERM, errno.ENOTEMPTY})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ExternalToolError(Exception):
    """Raised when an external command (git, package manager, docker) fails."""

    def __init__(
        self,
        message: str,
        argv: list[str] | None = None,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.argv = list(argv or [])
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class DirectoryLockedError(Exception):
    """Raised when a directory could not be removed after every retry."""

    def __init__(self, path: Path, attempts: int, last_error: OSError | None = None) -> None:
        self.path = path
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Could not remove {path} after {attempts} attempt(s): "
            f"{last_error}. A process may be locking this directory "
            "(an editor, file watcher, or running dev server). Close it and retry."
        )


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


@dataclass
class CommandResult:
    """Outcome of a single external command."""

    argv: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def raise_for_status(self, message: str | None = None) -> "CommandResult":
        """Raise :class:`ExternalToolError` unless the command succeeded."""
        if self.ok:
            return self
        cmd_str = " ".join(self.argv)
        if message is None:
            if self.timed_out:
                message = f"Command timed out: {cmd_str}"
            else:
                message = f"Command failed (exit {self.exit_code}): {cmd_str}"
        detail = self.stderr or self.stdout
        if detail:
            message = f"{message}\n{detail}"
        raise ExternalToolError(
            message,
            argv=self.argv,
            exit_code=self.exit_code,
            stdout=self.stdout,
            stderr=self.stderr,
        )


async def run_command(
    argv: list[str],
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
    timeout: float = 120,
) -> CommandResult:
    """Run an external command asynchronously.

    Args:
        argv: Executable followed by its arguments.  No shell is involved.
        cwd: Working directory for the child process.
        env: Optional extra environment variables merged on top of ``os.environ``.
        timeout: Maximum wall-clock seconds.  On expiry the process receives
            SIGTERM, then SIGKILL after :data:`KILL_GRACE_SECONDS`.

    Returns:
        A :class:`CommandResult`.  A non-zero exit never raises; a missing
        executable is reported as exit code 127.
    """
    argv = [str(part) for part in argv]
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            start_new_session=_POSIX,
        )
    except (FileNotFoundError, PermissionError, NotADirectoryError) as exc:
        return CommandResult(
            argv=argv,
            exit_code=COMMAND_NOT_FOUND,
            stderr=f"Could not start {argv[0]}: {exc}",
        )

    communicate = asyncio.ensure_future(process.communicate())
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            asyncio.shield(communicate), timeout=timeout
        )
    except asyncio.TimeoutError:
        await _terminate(process)
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(communicate, KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            # A descendant outside the process group still holds the pipes.
            stdout_bytes, stderr_bytes = b"", b""
        stderr_str = _decode(stderr_bytes)
        return CommandResult(
            argv=argv,
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=_decode(stdout_bytes),
            stderr=stderr_str or f"Command timed out after {timeout}s: {' '.join(argv)}",
            timed_out=True,
        )

    return CommandResult(
        argv=argv,
        exit_code=process.returncode or 0,
        stdout=_decode(stdout_bytes),
        stderr=_decode(stderr_bytes),
    )


# Signature shared by run_command and the fakes injected in tests.
CommandRunner = Callable[..., Awaitable[CommandResult]]


def _signal_tree(process: asyncio.subprocess.Process, sig: int) -> None:
    """Deliver *sig* to the child and everything it spawned."""
    try:
        if _POSIX:
            os.killpg(process.pid, sig)
        elif process.returncode is None:
            process.send_signal(sig)
    except (ProcessLookupError, PermissionError):
        pass


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Send SIGTERM to the process group, then SIGKILL after the grace delay.

    The group is signalled even when the direct child has already exited,
    since lifecycle scripts it started may still be running.
    """
    _signal_tree(process, signal.SIGTERM)
    try:
        await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_SECONDS)
    except asyncio.TimeoutError:
        pass
    _signal_tree(process, signal.SIGKILL if _POSIX else signal.SIGTERM)
    await process.wait()


def _decode(raw: bytes | None) -> str:
    return (raw or b"").decode("utf-8", errors="replace").strip()


# ---------------------------------------------------------------------------
# Directory removal with retry
# ---------------------------------------------------------------------------


async def remove_directory(
    path: str | Path,
    max_attempts: int = 5,
    base_delay: float = 0.2,
) -> None:
    """Recursively remove *path*, retrying while another process holds a lock.

    Busy and permission errors are retried with a linear backoff of
    ``base_delay * attempt`` seconds.  Any other ``OSError`` is raised
    immediately.  A path that does not exist is left alone.

    Raises:
        DirectoryLockedError: If the directory is still locked after
            *max_attempts* attempts.
    """
    target = Path(path)
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: OSError | None = None
    for attempt in range(1, max_attempts + 1):
        if not target.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, target)
            return
        except FileNotFoundError:
            return
        except OSError as exc:
            if exc.errno not in _TRANSIENT_ERRNOS:
                raise
            last_error = exc
            if attempt < max_attempts:
                console.print(
                    f"[dim]  {target} is busy (attempt {attempt}/{max_attempts}), "
                    f"retrying...[/dim]"
                )
                await asyncio.sleep(base_delay * attempt)

    raise DirectoryLockedError(target, max_attempts, last_error)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a safe slug.

    Examples::

        sanitize_name("My App") -> "my-app"
        sanitize_name("  Shop (v2)  ") -> "shop-v2"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> Any:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    return json.loads(Path(path).read_text(encoding="utf-8"))


def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> Path:
    """Save data as pretty-printed JSON, creating parent directories."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    file_path.write_text(content, encoding="utf-8")
    return file_path


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_stage_header(number: int, name: str) -> None:
    """Print a rule announcing a scaffold stage."""
    console.print(Rule(f"[bold bright_cyan] {number}. {name} [/bold bright_cyan]", style="cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
