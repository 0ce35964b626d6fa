"""Scaffold orchestrator.

Runs one project generation as a fixed sequence of stages::

    INIT -> ALLOCATE_ROOT -> SCAFFOLD_FRONTENDS -> SCAFFOLD_DATABASE
         -> SCAFFOLD_BACKEND -> INIT_GIT? -> INSTALL_DEPENDENCIES?
         -> FORMAT_FILES? -> DONE

Validation and directory allocation happen in ``INIT``, before anything is
written.  The first failing stage aborts the run with a :class:`ScaffoldError`;
files already written are left in place.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from rich.panel import Panel

from create_absolute.config import ScaffoldSettings
from create_absolute.options.models import Frontend, ProjectOptions
from create_absolute.options.rules import check_options
from create_absolute.tooling.git import initialize_git
from create_absolute.tooling.packages import format_project, install_dependencies
from create_absolute.utils import (
    CommandRunner,
    console,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    run_command,
)

from .database import DatabaseGenerator
from .directories import allocate_frontend_directories
from .frontends import FrontendGenerator
from .project_files import ProjectFileGenerator
from .templates import TemplateRenderer


class ScaffoldStage(str, Enum):
    INIT = "init"
    ALLOCATE_ROOT = "allocate_root"
    SCAFFOLD_FRONTENDS = "scaffold_frontends"
    SCAFFOLD_DATABASE = "scaffold_database"
    SCAFFOLD_BACKEND = "scaffold_backend"
    INIT_GIT = "init_git"
    INSTALL_DEPENDENCIES = "install_dependencies"
    FORMAT_FILES = "format_files"
    DONE = "done"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").upper()


ASSET_DIRECTORIES = ("ico", "png", "svg")


class ScaffoldError(Exception):
    """Raised when a scaffold stage fails.  The original error is kept on ``error``."""

    def __init__(self, stage: ScaffoldStage, error: BaseException) -> None:
        self.stage = stage
        self.error = error
        super().__init__(f"Stage {stage.title}: {error}")


@dataclass
class ScaffoldRun:
    """State of one scaffold run, kept for diagnostics."""

    project_root: Path
    options: ProjectOptions
    directory_map: dict[str, Frontend] = field(default_factory=dict)
    completed_stages: list[ScaffoldStage] = field(default_factory=list)
    skipped_stages: list[ScaffoldStage] = field(default_factory=list)

    @property
    def frontend_root(self) -> Path:
        return self.project_root / "src" / "frontend"

    @property
    def backend_root(self) -> Path:
        return self.project_root / "src" / "backend"

    @property
    def types_root(self) -> Path:
        return self.project_root / "src" / "types"


StageStep = Callable[[ScaffoldRun], Awaitable[None]]


def build_context(options: ProjectOptions) -> dict[str, Any]:
    """Template context shared by every generator."""
    return {
        "project_name": options.project_name,
        "frontends": [frontend.value for frontend in options.frontends],
        "database_engine": options.database_engine.value,
        "orm": options.orm.value,
        "database_host": options.database_host.value,
        "auth_provider": options.auth_provider.value,
        "code_quality_tool": (
            options.code_quality_tool.value if options.code_quality_tool else None
        ),
        "use_tailwind": options.use_tailwind,
        "database_directory": options.database_directory,
        "is_single_frontend": options.is_single_frontend,
        "uses_auth": options.uses_auth,
        "uses_drizzle": options.uses_drizzle,
        "needs_container": options.needs_container,
        "uses_local_sqlite_file": options.uses_local_sqlite_file,
    }


class ScaffoldOrchestrator:
    """Generates a project from validated ``ProjectOptions``.

    Every external command goes through the injected *runner*, so tests can
    drive the whole sequence without git, docker, or a package manager.
    """

    def __init__(
        self,
        settings: Optional[ScaffoldSettings] = None,
        runner: CommandRunner = run_command,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self.settings = settings or ScaffoldSettings()
        self.runner = runner
        self.renderer = renderer or TemplateRenderer()
        self.frontend_gen = FrontendGenerator(self.renderer)
        self.database_gen = DatabaseGenerator(self.renderer, self.settings, runner)
        self.project_gen = ProjectFileGenerator(self.renderer)
        self.last_run: Optional[ScaffoldRun] = None

    # -- Public API --------------------------------------------------------

    async def run(self, options: ProjectOptions, output_dir: str | Path) -> Path:
        """Scaffold ``<output_dir>/<project_name>``.

        Returns:
            Path to the generated project root.

        Raises:
            ScaffoldError: On the first failing stage.
        """
        scaffold = ScaffoldRun(
            project_root=Path(output_dir) / options.project_name,
            options=options,
        )
        self.last_run = scaffold

        console.print(
            Panel(
                f"[bold bright_cyan]create-absolute[/bold bright_cyan]\n"
                f"Project   : {options.project_name}\n"
                f"Output    : {scaffold.project_root}\n"
                f"Frontends : {', '.join(f.value for f in options.frontends)}",
                title="[bold]Scaffold Start[/bold]",
                border_style="bright_cyan",
            )
        )

        for number, (stage, step) in enumerate(self._plan(options), start=1):
            if step is None:
                scaffold.skipped_stages.append(stage)
                console.print(f"[dim]  Skipping {stage.title}[/dim]")
                continue

            print_stage_header(number, stage.title)
            try:
                await step(scaffold)
            except Exception as exc:
                print_error(f"{stage.title} failed: {exc}")
                raise ScaffoldError(stage, exc) from exc
            scaffold.completed_stages.append(stage)

        scaffold.completed_stages.append(ScaffoldStage.DONE)
        self._print_final_summary(scaffold)
        return scaffold.project_root

    # -- Plan --------------------------------------------------------------

    def _plan(self, options: ProjectOptions) -> list[tuple[ScaffoldStage, Optional[StageStep]]]:
        """Ordered stages; ``None`` marks a stage skipped for these options."""
        formats = (
            options.format_files
            and options.install_dependencies
            and options.code_quality_tool is not None
        )
        return [
            (ScaffoldStage.INIT, self._init),
            (ScaffoldStage.ALLOCATE_ROOT, self._allocate_root),
            (ScaffoldStage.SCAFFOLD_FRONTENDS, self._scaffold_frontends),
            (ScaffoldStage.SCAFFOLD_DATABASE, self._scaffold_database),
            (ScaffoldStage.SCAFFOLD_BACKEND, self._scaffold_backend),
            (ScaffoldStage.INIT_GIT, self._init_git if options.initialize_git else None),
            (
                ScaffoldStage.INSTALL_DEPENDENCIES,
                self._install_dependencies if options.install_dependencies else None,
            ),
            (ScaffoldStage.FORMAT_FILES, self._format_files if formats else None),
        ]

    # -- Stages ------------------------------------------------------------

    async def _init(self, scaffold: ScaffoldRun) -> None:
        options = scaffold.options
        check_options(options)
        scaffold.directory_map = allocate_frontend_directories(
            options.frontends,
            options.directory_overrides,
            is_single_frontend=options.is_single_frontend,
        )
        for directory, frontend in scaffold.directory_map.items():
            console.print(f"  {frontend.value} -> src/frontend/{directory}")

    async def _allocate_root(self, scaffold: ScaffoldRun) -> None:
        root = scaffold.project_root
        if root.exists():
            raise FileExistsError(
                f'Cannot create project "{scaffold.options.project_name}": '
                "directory already exists."
            )
        await asyncio.to_thread(root.mkdir, parents=True)

        assets = scaffold.backend_root / "assets"
        for directory in (
            scaffold.frontend_root,
            scaffold.backend_root,
            *(assets / name for name in ASSET_DIRECTORIES),
            scaffold.types_root,
        ):
            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        console.print(f"  Created [bold]{root}[/bold]")

    async def _scaffold_frontends(self, scaffold: ScaffoldRun) -> None:
        context = build_context(scaffold.options)
        await self.frontend_gen.generate_styles(scaffold.frontend_root, context)
        await self.frontend_gen.generate(
            scaffold.frontend_root,
            scaffold.directory_map,
            context,
            types_dir=scaffold.types_root,
        )

    async def _scaffold_database(self, scaffold: ScaffoldRun) -> None:
        await self.database_gen.generate(scaffold.project_root, scaffold.options)

    async def _scaffold_backend(self, scaffold: ScaffoldRun) -> None:
        await self.project_gen.generate(
            scaffold.project_root,
            scaffold.options,
            scaffold.directory_map,
            build_context(scaffold.options),
        )

    async def _init_git(self, scaffold: ScaffoldRun) -> None:
        await initialize_git(scaffold.project_root, self.settings, self.runner)

    async def _install_dependencies(self, scaffold: ScaffoldRun) -> None:
        await install_dependencies(
            scaffold.options.package_manager, scaffold.project_root, self.settings, self.runner
        )

    async def _format_files(self, scaffold: ScaffoldRun) -> None:
        await format_project(
            scaffold.options.package_manager, scaffold.project_root, self.settings, self.runner
        )

    # -- Summary -----------------------------------------------------------

    def _print_final_summary(self, scaffold: ScaffoldRun) -> None:
        options = scaffold.options
        summary = {
            "Project root": str(scaffold.project_root),
            "Frontends": ", ".join(
                f"{frontend.value} ({directory or '.'})"
                for directory, frontend in scaffold.directory_map.items()
            ),
            "Database": (
                f"{options.database_engine.value} / {options.orm.value} / "
                f"{options.database_host.value}"
            ),
            "Stages completed": str(len(scaffold.completed_stages)),
            "Stages skipped": ", ".join(s.title for s in scaffold.skipped_stages) or "-",
        }
        print_summary_table(summary, title="Scaffold Summary")
        print_success(f"Created {options.project_name}")
