"""create-absolute scaffolder -- turns validated options into a project tree.

Quick usage::

    from create_absolute.options import ProjectOptions
    from create_absolute.scaffolder import ScaffoldOrchestrator

    options = ProjectOptions(project_name="my-app", database_engine="postgresql", orm="drizzle")
    project_root = await ScaffoldOrchestrator().run(options, "/tmp/output")
"""

from create_absolute.scaffolder.database import DatabaseGenerator
from create_absolute.scaffolder.directories import CollisionError, allocate_frontend_directories
from create_absolute.scaffolder.frontends import FrontendGenerator
from create_absolute.scaffolder.orchestrator import (
    ScaffoldError,
    ScaffoldOrchestrator,
    ScaffoldRun,
    ScaffoldStage,
)
from create_absolute.scaffolder.project_files import ProjectFileGenerator
from create_absolute.scaffolder.templates import TemplateRenderer

__all__ = [
    "CollisionError",
    "DatabaseGenerator",
    "FrontendGenerator",
    "ProjectFileGenerator",
    "ScaffoldError",
    "ScaffoldOrchestrator",
    "ScaffoldRun",
    "ScaffoldStage",
    "TemplateRenderer",
    "allocate_frontend_directories",
]
