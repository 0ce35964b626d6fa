"""Wrappers around the external tools a scaffold run drives: git, package managers, docker."""

from create_absolute.tooling.cleanup import CleanupReport, CleanupStrategy, cleanup_external_resource
from create_absolute.tooling.docker import (
    COMPOSE_FILE_NAME,
    DockerCompose,
    compose_project_name,
    container_cleanup_strategies,
)
from create_absolute.tooling.git import initialize_git
from create_absolute.tooling.packages import (
    FORMAT_COMMANDS,
    INSTALL_COMMANDS,
    detect_package_manager,
    format_project,
    install_dependencies,
    script_command,
)

__all__ = [
    "COMPOSE_FILE_NAME",
    "CleanupReport",
    "CleanupStrategy",
    "DockerCompose",
    "FORMAT_COMMANDS",
    "INSTALL_COMMANDS",
    "cleanup_external_resource",
    "compose_project_name",
    "container_cleanup_strategies",
    "detect_package_manager",
    "format_project",
    "initialize_git",
    "install_dependencies",
    "script_command",
]
