"""Command-line entry point for ``create-absolute``.

Usage::

    create-absolute new my-app --frontend react --database postgresql --orm drizzle
    create-absolute new my-app --frontend react --frontend html --directory react=web
    create-absolute dev my-app --database sqlite
    create-absolute matrix generate -o test-matrix.json
    create-absolute matrix verify test-matrix.json
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Optional

from create_absolute import __version__
from create_absolute.config import ScaffoldSettings
from create_absolute.dev import rescaffold
from create_absolute.options.matrix import DEFAULT_MATRIX_PATH, verify_matrix_file, write_matrix
from create_absolute.options.models import (
    ORM,
    AuthProvider,
    DatabaseEngine,
    DatabaseHost,
    Frontend,
)
from create_absolute.options.rules import ConfigurationError, parse_options
from create_absolute.scaffolder.orchestrator import ScaffoldError, ScaffoldOrchestrator
from create_absolute.tooling.packages import detect_package_manager
from create_absolute.utils import DirectoryLockedError, console, print_error, print_success

USER_AGENT_VARIABLE = "npm_config_user_agent"


def _choices(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


def _add_project_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("project_name", metavar="NAME", help="Project directory name")
    parser.add_argument(
        "--frontend", "-f",
        dest="frontends",
        action="append",
        metavar="FRONTEND",
        help=f"Frontend to scaffold, repeatable ({', '.join(_choices(Frontend))}); default: react",
    )
    parser.add_argument(
        "--directory",
        dest="directories",
        action="append",
        default=[],
        metavar="FRONTEND=DIR",
        help="Custom directory for a frontend under src/frontend, e.g. react=web",
    )
    parser.add_argument("--database", default="none", help=", ".join(_choices(DatabaseEngine)))
    parser.add_argument("--orm", default="none", help=", ".join(_choices(ORM)))
    parser.add_argument("--host", default="none", help=", ".join(_choices(DatabaseHost)))
    parser.add_argument("--auth", default="none", help=", ".join(_choices(AuthProvider)))
    parser.add_argument(
        "--code-quality",
        default="eslint+prettier",
        help="eslint+prettier, biome, or none",
    )
    parser.add_argument("--database-directory", default=None, help="Database directory (default: db)")
    parser.add_argument("--tailwind", action=argparse.BooleanOptionalAction, default=False)
    parser.add_argument(
        "--package-manager",
        default=None,
        help="bun, npm, pnpm or yarn (default: detected from the invoking package manager)",
    )
    parser.add_argument("--git", action=argparse.BooleanOptionalAction, default=False)
    parser.add_argument("--install", action=argparse.BooleanOptionalAction, default=False)
    parser.add_argument("--format", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument(
        "--output", "-o",
        default=".",
        help="Parent directory of the new project (default: current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-absolute",
        description="Scaffold an AbsoluteJS project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Usage::", 1)[1],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    _add_project_arguments(commands.add_parser("new", help="Scaffold a new project"))
    _add_project_arguments(
        commands.add_parser("dev", help="Delete and re-scaffold a project (development loop)")
    )

    matrix = commands.add_parser("matrix", help="Supported-configuration matrix")
    matrix_commands = matrix.add_subparsers(dest="matrix_command", required=True)
    generate = matrix_commands.add_parser("generate", help="Write the matrix as JSON")
    generate.add_argument("--output", "-o", default=str(DEFAULT_MATRIX_PATH))
    verify = matrix_commands.add_parser("verify", help="Validate a written matrix")
    verify.add_argument("path", nargs="?", default=str(DEFAULT_MATRIX_PATH))

    return parser


def parse_directory_overrides(values: Sequence[str]) -> dict[str, str]:
    """Parse ``FRONTEND=DIR`` pairs.

    Raises:
        ConfigurationError: If a value has no ``=``.
    """
    overrides: dict[str, str] = {}
    for value in values:
        name, sep, directory = value.partition("=")
        if not sep or not name.strip():
            raise ConfigurationError(
                f"Invalid --directory '{value}'. Expected FRONTEND=DIR.",
                fields=("frontend_directories",),
            )
        overrides[name.strip()] = directory
    return overrides


def raw_options(args: argparse.Namespace, environ: Mapping[str, str]) -> dict[str, Any]:
    """Turn parsed arguments into the raw mapping ``parse_options`` expects."""
    package_manager = args.package_manager
    if package_manager is None:
        package_manager = detect_package_manager(environ.get(USER_AGENT_VARIABLE)).value
    return {
        "project_name": args.project_name,
        "frontends": args.frontends or ["react"],
        "frontend_directories": parse_directory_overrides(args.directories),
        "database_engine": args.database,
        "orm": args.orm,
        "database_host": args.host,
        "auth_provider": args.auth,
        "code_quality_tool": args.code_quality,
        "database_directory": args.database_directory,
        "use_tailwind": args.tailwind,
        "package_manager": package_manager,
        "initialize_git": args.git,
        "install_dependencies": args.install,
        "format_files": args.format,
    }


def _run_matrix(args: argparse.Namespace) -> None:
    if args.matrix_command == "generate":
        matrix = write_matrix(Path(args.output))
        print_success(f"Wrote {len(matrix)} configurations to {args.output}")
    else:
        count = verify_matrix_file(Path(args.path))
        print_success(f"{args.path}: {count} configurations verified")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for ``create-absolute``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "matrix":
            _run_matrix(args)
            return

        try:
            settings = ScaffoldSettings.from_env()
        except ValueError as exc:
            raise ConfigurationError(f"Invalid ABSOLUTE_* environment setting: {exc}") from exc
        options = parse_options(raw_options(args, os.environ))
        if args.command == "dev":
            project_root = asyncio.run(rescaffold(options, args.output, settings))
        else:
            project_root = asyncio.run(ScaffoldOrchestrator(settings).run(options, args.output))
    except (ConfigurationError, ScaffoldError, DirectoryLockedError, OSError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    console.print(f"\n  cd {project_root}")


if __name__ == "__main__":
    main()
