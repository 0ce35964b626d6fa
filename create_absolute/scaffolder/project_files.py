"""Backend entry point, ``package.json`` and root configuration files."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

from create_absolute.options.models import (
    CodeQualityTool,
    DatabaseEngine,
    DatabaseHost,
    Frontend,
    ProjectOptions,
)
from create_absolute.tooling.docker import COMPOSE_FILE_NAME, compose_project_name
from create_absolute.tooling.packages import script_command
from create_absolute.utils import console, sanitize_name, save_json

from .database import database_url, handler_file_name
from .frontends import FRONTEND_PAGES
from .templates import TemplateRenderer

PACKAGE_VERSION = "0.0.1"
FORMAT_GLOB = "./**/*.{js,ts,tsx,css,json,mjs,md,svelte,html,vue}"

FRONTEND_DEPENDENCIES: dict[Frontend, tuple[str, ...]] = {
    Frontend.REACT: ("react", "react-dom"),
    Frontend.SVELTE: ("svelte",),
    Frontend.VUE: ("vue",),
    Frontend.HTMX: ("htmx.org",),
    Frontend.HTML: (),
}

# Driver package per (engine, host); local SQLite uses bun:sqlite.
DATABASE_DRIVERS: dict[tuple[DatabaseEngine, DatabaseHost], str] = {
    (DatabaseEngine.POSTGRESQL, DatabaseHost.NONE): "postgres",
    (DatabaseEngine.POSTGRESQL, DatabaseHost.NEON): "@neondatabase/serverless",
    (DatabaseEngine.POSTGRESQL, DatabaseHost.PLANETSCALE): "postgres",
    (DatabaseEngine.MYSQL, DatabaseHost.NONE): "mysql2",
    (DatabaseEngine.MYSQL, DatabaseHost.PLANETSCALE): "@planetscale/database",
    (DatabaseEngine.SQLITE, DatabaseHost.TURSO): "@libsql/client",
    (DatabaseEngine.MARIADB, DatabaseHost.NONE): "mariadb",
    (DatabaseEngine.MONGODB, DatabaseHost.NONE): "mongodb",
    (DatabaseEngine.GEL, DatabaseHost.NONE): "gel",
    (DatabaseEngine.SINGLESTORE, DatabaseHost.NONE): "mysql2",
    (DatabaseEngine.COCKROACHDB, DatabaseHost.NONE): "pg",
    (DatabaseEngine.MSSQL, DatabaseHost.NONE): "mssql",
}


def collect_dependencies(options: ProjectOptions) -> tuple[dict[str, str], dict[str, str]]:
    """Return ``(dependencies, devDependencies)`` for the generated ``package.json``.

    Versions are left as ``latest``; the package manager resolves them at
    install time.
    """
    deps = ["@absolutejs/absolute", "elysia", "@elysiajs/static"]
    dev = ["typescript", "bun-types"]

    for frontend in options.frontends:
        deps.extend(FRONTEND_DEPENDENCIES.get(frontend, ()))
    if Frontend.REACT in options.frontends:
        dev.extend(["@types/react", "@types/react-dom"])

    if options.uses_auth:
        deps.append("@absolutejs/auth")

    driver = DATABASE_DRIVERS.get((options.database_engine, options.database_host))
    if driver:
        deps.append(driver)
    if options.uses_drizzle:
        deps.append("drizzle-orm")
        dev.append("drizzle-kit")

    if options.code_quality_tool is CodeQualityTool.ESLINT_PRETTIER:
        dev.extend(["eslint", "@eslint/js", "typescript-eslint", "prettier"])
        if Frontend.SVELTE in options.frontends:
            dev.append("prettier-plugin-svelte")
    if options.use_tailwind:
        dev.extend(["tailwindcss", "@tailwindcss/postcss"])

    return (
        {name: "latest" for name in sorted(set(deps))},
        {name: "latest" for name in sorted(set(dev))},
    )


def package_scripts(options: ProjectOptions) -> dict[str, str]:
    """``scripts`` block: dev server, code quality, and database helpers."""
    scripts = {
        "dev": "bun run --watch src/backend/server.ts",
        "typecheck": "tsc --noEmit",
    }
    if options.code_quality_tool is CodeQualityTool.ESLINT_PRETTIER:
        scripts["lint"] = "eslint ./src"
        scripts["format"] = f'prettier --write "{FORMAT_GLOB}"'
    if options.needs_container:
        compose = (
            f"docker compose -p {compose_project_name(options.project_name, options.database_engine)} "
            f"-f {options.database_directory}/{COMPOSE_FILE_NAME}"
        )
        scripts["db:up"] = f"{compose} up -d db"
        scripts["db:down"] = f"{compose} down"
        scripts["db:reset"] = f"{compose} down -v"
    if options.uses_drizzle:
        scripts["db:push"] = "drizzle-kit push"
    return scripts


def build_package_json(options: ProjectOptions) -> dict[str, Any]:
    dependencies, dev_dependencies = collect_dependencies(options)
    return {
        "name": sanitize_name(options.project_name) or "project",
        "version": PACKAGE_VERSION,
        "private": True,
        "type": "module",
        "scripts": package_scripts(options),
        "dependencies": dependencies,
        "devDependencies": dev_dependencies,
    }


def frontend_routes(directory_map: dict[str, Frontend]) -> list[dict[str, str]]:
    """One route per generated frontend; the first one is served at ``/``."""
    routes: list[dict[str, str]] = []
    for directory, frontend in directory_map.items():
        page = FRONTEND_PAGES.get(frontend)
        if page is None:
            continue
        routes.append(
            {
                "frontend": frontend.value,
                "path": "/" if not routes else f"/{frontend.value}",
                "page_file": f"{directory}/{page}" if directory else page,
            }
        )
    return routes


class ProjectFileGenerator:
    """Writes everything outside ``src/frontend`` and the database directory."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(
        self,
        project_root: Path,
        options: ProjectOptions,
        directory_map: dict[str, Frontend],
        context: dict[str, Any],
    ) -> list[Path]:
        """Render backend and configuration files into *project_root*.

        Returns:
            Every file written, ``package.json`` first.
        """
        context = {
            **context,
            **self._build_context(options, directory_map),
        }

        package_json = await asyncio.to_thread(
            save_json, build_package_json(options), project_root / "package.json"
        )

        jobs: list[tuple[str, Path]] = [
            ("backend/server.ts.j2", project_root / "src" / "backend" / "server.ts"),
            ("project/constants.ts.j2", project_root / "src" / "constants.ts"),
            ("config/README.md.j2", project_root / "README.md"),
            ("config/tsconfig.json.j2", project_root / "tsconfig.json"),
        ]
        if context["database_url"] is not None:
            jobs.append(("config/env.j2", project_root / ".env"))
        if options.code_quality_tool is CodeQualityTool.ESLINT_PRETTIER:
            jobs.extend(
                [
                    ("config/eslint.config.mjs.j2", project_root / "eslint.config.mjs"),
                    ("config/prettierrc.json.j2", project_root / ".prettierrc.json"),
                    ("config/prettierignore.j2", project_root / ".prettierignore"),
                ]
            )
        if options.use_tailwind:
            jobs.extend(
                [
                    ("tailwind/tailwind.config.ts.j2", project_root / "tailwind.config.ts"),
                    ("tailwind/postcss.config.ts.j2", project_root / "postcss.config.ts"),
                ]
            )
        if options.initialize_git:
            jobs.append(("config/gitignore.j2", project_root / ".gitignore"))

        written = await asyncio.gather(
            *(self.renderer.render_to_file(template, out, context) for template, out in jobs)
        )
        console.print(f"  [green]+[/green] {len(written) + 1} project file(s)")
        return [package_json, *written]

    def _build_context(
        self,
        options: ProjectOptions,
        directory_map: dict[str, Frontend],
    ) -> dict[str, Any]:
        handler_import: Optional[str] = None
        if options.uses_database:
            handler_import = f"./handlers/{handler_file_name(options).removesuffix('.ts')}"
        manager = options.package_manager
        return {
            "frontend_routes": frontend_routes(directory_map),
            "handler_import": handler_import,
            "database_url": database_url(options),
            "run_dev": " ".join(script_command(manager, "dev")),
            "run_db_up": " ".join(script_command(manager, "db:up")),
            "run_db_down": " ".join(script_command(manager, "db:down")),
        }
