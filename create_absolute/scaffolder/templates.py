"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``create_absolute/scaffolder/templates/`` directory and renders them with
the per-run context.  Supports single-file rendering and batch tree
rendering; tree rendering writes files concurrently.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Template files end in ``.j2``; the suffix is dropped from the output
    name.  Undefined context variables raise instead of rendering as empty
    strings.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template, e.g. ``"backend/server.ts.j2"``."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        The parent directory must already exist.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(out.write_text, content, "utf-8")
        return out

    async def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Render every ``*.j2`` file under *template_prefix* to *output_dir*.

        The directory structure is preserved: ``frontends/react/pages/App.tsx.j2``
        rendered with ``template_prefix="frontends/react"`` lands in
        ``<output_dir>/pages/App.tsx``.  Sub-directories are created first,
        then the files are written concurrently.

        Returns:
            Written file paths, in sorted template order.
        """
        out_base = Path(output_dir)
        jobs: list[tuple[str, Path]] = []
        for key in self.list_templates(template_prefix):
            rel = Path(key).relative_to(template_prefix)
            output_file = out_base / rel.with_name(rel.name[: -len(".j2")])
            jobs.append((key, output_file))

        for directory in sorted({out.parent for _, out in jobs}):
            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

        return list(
            await asyncio.gather(
                *(self.render_to_file(key, out, context) for key, out in jobs)
            )
        )

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )

