"""Per-frontend source generation.

Each supported frontend owns a template tree under ``templates/frontends/``.
Directories are created before any file is written; the template trees of
different frontends are then rendered concurrently.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from create_absolute.options.models import Frontend
from create_absolute.utils import console, print_warning

from .templates import TemplateRenderer

# Frontends missing from this table have no generator and are skipped.
FRONTEND_TEMPLATES: dict[Frontend, str] = {
    Frontend.REACT: "frontends/react",
    Frontend.HTML: "frontends/html",
    Frontend.SVELTE: "frontends/svelte",
    Frontend.VUE: "frontends/vue",
    Frontend.HTMX: "frontends/htmx",
}

# Entry page of each generated frontend, relative to its directory.
FRONTEND_PAGES: dict[Frontend, str] = {
    Frontend.REACT: "pages/ReactExample.tsx",
    Frontend.HTML: "pages/HTMLExample.html",
    Frontend.SVELTE: "pages/SvelteExample.svelte",
    Frontend.VUE: "pages/VueExample.vue",
    Frontend.HTMX: "pages/HTMXExample.html",
}


class FrontendGenerator:
    """Renders shared styles and one template tree per chosen frontend."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_styles(
        self,
        frontend_root: Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Write ``src/frontend/styles`` (plus ``tailwind.css`` when enabled)."""
        styles_dir = frontend_root / "styles"
        written = await self.renderer.render_tree("styles", styles_dir, context)
        if context.get("use_tailwind"):
            written.append(
                await self.renderer.render_to_file(
                    "tailwind/tailwind.css.j2", styles_dir / "tailwind.css", context
                )
            )
        return written

    async def generate(
        self,
        frontend_root: Path,
        directory_map: dict[str, Frontend],
        context: dict[str, Any],
        types_dir: Path | None = None,
    ) -> dict[Frontend, list[Path]]:
        """Render every frontend into its allocated directory.

        Args:
            frontend_root: ``<project>/src/frontend``.
            directory_map: Directory (relative to *frontend_root*) -> frontend.
            context: Base template context.
            types_dir: ``<project>/src/types``; receives ``vue-shim.d.ts``
                when Vue is selected.

        Returns:
            Written paths per generated frontend.  Frontends without a
            generator are reported with a warning and left out.
        """
        jobs: list[tuple[Frontend, str, Path]] = []
        for directory, frontend in directory_map.items():
            prefix = FRONTEND_TEMPLATES.get(frontend)
            if prefix is None:
                print_warning(
                    f"{frontend.value} is not supported yet; skipping its frontend directory."
                )
                continue
            target = frontend_root / directory
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
            jobs.append((frontend, prefix, target))

        rendered = await asyncio.gather(
            *(
                self.renderer.render_tree(
                    prefix,
                    target,
                    {
                        **context,
                        "frontend": frontend.value,
                        "frontend_directory": directory_of(target, frontend_root),
                    },
                )
                for frontend, prefix, target in jobs
            )
        )
        results = {frontend: paths for (frontend, _, _), paths in zip(jobs, rendered)}

        if Frontend.VUE in results and types_dir is not None:
            results[Frontend.VUE].append(
                await self.renderer.render_to_file(
                    "types/vue-shim.d.ts.j2", types_dir / "vue-shim.d.ts", context
                )
            )

        for frontend, paths in results.items():
            console.print(f"  [green]+[/green] {frontend.value}: {len(paths)} file(s)")
        return results


def directory_of(target: Path, frontend_root: Path) -> str:
    """Posix path of *target* relative to the frontend root ("" for the root itself)."""
    rel = target.relative_to(frontend_root).as_posix()
    return "" if rel == "." else rel
