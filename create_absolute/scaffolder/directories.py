"""Frontend directory allocation.

Each chosen frontend gets its own directory under ``src/frontend``.  The
whole map is computed, and checked for collisions, before anything is
created on disk.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping
from typing import Optional

from create_absolute.options.models import Frontend
from create_absolute.options.rules import ConfigurationError


class CollisionError(Exception):
    """Raised when two frontends resolve to the same directory."""

    def __init__(self, directory: str, first: Frontend, second: Frontend) -> None:
        self.directory = directory
        self.first = first
        self.second = second
        shown = directory or "<frontend root>"
        super().__init__(
            f'Frontend directory collision: "{shown}" is assigned to both '
            f'"{first.value}" and "{second.value}". Please pick unique directories.'
        )


def default_directory(frontend: Frontend, is_single_frontend: bool) -> str:
    """A lone frontend lives in the frontend root; several get a folder each."""
    return "" if is_single_frontend else frontend.value


def normalize_directory(frontend: Frontend, directory: str) -> str:
    """Collapse *directory* to a canonical path relative to ``src/frontend``.

    ``./react``, ``react/.`` and ``web/../react`` all become ``react``, and
    the frontend root itself is ``""``.  Leading separators are dropped.

    Raises:
        ConfigurationError: If the path climbs out of the frontend root.
    """
    normalized = posixpath.normpath(directory.replace("\\", "/").strip("/"))
    if normalized == ".":
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise ConfigurationError(
            f'Directory "{directory}" for frontend "{frontend.value}" '
            "points outside src/frontend.",
            fields=("frontend_directories",),
        )
    return normalized


def allocate_frontend_directories(
    frontends: Iterable[Frontend],
    overrides: Optional[Mapping[Frontend, Optional[str]]] = None,
    is_single_frontend: bool = False,
) -> dict[str, Frontend]:
    """Map each target directory (relative to ``src/frontend``) to its frontend.

    An override, trimmed of surrounding whitespace, beats the default.
    Collisions are detected on the normalised path.

    Raises:
        CollisionError: On the first directory claimed by a second frontend.
        ConfigurationError: If an override points outside ``src/frontend``.
    """
    overrides = overrides or {}
    allocated: dict[str, Frontend] = {}
    for frontend in frontends:
        raw = overrides.get(frontend)
        directory = raw.strip() if raw is not None else default_directory(frontend, is_single_frontend)
        directory = normalize_directory(frontend, directory)
        if directory in allocated:
            raise CollisionError(directory, allocated[directory], frontend)
        allocated[directory] = frontend
    return allocated
