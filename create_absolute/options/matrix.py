"""Supported-configuration matrix: generation and verification.

``generate_matrix`` enumerates every option combination and keeps the ones
the compatibility rules accept.  ``validate_matrix`` re-checks a previously
written artifact so the generator and the rules cannot drift apart silently.
"""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Optional

from create_absolute.utils import load_json, save_json

from .models import (
    ORM,
    UNIMPLEMENTED_FEATURES,
    AuthProvider,
    CodeQualityTool,
    Configuration,
    DatabaseEngine,
    DatabaseHost,
    DirectoryConfig,
    Frontend,
)
from .rules import ConfigurationError, check_configuration, is_valid

DEFAULT_MATRIX_PATH = Path("test-matrix.json")

CODE_QUALITY_CHOICES: tuple[Optional[CodeQualityTool], ...] = (*CodeQualityTool, None)
TAILWIND_CHOICES: tuple[bool, ...] = (True, False)

# Artifact key -> (attribute name, enum type).  ``None`` marks a boolean.
_ENUM_FIELDS: dict[str, tuple[str, Any]] = {
    "frontend": ("frontend", Frontend),
    "databaseEngine": ("database_engine", DatabaseEngine),
    "orm": ("orm", ORM),
    "databaseHost": ("database_host", DatabaseHost),
    "authProvider": ("auth_provider", AuthProvider),
    "codeQualityTool": ("code_quality_tool", CodeQualityTool),
    "directoryConfig": ("directory_config", DirectoryConfig),
}
_REQUIRED_KEYS = ("frontend", "databaseEngine", "orm", "databaseHost", "authProvider",
                  "directoryConfig", "useTailwind")
_ATTRIBUTE_TO_KEY = {attr: key for key, (attr, _) in _ENUM_FIELDS.items()}


class MatrixValidationError(ConfigurationError):
    """Raised when a matrix artifact contains an invalid or excluded entry."""

    def __init__(self, message: str, index: Optional[int] = None, field: Optional[str] = None) -> None:
        self.index = index
        self.field = field
        prefix = f"[{index}] " if index is not None else ""
        super().__init__(f"{prefix}{message}", fields=(field,) if field else ())


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def generate_matrix() -> list[Configuration]:
    """Return every supported configuration in a fixed order.

    Axes are iterated outermost to innermost: frontend, database engine, ORM,
    database host, auth provider, code-quality tool, directory config,
    tailwind.
    """
    combos = itertools.product(
        Frontend,
        DatabaseEngine,
        ORM,
        DatabaseHost,
        AuthProvider,
        CODE_QUALITY_CHOICES,
        DirectoryConfig,
        TAILWIND_CHOICES,
    )
    matrix: list[Configuration] = []
    for frontend, engine, orm, host, auth, quality, directory, tailwind in combos:
        config = Configuration(
            frontend=frontend,
            database_engine=engine,
            orm=orm,
            database_host=host,
            auth_provider=auth,
            code_quality_tool=quality,
            directory_config=directory,
            use_tailwind=tailwind,
        )
        if is_valid(config):
            matrix.append(config)
    return matrix


def write_matrix(path: str | Path = DEFAULT_MATRIX_PATH) -> list[Configuration]:
    """Generate the matrix and save it as pretty-printed JSON."""
    matrix = generate_matrix()
    save_json([config.to_json_dict() for config in matrix], path)
    return matrix


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_matrix(entries: Any) -> int:
    """Check every entry of a matrix artifact.

    Args:
        entries: The decoded JSON array.

    Returns:
        The number of validated entries.

    Raises:
        MatrixValidationError: On an empty or malformed matrix, a value
            outside its domain, an unimplemented feature, or a rule
            violation.  The message names the entry index and field.
    """
    if not isinstance(entries, list):
        raise MatrixValidationError("Matrix must be a JSON array.")
    if not entries:
        raise MatrixValidationError("Matrix is empty.")

    for index, entry in enumerate(entries):
        _validate_entry(entry, index)

    return len(entries)


def verify_matrix_file(path: str | Path = DEFAULT_MATRIX_PATH) -> int:
    """Load a previously generated artifact and validate it."""
    file_path = Path(path)
    if not file_path.exists():
        raise MatrixValidationError(
            f"{file_path} not found. Run 'create-absolute matrix generate' first."
        )
    try:
        entries = load_json(file_path)
    except ValueError as exc:
        raise MatrixValidationError(f"{file_path} is not valid JSON: {exc}") from exc
    return validate_matrix(entries)


def _validate_entry(entry: Any, index: int) -> None:
    if not isinstance(entry, dict):
        raise MatrixValidationError("entry is not an object", index=index)

    for key in _REQUIRED_KEYS:
        if key not in entry:
            raise MatrixValidationError(f"missing {key}", index=index, field=key)

    values: dict[str, Any] = {}
    for key, (attr, enum_cls) in _ENUM_FIELDS.items():
        raw = entry.get(key)
        if raw is None and key == "codeQualityTool":
            continue
        try:
            member = enum_cls(raw)
        except ValueError:
            raise MatrixValidationError(f"invalid {key} {raw!r}", index=index, field=key) from None
        if member.value in UNIMPLEMENTED_FEATURES:
            raise MatrixValidationError(
                f"excluded feature {key}={member.value} (not implemented)",
                index=index,
                field=key,
            )
        values[attr] = member

    if not isinstance(entry["useTailwind"], bool):
        raise MatrixValidationError(
            f"invalid useTailwind {entry['useTailwind']!r}", index=index, field="useTailwind"
        )

    config = Configuration(**values, use_tailwind=entry["useTailwind"])
    violation = check_configuration(config)
    if violation is not None:
        key = _ATTRIBUTE_TO_KEY.get(violation.field, violation.field)
        raise MatrixValidationError(violation.message, index=index, field=key)
