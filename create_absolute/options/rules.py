"""Compatibility rules for option combinations.

A configuration is either valid or not; there is no "valid with warnings".
The checks run in a fixed order and stop at the first violation:

0. every selected value must be implemented;
1. the ORM must support the database engine;
2. no engine means no ORM and no host;
3. a managed host only accepts the engines listed in ``HOST_ALLOWED_ENGINES``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import ValidationError

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
    PackageManager,
    ProjectOptions,
)

DRIZZLE_COMPATIBLE_ENGINES: frozenset[DatabaseEngine] = frozenset(
    {
        DatabaseEngine.GEL,
        DatabaseEngine.MYSQL,
        DatabaseEngine.POSTGRESQL,
        DatabaseEngine.SQLITE,
        DatabaseEngine.SINGLESTORE,
    }
)

# Hosts missing from this table accept any engine.
HOST_ALLOWED_ENGINES: dict[DatabaseHost, frozenset[DatabaseEngine]] = {
    DatabaseHost.TURSO: frozenset({DatabaseEngine.SQLITE}),
    DatabaseHost.NEON: frozenset({DatabaseEngine.POSTGRESQL}),
    DatabaseHost.PLANETSCALE: frozenset({DatabaseEngine.POSTGRESQL, DatabaseEngine.MYSQL}),
}

# Field order used when looking for unimplemented values.
_CONFIGURATION_FIELDS = (
    "frontend",
    "database_engine",
    "orm",
    "database_host",
    "auth_provider",
    "code_quality_tool",
)


class ConfigurationError(Exception):
    """Raised when selected options break a compatibility rule."""

    def __init__(self, message: str, fields: tuple[str, ...] = ()) -> None:
        self.fields = fields
        super().__init__(message)


@dataclass(frozen=True)
class RuleViolation:
    """The first rule a configuration breaks."""

    field: str
    message: str


# ---------------------------------------------------------------------------
# Rule checks
# ---------------------------------------------------------------------------

def check_configuration(config: Configuration) -> Optional[RuleViolation]:
    """Return the first violated rule, or ``None`` if *config* is valid."""
    for field in _CONFIGURATION_FIELDS:
        value = getattr(config, field)
        if value is not None and value.value in UNIMPLEMENTED_FEATURES:
            return RuleViolation(field, f"{field} '{value.value}' is not implemented yet")

    engine = config.database_engine

    if config.orm is ORM.DRIZZLE and engine not in DRIZZLE_COMPATIBLE_ENGINES:
        return RuleViolation("orm", f"drizzle does not support database engine '{engine.value}'")

    if engine is DatabaseEngine.NONE:
        if config.orm is not ORM.NONE:
            return RuleViolation("orm", f"orm '{config.orm.value}' requires a database engine")
        if config.database_host is not DatabaseHost.NONE:
            return RuleViolation(
                "database_host",
                f"database host '{config.database_host.value}' requires a database engine",
            )

    allowed = HOST_ALLOWED_ENGINES.get(config.database_host)
    if allowed is not None and engine not in allowed:
        return RuleViolation(
            "database_host",
            f"host '{config.database_host.value}' does not support database engine "
            f"'{engine.value}'",
        )

    return None


def is_valid(config: Configuration) -> bool:
    """Return ``True`` if *config* is a supported combination."""
    return check_configuration(config) is None


def check_options(options: ProjectOptions) -> None:
    """Validate a full scaffold request.

    Raises:
        ConfigurationError: On duplicate frontends or the first rule broken
            by any of the per-frontend configurations.
    """
    seen: set[Frontend] = set()
    for frontend in options.frontends:
        if frontend in seen:
            raise ConfigurationError(
                f"Frontend '{frontend.value}' was selected more than once.",
                fields=("frontends",),
            )
        seen.add(frontend)

    for config in options.configurations():
        violation = check_configuration(config)
        if violation is not None:
            raise ConfigurationError(
                f"Unsupported configuration: {violation.message}.",
                fields=(violation.field,),
            )


# ---------------------------------------------------------------------------
# Raw input parsing
# ---------------------------------------------------------------------------

E = TypeVar("E", bound=Enum)

_NONE_WORDS = frozenset({"", "none", "null"})


def parse_choice(enum_cls: type[E], raw: Any, field: str) -> E:
    """Convert a raw user value into *enum_cls*, rejecting unknown values."""
    if isinstance(raw, enum_cls):
        return raw
    text = str(raw).strip()
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    choices = ", ".join(member.value for member in enum_cls)
    raise ConfigurationError(
        f"Unknown {field} '{raw}'. Expected one of: {choices}.", fields=(field,)
    )


def parse_options(raw: Mapping[str, Any]) -> ProjectOptions:
    """Build ``ProjectOptions`` from raw prompt/CLI values.

    Unknown values raise ``ConfigurationError`` instead of being replaced,
    except the package manager, which falls back to ``bun``.
    """
    frontends = [parse_choice(Frontend, value, "frontend") for value in raw.get("frontends") or ["react"]]
    directories = {
        parse_choice(Frontend, name, "frontend"): directory
        for name, directory in (raw.get("frontend_directories") or {}).items()
    }

    code_quality_raw = raw.get("code_quality_tool", CodeQualityTool.ESLINT_PRETTIER.value)
    code_quality = (
        None
        if code_quality_raw is None or str(code_quality_raw).strip().lower() in _NONE_WORDS
        else parse_choice(CodeQualityTool, code_quality_raw, "code_quality_tool")
    )

    directory_config = parse_choice(
        DirectoryConfig,
        raw.get("directory_config") or ("custom" if directories else "default"),
        "directory_config",
    )

    fields: dict[str, Any] = {
        "project_name": str(raw.get("project_name") or "").strip(),
        "frontends": frontends,
        "frontend_directories": directories,
        "database_engine": parse_choice(DatabaseEngine, raw.get("database_engine", "none"), "database_engine"),
        "orm": parse_choice(ORM, raw.get("orm", "none"), "orm"),
        "database_host": parse_choice(DatabaseHost, raw.get("database_host", "none"), "database_host"),
        "auth_provider": parse_choice(AuthProvider, raw.get("auth_provider", "none"), "auth_provider"),
        "code_quality_tool": code_quality,
        "use_tailwind": bool(raw.get("use_tailwind", False)),
        "directory_config": directory_config,
        "package_manager": PackageManager.from_raw(raw.get("package_manager")),
        "initialize_git": bool(raw.get("initialize_git", False)),
        "install_dependencies": bool(raw.get("install_dependencies", False)),
        "format_files": bool(raw.get("format_files", True)),
    }
    if raw.get("database_directory"):
        fields["database_directory"] = str(raw["database_directory"]).strip()

    try:
        return ProjectOptions(**fields)
    except ValidationError as exc:
        names = tuple(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise ConfigurationError(f"Invalid project options: {exc}", fields=names) from exc
