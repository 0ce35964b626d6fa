"""Pydantic v2 models for the project option domain.

One ``str`` enum per option axis, the ``Configuration`` row used by the
compatibility matrix, and ``ProjectOptions`` describing a full scaffold run.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from create_absolute.utils import print_warning


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Frontend(str, Enum):
    """Frontend frameworks that can be scaffolded."""
    REACT = "react"
    HTML = "html"
    SVELTE = "svelte"
    VUE = "vue"
    HTMX = "htmx"
    ANGULAR = "angular"


class DatabaseEngine(str, Enum):
    """Database engines."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"
    MARIADB = "mariadb"
    GEL = "gel"
    SINGLESTORE = "singlestore"
    COCKROACHDB = "cockroachdb"
    MSSQL = "mssql"
    NONE = "none"


class ORM(str, Enum):
    DRIZZLE = "drizzle"
    PRISMA = "prisma"
    NONE = "none"


class DatabaseHost(str, Enum):
    """Managed database hosts. ``none`` means a local database."""
    NEON = "neon"
    PLANETSCALE = "planetscale"
    TURSO = "turso"
    NONE = "none"


class AuthProvider(str, Enum):
    ABSOLUTE_AUTH = "absoluteAuth"
    NONE = "none"


class CodeQualityTool(str, Enum):
    ESLINT_PRETTIER = "eslint+prettier"
    BIOME = "biome"


class DirectoryConfig(str, Enum):
    """Whether the user accepted the default layout or customised directories."""
    DEFAULT = "default"
    CUSTOM = "custom"


class PackageManager(str, Enum):
    """Package managers the generated project can be installed with."""
    BUN = "bun"
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "PackageManager":
        """Parse raw user input, falling back to ``bun`` for unknown values.

        This is the only place an unrecognised package manager is tolerated.
        """
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                print_warning(f"Unknown package manager '{value}', using bun instead.")
        return cls.BUN


# Axis values that exist in the domain but have no generator behind them.
UNIMPLEMENTED_FEATURES: frozenset[str] = frozenset(
    {Frontend.ANGULAR.value, ORM.PRISMA.value, CodeQualityTool.BIOME.value}
)

# Engines that never need a container: no engine at all, or a local file.
_CONTAINERLESS_ENGINES = frozenset({DatabaseEngine.NONE, DatabaseEngine.SQLITE})


# ---------------------------------------------------------------------------
# Configuration (one matrix row)
# ---------------------------------------------------------------------------

class Configuration(BaseModel):
    """One concrete selection across every option axis.

    Serialised with camelCase keys; ``codeQualityTool`` is omitted when no
    tool was chosen.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    frontend: Frontend
    database_engine: DatabaseEngine
    orm: ORM
    database_host: DatabaseHost
    auth_provider: AuthProvider
    code_quality_tool: Optional[CodeQualityTool] = None
    directory_config: DirectoryConfig = DirectoryConfig.DEFAULT
    use_tailwind: bool = False

    def to_json_dict(self) -> dict[str, object]:
        """Return the artifact representation of this row."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# ProjectOptions (one scaffold run)
# ---------------------------------------------------------------------------

class ProjectOptions(BaseModel):
    """Everything a scaffold run needs, as collected by the prompt/CLI layer."""

    project_name: str = Field(..., min_length=1, description="Directory name of the new project")
    frontends: list[Frontend] = Field(default_factory=lambda: [Frontend.REACT], min_length=1)
    frontend_directories: dict[Frontend, Optional[str]] = Field(
        default_factory=dict,
        description="Per-frontend directory overrides, used when directory_config is custom",
    )
    database_engine: DatabaseEngine = DatabaseEngine.NONE
    orm: ORM = ORM.NONE
    database_host: DatabaseHost = DatabaseHost.NONE
    auth_provider: AuthProvider = AuthProvider.NONE
    code_quality_tool: Optional[CodeQualityTool] = CodeQualityTool.ESLINT_PRETTIER
    use_tailwind: bool = False
    directory_config: DirectoryConfig = DirectoryConfig.DEFAULT
    database_directory: str = Field(default="db", min_length=1)
    package_manager: PackageManager = PackageManager.BUN
    initialize_git: bool = False
    install_dependencies: bool = False
    format_files: bool = True

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def is_single_frontend(self) -> bool:
        return len(self.frontends) == 1

    @property
    def directory_overrides(self) -> dict[Frontend, Optional[str]]:
        """Overrides in effect: only a custom layout honours them."""
        if self.directory_config is DirectoryConfig.CUSTOM:
            return dict(self.frontend_directories)
        return {}

    @property
    def uses_database(self) -> bool:
        return self.database_engine is not DatabaseEngine.NONE

    @property
    def uses_drizzle(self) -> bool:
        return self.orm is ORM.DRIZZLE

    @property
    def uses_auth(self) -> bool:
        return self.auth_provider is not AuthProvider.NONE

    @property
    def needs_container(self) -> bool:
        """A server engine with no managed host runs in a local container."""
        return (
            self.database_engine not in _CONTAINERLESS_ENGINES
            and self.database_host is DatabaseHost.NONE
        )

    @property
    def uses_local_sqlite_file(self) -> bool:
        """SQLite that nobody else manages: no ORM, no hosted replica."""
        return (
            self.database_engine is DatabaseEngine.SQLITE
            and self.orm is ORM.NONE
            and self.database_host is DatabaseHost.NONE
        )

    def configurations(self) -> Iterator[Configuration]:
        """Yield one matrix row per chosen frontend."""
        for frontend in self.frontends:
            yield Configuration(
                frontend=frontend,
                database_engine=self.database_engine,
                orm=self.orm,
                database_host=self.database_host,
                auth_provider=self.auth_provider,
                code_quality_tool=self.code_quality_tool,
                directory_config=self.directory_config,
                use_tailwind=self.use_tailwind,
            )
