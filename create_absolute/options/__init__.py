"""Option domain, compatibility rules, and the supported-configuration matrix.

Quick usage::

    from create_absolute.options import Configuration, is_valid, generate_matrix

    matrix = generate_matrix()
    assert all(is_valid(config) for config in matrix)
"""

from create_absolute.options.matrix import (
    MatrixValidationError,
    generate_matrix,
    validate_matrix,
    verify_matrix_file,
    write_matrix,
)
from create_absolute.options.models import (
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
from create_absolute.options.rules import (
    DRIZZLE_COMPATIBLE_ENGINES,
    HOST_ALLOWED_ENGINES,
    ConfigurationError,
    RuleViolation,
    check_configuration,
    check_options,
    is_valid,
    parse_options,
)

__all__ = [
    "ORM",
    "UNIMPLEMENTED_FEATURES",
    "AuthProvider",
    "CodeQualityTool",
    "Configuration",
    "ConfigurationError",
    "DRIZZLE_COMPATIBLE_ENGINES",
    "DatabaseEngine",
    "DatabaseHost",
    "DirectoryConfig",
    "Frontend",
    "HOST_ALLOWED_ENGINES",
    "MatrixValidationError",
    "PackageManager",
    "ProjectOptions",
    "RuleViolation",
    "check_configuration",
    "check_options",
    "generate_matrix",
    "is_valid",
    "parse_options",
    "validate_matrix",
    "verify_matrix_file",
    "write_matrix",
]
