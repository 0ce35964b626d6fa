"""create-absolute: option validation and project scaffolding for AbsoluteJS apps."""

__version__ = "0.1.0"
