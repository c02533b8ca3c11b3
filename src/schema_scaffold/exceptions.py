"""Custom exceptions for the schema scaffolder."""


class SchemaScaffoldError(Exception):
    """Base exception for all schema scaffolder errors."""

    pass


class ConnectionError(SchemaScaffoldError):
    """Error establishing database connection."""

    pass


class ConfigurationError(SchemaScaffoldError):
    """Error in configuration or parameters."""

    pass


class FormatError(SchemaScaffoldError):
    """A table specifier could not be parsed."""

    pass


class InternalConsistencyError(SchemaScaffoldError):
    """The catalog returned data that contradicts an assumption about its shape."""

    pass
