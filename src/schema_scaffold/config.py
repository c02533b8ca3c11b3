"""Configuration dataclasses for the schema scaffolder."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import ConfigurationError

DEFAULT_PORT = 5432


@dataclass
class ScaffoldConfig:
    """Configuration for reverse-engineering a PostgreSQL database."""

    # Connection parameters
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    # Full libpq conninfo string or URI, takes precedence over the fields above
    connection_string: Optional[str] = None

    # Selection
    schemas: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)

    # Tables that never get scaffolded unless explicitly selected
    history_table_name: str = "__migrations_history"
    system_tables: list[str] = field(default_factory=lambda: ["spatial_ref_sys"])

    # Behavior
    verbosity: int = 0

    def __post_init__(self) -> None:
        """Fill in defaults that depend on other fields."""
        if self.port is None and self.host:
            self.port = DEFAULT_PORT

    def validate(self) -> None:
        """Validate the configuration is complete and consistent."""
        if self.connection_string:
            return

        if not self.host:
            raise ConfigurationError("Host is required")
        if not self.database:
            raise ConfigurationError("Database is required")
        if not self.username:
            raise ConfigurationError("Username is required")

    def conninfo_params(self) -> dict[str, Any]:
        """Keyword arguments for psycopg.connect()."""
        if self.connection_string:
            return {"conninfo": self.connection_string}

        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port or DEFAULT_PORT,
            "dbname": self.database,
            "user": self.username,
        }
        if self.password:
            params["password"] = self.password
        return params

    def is_system_table(self, table_name: str) -> bool:
        """Check if a table is a known support table that shouldn't be scaffolded."""
        return table_name in self.system_tables
