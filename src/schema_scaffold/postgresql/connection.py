"""PostgreSQL database connection."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import psycopg
from psycopg.rows import dict_row

from ..base.connection import BaseConnection
from ..config import ScaffoldConfig
from ..exceptions import ConnectionError

logger = logging.getLogger(__name__)

POSTGRES_10 = 100000


@dataclass(frozen=True)
class ServerCapabilities:
    """Catalog features that depend on the server version."""

    server_version: int
    # pg_attribute.attidentity exists
    has_identity_columns: bool
    # Descending sequences default their minvalue to the type minimum rather than minimum + 1
    descending_sequence_min_is_type_min: bool

    @classmethod
    def from_server_version(cls, server_version: int) -> "ServerCapabilities":
        """Build from a libpq-style version number, e.g. 90624 or 160002."""
        return cls(
            server_version=server_version,
            has_identity_columns=server_version >= POSTGRES_10,
            descending_sequence_min_is_type_min=server_version >= POSTGRES_10,
        )


class PostgreSQLConnection(BaseConnection):
    """PostgreSQL connection using psycopg3."""

    def __init__(self, config: Optional[ScaffoldConfig] = None, connection: Optional[psycopg.Connection] = None):
        super().__init__(config or ScaffoldConfig())
        self._connection: Optional[psycopg.Connection] = connection

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "PostgreSQLConnection":
        return cls(ScaffoldConfig(connection_string=connection_string))

    def connect(self) -> None:
        """Establish database connection."""
        try:
            conn_params = self.config.conninfo_params()
            if self.config.host:
                logger.debug(f"Connecting to PostgreSQL: {self.config.host}:{self.config.port}/{self.config.database}")
            self._connection = psycopg.connect(**conn_params)
            logger.info(f"Connected to {self._connection.info.dbname}")
        except psycopg.Error as e:
            raise ConnectionError(f"Failed to connect to database: {e}") from e

    def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.info("Disconnected from database")

    @property
    def connection(self) -> psycopg.Connection:
        """Get the active connection."""
        if not self.is_open:
            raise ConnectionError("Not connected to database")
        return self._connection

    @property
    def is_open(self) -> bool:
        return self._connection is not None and not self._connection.closed

    @property
    def database_name(self) -> Optional[str]:
        return self.connection.info.dbname

    @property
    def server_version(self) -> int:
        return self.connection.info.server_version

    def execute_dict(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a query and return results as dictionaries."""
        with self.connection.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def get_version(self) -> str:
        """Get PostgreSQL version."""
        return self.execute_scalar("SELECT version()") or "Unknown"
