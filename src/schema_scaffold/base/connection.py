"""Abstract base class for database connections."""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Generator

logger = logging.getLogger(__name__)


class BaseConnection(ABC):
    """Abstract base class for database connections."""

    def __init__(self, config: Any):
        self.config = config
        self._connection = None

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close database connection."""
        pass

    @property
    @abstractmethod
    def connection(self) -> Any:
        """Get the active connection."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the connection is currently established."""
        pass

    @property
    @abstractmethod
    def server_version(self) -> int:
        """Server version number, e.g. 160002 for 16.2."""
        pass

    @property
    def database_name(self) -> Any:
        """Name of the connected database, if known."""
        return None

    @abstractmethod
    def execute_dict(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a catalog query and return its rows as dictionaries."""
        pass

    @contextmanager
    def session(self) -> Generator["BaseConnection", None, None]:
        """
        Keep the connection open for the duration of a block.

        A connection that is already open is used as is and left open. Otherwise
        it is opened here and closed again on every exit path.
        """
        owned = not self.is_open
        if owned:
            self.connect()
        else:
            logger.debug("Using already open connection")
        try:
            yield self
        finally:
            if owned:
                self.disconnect()

    @contextmanager
    def cursor(self) -> Generator[Any, None, None]:
        """Get a cursor context manager."""
        cur = self.connection.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def execute_scalar(self, query: str, params: tuple = ()) -> Any:
        """Execute a query and return a single value."""
        with self.cursor() as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return row[0] if row else None

    def __enter__(self) -> "BaseConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()
