"""Abstract base class for catalog extractors."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..config import ScaffoldConfig
from ..diagnostics import ScaffoldingDiagnostics
from ..exceptions import InternalConsistencyError
from ..naming import display_name
from .connection import BaseConnection
from .models import Table

TableKey = tuple[str, str]


class BaseExtractor(ABC):
    """Abstract base class for extracting one kind of catalog metadata."""

    def __init__(
        self,
        connection: BaseConnection,
        config: ScaffoldConfig,
        diagnostics: Optional[ScaffoldingDiagnostics] = None,
    ):
        self.connection = connection
        self.config = config
        self.diagnostics = diagnostics or ScaffoldingDiagnostics()

    @abstractmethod
    def extract(self, *args: Any, **kwargs: Any) -> Any:
        """Extract all objects of this type."""
        pass

    @staticmethod
    def group_by_table(
        rows: Iterable[dict[str, Any]],
        schema_key: str = "nspname",
        table_key: str = "relname",
    ) -> dict[TableKey, list[dict[str, Any]]]:
        """Group rows by (schema, table), keeping first-seen order for groups and rows."""
        groups: dict[TableKey, list[dict[str, Any]]] = {}
        for row in rows:
            groups.setdefault((row[schema_key], row[table_key]), []).append(row)
        return groups

    @staticmethod
    def lookup_table(tables: dict[TableKey, Table], key: TableKey) -> Table:
        """Find the table a group of rows belongs to."""
        try:
            return tables[key]
        except KeyError:
            raise InternalConsistencyError(
                f"Catalog returned rows for table {display_name(*key)} which wasn't collected"
            ) from None
