"""Builds a database model from a live PostgreSQL catalog."""

import logging
from typing import Iterable, Optional

from .base.connection import BaseConnection
from .base.models import DatabaseModel, Table
from .config import ScaffoldConfig
from .diagnostics import ScaffoldingDiagnostics
from .filters import generate_schema_filter, generate_table_filter
from .naming import TableSpecifier, parse_schema_table
from .postgresql.connection import PostgreSQLConnection, ServerCapabilities
from .postgresql.extractors import (
    EnumExtractor,
    ExtensionExtractor,
    SequenceExtractor,
    TableExtractor,
)

logger = logging.getLogger(__name__)


class DatabaseModelFactory:
    """
    Reverse-engineers tables, sequences, enums and extensions into a DatabaseModel.

    Usage:
        factory = DatabaseModelFactory()
        with PostgreSQLConnection(config) as conn:
            model = factory.create(conn, tables=["public.orders"], schemas=[])

    A connection that isn't open yet is opened for the duration of the call and
    closed again afterwards, including on failure. An open connection is left
    open for the caller.
    """

    def __init__(
        self,
        config: Optional[ScaffoldConfig] = None,
        diagnostics: Optional[ScaffoldingDiagnostics] = None,
    ):
        self.config = config or ScaffoldConfig()
        self.diagnostics = diagnostics or ScaffoldingDiagnostics()

    def create_from_connection_string(
        self,
        connection_string: str,
        tables: Iterable[str] = (),
        schemas: Iterable[str] = (),
    ) -> DatabaseModel:
        """Connect with a libpq conninfo string or URI and build the model."""
        connection = PostgreSQLConnection.from_connection_string(connection_string)
        return self.create(connection, tables, schemas)

    def create(
        self,
        connection: BaseConnection,
        tables: Iterable[str] = (),
        schemas: Iterable[str] = (),
    ) -> DatabaseModel:
        """
        Build the model for the selected tables and schemas.

        Args:
            connection: Open or not-yet-opened connection.
            tables: Table specifiers such as ``orders`` or ``"My Schema"."My Table"``.
            schemas: Schema names. With neither tables nor schemas, everything is selected.

        Raises:
            FormatError: A table specifier can't be parsed. Raised before connecting.
            InternalConsistencyError: The catalog returned data in an unexpected shape.
        """
        schema_list = list(schemas)
        # Raw specifier as given, for reporting
        table_specs = {table: parse_schema_table(table) for table in tables}

        with connection.session():
            return self._create(connection, table_specs, schema_list)

    def _create(
        self,
        connection: BaseConnection,
        table_specs: dict[str, TableSpecifier],
        schema_list: list[str],
    ) -> DatabaseModel:
        capabilities = ServerCapabilities.from_server_version(connection.server_version)
        model = DatabaseModel(database_name=connection.database_name)

        schema_filter = generate_schema_filter(schema_list)
        table_filter = generate_table_filter(list(table_specs.values()), schema_filter)

        enum_names = EnumExtractor(connection, self.config, self.diagnostics).extract(model)

        extracted = TableExtractor(connection, self.config, self.diagnostics).extract(
            table_filter, enum_names, capabilities
        )
        for table in extracted:
            model.add_table(table)

        # Constraints and indexes are resolved, ordinals aren't needed anymore
        for table in model.tables:
            table.remove_placeholders()

        sequences = SequenceExtractor(connection, self.config, self.diagnostics).extract(
            model.tables, schema_filter, capabilities
        )
        for sequence in sequences:
            model.add_sequence(sequence)

        ExtensionExtractor(connection, self.config, self.diagnostics).extract(model)

        model.tables = [
            table for table in model.tables
            if not self._is_excluded_system_table(table, table_specs.values())
        ]

        for table in model.tables:
            table.remove_placeholders()

        self._report_missing_selection(model, table_specs, schema_list)
        return model

    def _is_excluded_system_table(self, table: Table, table_specs: Iterable[TableSpecifier]) -> bool:
        """Support tables such as PostGIS's are dropped unless explicitly selected."""
        if not self.config.is_system_table(table.name):
            return False
        return not any(spec.matches(table.schema_name, table.name) for spec in table_specs)

    def _report_missing_selection(
        self,
        model: DatabaseModel,
        table_specs: dict[str, TableSpecifier],
        schema_list: list[str],
    ) -> None:
        found_schemas = {t.schema_name for t in model.tables} | {s.schema_name for s in model.sequences}
        for schema in schema_list:
            if schema not in found_schemas:
                self.diagnostics.missing_schema(schema)

        for specifier, spec in table_specs.items():
            if not any(spec.matches(t.schema_name, t.name) for t in model.tables):
                self.diagnostics.missing_table(specifier)
