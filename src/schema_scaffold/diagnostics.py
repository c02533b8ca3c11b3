"""
Structured diagnostic events raised while reverse-engineering a database.

Each event is emitted as a single log record. Besides the human-readable
message, the record carries a ``diagnostic`` attribute holding the event name
and its fields, so handlers can filter or collect events without parsing text.
"""

import logging
from enum import Enum
from typing import Any, Optional

DEFAULT_LOGGER_NAME = "schema_scaffold.scaffolding"


class DiagnosticEvent(Enum):
    COLUMN_FOUND = "column_found"
    ENUM_COLUMN_SKIPPED = "enum_column_skipped"
    EXPRESSION_INDEX_SKIPPED = "expression_index_skipped"
    UNSUPPORTED_COLUMN_INDEX_SKIPPED = "unsupported_column_index_skipped"
    UNSUPPORTED_COLUMN_CONSTRAINT_SKIPPED = "unsupported_column_constraint_skipped"
    FOREIGN_KEY_MISSING_PRINCIPAL_TABLE = "foreign_key_missing_principal_table"
    UNIQUE_CONSTRAINT_FOUND = "unique_constraint_found"
    MISSING_SCHEMA = "missing_schema"
    MISSING_TABLE = "missing_table"
    UNEXPECTED_SEQUENCE_TYPE = "unexpected_sequence_type"


class ScaffoldingDiagnostics:
    """Emits diagnostic events to an injected logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)

    def _emit(self, level: int, event: DiagnosticEvent, message: str, **fields: Any) -> None:
        self.logger.log(level, message, extra={"diagnostic": {"event": event.value, **fields}})

    def column_found(
        self,
        table: str,
        column: str,
        store_type: str,
        nullable: bool,
        default: Optional[str],
    ) -> None:
        self._emit(
            logging.DEBUG,
            DiagnosticEvent.COLUMN_FOUND,
            f"Found column {table}.{column} of type {store_type}, "
            f"nullable={nullable}, default={default}",
            table=table,
            column=column,
            store_type=store_type,
            nullable=nullable,
            default=default,
        )

    def enum_column_skipped(self, column: str) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.ENUM_COLUMN_SKIPPED,
            f"Column {column} has an enum type and is skipped",
            column=column,
        )

    def expression_index_skipped(self, index: str, table: str, expressions: Optional[str] = None) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.EXPRESSION_INDEX_SKIPPED,
            f"Index {index} on {table} is an expression index and is skipped",
            index=index,
            table=table,
            expressions=expressions,
        )

    def unsupported_column_index_skipped(self, index: str, table: str) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.UNSUPPORTED_COLUMN_INDEX_SKIPPED,
            f"Index {index} on {table} references an unsupported column and is skipped",
            index=index,
            table=table,
        )

    def unsupported_column_constraint_skipped(self, constraint: str, table: str) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.UNSUPPORTED_COLUMN_CONSTRAINT_SKIPPED,
            f"Constraint {constraint} on {table} references an unsupported column and is skipped",
            constraint=constraint,
            table=table,
        )

    def foreign_key_references_missing_principal_table(
        self, foreign_key: str, table: str, principal_table: str
    ) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.FOREIGN_KEY_MISSING_PRINCIPAL_TABLE,
            f"Foreign key {foreign_key} on {table} references missing principal table "
            f"{principal_table} and is skipped",
            foreign_key=foreign_key,
            table=table,
            principal_table=principal_table,
        )

    def unique_constraint_found(self, constraint: str, table: str) -> None:
        self._emit(
            logging.DEBUG,
            DiagnosticEvent.UNIQUE_CONSTRAINT_FOUND,
            f"Found unique constraint {constraint} on {table}",
            constraint=constraint,
            table=table,
        )

    def missing_schema(self, schema: str) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.MISSING_SCHEMA,
            f"Unable to find a schema in the database matching the selected schema {schema}",
            schema=schema,
        )

    def missing_table(self, table: str) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.MISSING_TABLE,
            f"Unable to find a table in the database matching the selected table {table}",
            table=table,
        )

    def unexpected_sequence_type(self, sequence: str, store_type: str) -> None:
        self._emit(
            logging.WARNING,
            DiagnosticEvent.UNEXPECTED_SEQUENCE_TYPE,
            f"Sequence {sequence} has data type {store_type} which isn't an expected sequence type",
            sequence=sequence,
            store_type=store_type,
        )
