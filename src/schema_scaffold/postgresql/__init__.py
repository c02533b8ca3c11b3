"""PostgreSQL backend."""

from .connection import PostgreSQLConnection, ServerCapabilities
from .extractors import (
    ColumnExtractor,
    ConstraintExtractor,
    EnumExtractor,
    ExtensionExtractor,
    IndexExtractor,
    SequenceExtractor,
    TableExtractor,
)

__all__ = [
    "PostgreSQLConnection",
    "ServerCapabilities",
    "TableExtractor",
    "ColumnExtractor",
    "ConstraintExtractor",
    "IndexExtractor",
    "SequenceExtractor",
    "EnumExtractor",
    "ExtensionExtractor",
]
