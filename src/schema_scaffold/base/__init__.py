"""Base classes and shared interfaces."""

from .connection import BaseConnection
from .extractor import BaseExtractor
from .models import (
    Column,
    ColumnPlaceholder,
    DatabaseModel,
    EnumType,
    Extension,
    ForeignKey,
    Index,
    PlaceholderReason,
    PrimaryKey,
    ReferentialAction,
    Sequence,
    Table,
    UniqueConstraint,
    ValueGenerated,
    ValueGenerationStrategy,
)

__all__ = [
    "BaseConnection",
    "BaseExtractor",
    "DatabaseModel",
    "Table",
    "Column",
    "ColumnPlaceholder",
    "PlaceholderReason",
    "PrimaryKey",
    "ForeignKey",
    "UniqueConstraint",
    "Index",
    "Sequence",
    "EnumType",
    "Extension",
    "ReferentialAction",
    "ValueGenerated",
    "ValueGenerationStrategy",
]
