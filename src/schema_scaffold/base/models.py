"""Dataclasses for the reverse-engineered database model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from ..exceptions import InternalConsistencyError
from ..naming import display_name


class ReferentialAction(Enum):
    """Action applied to dependent rows when a referenced row is deleted."""

    NO_ACTION = "NO ACTION"
    RESTRICT = "RESTRICT"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"

    @classmethod
    def from_code(cls, code: str) -> "ReferentialAction":
        """Map a pg_constraint.confdeltype code to an action."""
        try:
            return _REFERENTIAL_ACTION_CODES[code]
        except KeyError:
            raise InternalConsistencyError(
                f"Unknown value {code!r} for foreign key deletion action code"
            ) from None


_REFERENTIAL_ACTION_CODES = {
    "a": ReferentialAction.NO_ACTION,
    "r": ReferentialAction.RESTRICT,
    "c": ReferentialAction.CASCADE,
    "n": ReferentialAction.SET_NULL,
    "d": ReferentialAction.SET_DEFAULT,
}


class ValueGenerationStrategy(Enum):
    """How the server produces values for a column."""

    SERIAL = "serial"
    IDENTITY_ALWAYS = "identity_always"
    IDENTITY_BY_DEFAULT = "identity_by_default"


class ValueGenerated(Enum):
    """When the server generates a column value."""

    ON_ADD = "on_add"


class PlaceholderReason(Enum):
    """Why a column slot holds no column."""

    DROPPED = "dropped"
    UNSUPPORTED_TYPE = "unsupported_type"
    GAP = "gap"


@dataclass(frozen=True)
class ColumnPlaceholder:
    """
    An empty column slot.

    Keeps catalog ordinals aligned while constraints and indexes are resolved.
    Removed from the table once resolution is done.
    """

    ordinal_position: int
    reason: PlaceholderReason
    name: Optional[str] = None


@dataclass
class Column:
    """Represents a table column."""

    name: str
    store_type: str
    is_nullable: bool = True
    default_value_sql: Optional[str] = None
    underlying_store_type: Optional[str] = None  # Only set for domain types
    value_generation_strategy: Optional[ValueGenerationStrategy] = None
    value_generated: Optional[ValueGenerated] = None
    comment: Optional[str] = None
    ordinal_position: int = 0
    table: Optional["Table"] = field(default=None, repr=False, compare=False)


ColumnSlot = Union[Column, ColumnPlaceholder]


@dataclass
class PrimaryKey:
    """Represents a primary key constraint."""

    name: str
    columns: list[Column] = field(default_factory=list)
    table: Optional["Table"] = field(default=None, repr=False, compare=False)


@dataclass
class UniqueConstraint:
    """Represents a unique constraint."""

    name: str
    columns: list[Column] = field(default_factory=list)
    table: Optional["Table"] = field(default=None, repr=False, compare=False)


@dataclass
class ForeignKey:
    """Represents a foreign key constraint."""

    name: str
    principal_table: "Table" = field(repr=False, compare=False)
    columns: list[Column] = field(default_factory=list)
    principal_columns: list[Column] = field(default_factory=list)
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION
    table: Optional["Table"] = field(default=None, repr=False, compare=False)

    @property
    def principal_full_name(self) -> str:
        return self.principal_table.full_name


@dataclass
class Index:
    """Represents a non-primary-key index."""

    name: str
    is_unique: bool = False
    columns: list[Column] = field(default_factory=list)
    filter: Optional[str] = None
    method: Optional[str] = None  # None means btree
    table: Optional["Table"] = field(default=None, repr=False, compare=False)


@dataclass
class Table:
    """Represents a database table."""

    schema_name: str
    name: str
    columns: list[ColumnSlot] = field(default_factory=list)
    primary_key: Optional[PrimaryKey] = None
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    unique_constraints: list[UniqueConstraint] = field(default_factory=list)
    indexes: list[Index] = field(default_factory=list)
    comment: Optional[str] = None
    database: Optional["DatabaseModel"] = field(default=None, repr=False, compare=False)

    @property
    def full_name(self) -> str:
        return display_name(self.schema_name, self.name)

    def add_slot(self, ordinal_position: int, slot: ColumnSlot) -> None:
        """
        Put a column or placeholder at its 1-based catalog ordinal.

        Ordinals must arrive in increasing order. Any skipped ordinal is
        filled with a gap placeholder so later ordinals stay aligned.
        """
        if ordinal_position <= len(self.columns):
            raise InternalConsistencyError(
                f"Column ordinal {ordinal_position} of {self.full_name} arrived out of order"
            )
        while len(self.columns) < ordinal_position - 1:
            self.columns.append(
                ColumnPlaceholder(len(self.columns) + 1, PlaceholderReason.GAP)
            )
        if isinstance(slot, Column):
            slot.table = self
        self.columns.append(slot)

    def column_at(self, ordinal_position: int) -> Optional[Column]:
        """Resolve a 1-based catalog ordinal, None for placeholders or out of range."""
        if ordinal_position < 1 or ordinal_position > len(self.columns):
            return None
        slot = self.columns[ordinal_position - 1]
        return slot if isinstance(slot, Column) else None

    def resolve_columns(self, ordinals: list[int]) -> Optional[list[Column]]:
        """Resolve all ordinals, or return None if any of them isn't a real column."""
        resolved = []
        for ordinal in ordinals:
            column = self.column_at(ordinal)
            if column is None:
                return None
            resolved.append(column)
        return resolved

    def remove_placeholders(self) -> None:
        """Compact the column list once nothing resolves ordinals anymore."""
        self.columns = [slot for slot in self.columns if isinstance(slot, Column)]

    def get_column(self, name: str) -> Optional[Column]:
        for slot in self.columns:
            if isinstance(slot, Column) and slot.name == name:
                return slot
        return None


@dataclass
class Sequence:
    """
    Represents a sequence.

    Start, min and max are None when they equal the server default for the
    sequence's type and direction.
    """

    schema_name: str
    name: str
    store_type: str
    start_value: Optional[int] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    increment_by: int = 1
    is_cyclic: bool = False
    database: Optional["DatabaseModel"] = field(default=None, repr=False, compare=False)

    @property
    def full_name(self) -> str:
        return display_name(self.schema_name, self.name)


@dataclass
class EnumType:
    """Represents a user-defined enum type. Schema is None for public."""

    schema_name: Optional[str]
    name: str
    labels: list[str] = field(default_factory=list)


@dataclass
class Extension:
    """Represents an installed extension."""

    name: str
    version: Optional[str] = None


@dataclass
class DatabaseModel:
    """Root of the reverse-engineered model."""

    database_name: Optional[str] = None
    default_schema: str = "public"
    tables: list[Table] = field(default_factory=list)
    sequences: list[Sequence] = field(default_factory=list)
    enums: list[EnumType] = field(default_factory=list)
    extensions: list[Extension] = field(default_factory=list)

    def add_table(self, table: Table) -> Table:
        if self.get_table(table.schema_name, table.name) is not None:
            raise InternalConsistencyError(f"Table {table.full_name} registered twice")
        table.database = self
        self.tables.append(table)
        return table

    def add_sequence(self, sequence: Sequence) -> Sequence:
        for existing in self.sequences:
            if (existing.schema_name, existing.name) == (sequence.schema_name, sequence.name):
                raise InternalConsistencyError(f"Sequence {sequence.full_name} registered twice")
        sequence.database = self
        self.sequences.append(sequence)
        return sequence

    def get_table(self, schema_name: Optional[str], name: str) -> Optional[Table]:
        for table in self.tables:
            if table.schema_name == schema_name and table.name == name:
                return table
        return None

    def get_or_add_enum(self, schema_name: Optional[str], name: str, labels: list[str]) -> EnumType:
        for enum_type in self.enums:
            if enum_type.schema_name == schema_name and enum_type.name == name:
                return enum_type
        enum_type = EnumType(schema_name=schema_name, name=name, labels=list(labels))
        self.enums.append(enum_type)
        return enum_type

    def get_or_add_extension(self, name: str, version: Optional[str] = None) -> Extension:
        for extension in self.extensions:
            if extension.name == name:
                return extension
        extension = Extension(name=name, version=version)
        self.extensions.append(extension)
        return extension
