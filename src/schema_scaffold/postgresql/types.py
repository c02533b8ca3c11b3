"""PostgreSQL type-name handling, default-value cleanup and sequence defaults."""

from typing import NamedTuple, Optional

from ..base.models import ValueGenerationStrategy
from .connection import ServerCapabilities

# Type names that can back a serial column
SERIAL_TYPES = ("int2", "int4", "int8")

# Values that a non-nullable column of the given type would get anyway;
# such defaults carry no information and are dropped.
_ZERO_DEFAULT_TYPES = ("float4", "float8", "int2", "int4", "int8", "money", "numeric")
_DECIMAL_ZERO_DEFAULT_TYPES = ("numeric", "float4", "float8", "money")
_SENTINEL_DEFAULTS = {
    "bool": "false",
    "date": "'0001-01-01'::date",
    "timestamp": "'1900-01-01 00:00:00'::timestamp without time zone",
    "time": "'00:00:00'::time without time zone",
    "interval": "'00:00:00'::interval",
    "uuid": "'00000000-0000-0000-0000-000000000000'::uuid",
}

IDENTITY_CODES = {
    "a": ValueGenerationStrategy.IDENTITY_ALWAYS,
    "d": ValueGenerationStrategy.IDENTITY_BY_DEFAULT,
}


def adjust_formatted_type_name(formatted_type_name: str) -> str:
    """Clean up a type name as returned by format_type()."""
    # User-defined types with capital letters come back quoted
    if formatted_type_name.startswith('"') and formatted_type_name.endswith('"'):
        formatted_type_name = formatted_type_name[1:-1]

    if formatted_type_name == "bpchar":
        formatted_type_name = "char"

    return formatted_type_name


def clean_default_value(default_value: Optional[str], system_type_name: str, is_nullable: bool) -> Optional[str]:
    """
    Drop default expressions that don't represent a real default.

    A nullable column's default is always kept, since it differs from NULL.
    """
    if default_value is None or default_value == "(NULL)":
        return None

    if is_nullable:
        return default_value

    if default_value == "0" and system_type_name in _ZERO_DEFAULT_TYPES:
        return None

    if default_value in ("0.0", "'0'::numeric") and system_type_name in _DECIMAL_ZERO_DEFAULT_TYPES:
        return None

    if _SENTINEL_DEFAULTS.get(system_type_name) == default_value:
        return None

    return default_value


def is_serial_default(table_name: str, column_name: str, system_type_name: str, default_value: Optional[str]) -> bool:
    """Check whether a default is the nextval() call that a serial column creates."""
    if system_type_name not in SERIAL_TYPES or default_value is None:
        return False

    sequence_name = f"{table_name}_{column_name}_seq"
    return default_value in (
        f"nextval('{sequence_name}'::regclass)",
        f"nextval('\"{sequence_name}\"'::regclass)",
    )


def identity_strategy(code: Optional[str]) -> Optional[ValueGenerationStrategy]:
    """Map pg_attribute.attidentity to a strategy, None when not an identity column."""
    if not code:
        return None
    return IDENTITY_CODES.get(code)


class SequenceBounds(NamedTuple):
    start: int
    min: int
    max: int


# (minimum, maximum) per sequence data type
SEQUENCE_TYPE_RANGES = {
    "smallint": (-(2**15), 2**15 - 1),
    "integer": (-(2**31), 2**31 - 1),
    "bigint": (-(2**63), 2**63 - 1),
}


def default_sequence_bounds(
    store_type: str,
    increment_by: int,
    min_value: Optional[int],
    max_value: Optional[int],
    capabilities: ServerCapabilities,
) -> Optional[SequenceBounds]:
    """
    Compute the (start, min, max) the server would pick for a sequence.

    Returns None for a data type that sequences aren't expected to have.
    """
    type_range = SEQUENCE_TYPE_RANGES.get(store_type)
    if type_range is None:
        return None

    type_min, type_max = type_range

    if increment_by > 0:
        return SequenceBounds(
            start=min_value if min_value is not None else 0,
            min=1,
            max=type_max,
        )

    return SequenceBounds(
        start=max_value if max_value is not None else 0,
        min=type_min if capabilities.descending_sequence_min_is_type_min else type_min + 1,
        max=-1,
    )
