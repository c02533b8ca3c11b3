"""Parsing and formatting of schema-qualified table names."""

import re
from typing import NamedTuple, Optional

from .exceptions import FormatError

# Either a double-quoted identifier ("" escapes a quote) or a bare one
_NAME_PART = r'(?:"(?P<quoted{0}>(?:""|[^"])+)"|(?P<bare{0}>[^.\["]+))'

SCHEMA_TABLE_PATTERN = re.compile(
    r"^{0}(?:\.{1})?$".format(_NAME_PART.format(1), _NAME_PART.format(2))
)


class TableSpecifier(NamedTuple):
    """A parsed table selection entry. ``schema`` is None when not given."""

    schema: Optional[str]
    table: str

    def matches(self, schema: Optional[str], table: str) -> bool:
        """Check if this specifier selects the given table."""
        if self.schema is not None and self.schema != schema:
            return False
        return self.table == table

    def __str__(self) -> str:
        return display_name(self.schema, self.table)


def _part(match: re.Match, index: int) -> Optional[str]:
    quoted = match.group(f"quoted{index}")
    if quoted is not None:
        return quoted.replace('""', '"')
    return match.group(f"bare{index}")


def parse_schema_table(specifier: str) -> TableSpecifier:
    """
    Parse a ``schema.table`` or ``table`` specifier.

    Both parts may be double-quoted, in which case they can contain dots and
    doubled double-quotes.

    Raises:
        FormatError: If the specifier doesn't match the grammar.
    """
    match = SCHEMA_TABLE_PATTERN.match(specifier.strip())
    if not match:
        raise FormatError(f"The table name could not be parsed: {specifier!r}")

    first = _part(match, 1)
    second = _part(match, 2)
    if second is None:
        return TableSpecifier(None, first)
    return TableSpecifier(first, second)


def display_name(schema: Optional[str], name: str) -> str:
    """Format as 'schema.name', or just 'name' without a schema."""
    return f"{schema}.{name}" if schema else name
