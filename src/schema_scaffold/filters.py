"""
Selection filters shared by the catalog queries.

The filters are built once from the requested schemas and tables and then
rendered against whatever column expressions a particular query uses for the
schema and table name (``ns.nspname``, ``cls.relname``, ``sequence_schema``...).
Values are never inlined; every rendered fragment carries its own parameters.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .naming import TableSpecifier


@dataclass(frozen=True)
class SqlFragment:
    """A piece of SQL text plus the parameters for its %s placeholders."""

    text: str
    params: tuple = ()

    def prefixed(self, keyword: str) -> "SqlFragment":
        """Return the fragment with a leading keyword such as AND or WHERE."""
        return SqlFragment(f"{keyword} {self.text}", self.params)


SchemaFilter = Callable[[str], SqlFragment]
TableFilter = Callable[[str, str], SqlFragment]

EMPTY_FRAGMENT = SqlFragment("")


def _in_list(expression: str, values: Sequence[str]) -> SqlFragment:
    placeholders = ", ".join(["%s"] * len(values))
    return SqlFragment(f"{expression} IN ({placeholders})", tuple(values))


def generate_schema_filter(schemas: Sequence[str]) -> Optional[SchemaFilter]:
    """
    Build the schema membership filter.

    Returns None when no schemas were requested, meaning all schemas.
    """
    if not schemas:
        return None

    selected = list(schemas)

    def schema_filter(schema_column: str) -> SqlFragment:
        return _in_list(schema_column, selected)

    return schema_filter


def generate_table_filter(
    tables: Sequence[TableSpecifier],
    schema_filter: Optional[SchemaFilter],
) -> Optional[TableFilter]:
    """
    Build the table selection filter.

    A table is selected when its schema passes the schema filter, or when its
    name is listed without a schema, or when its qualified name is listed.
    Returns None when neither schemas nor tables were requested.
    """
    if schema_filter is None and not tables:
        return None

    without_schema = [t.table for t in tables if not t.schema]
    with_schema = [t for t in tables if t.schema]

    def table_filter(schema_column: str, table_column: str) -> SqlFragment:
        parts: list[SqlFragment] = []

        if schema_filter is not None:
            parts.append(schema_filter(schema_column))

        if without_schema:
            parts.append(_in_list(table_column, without_schema))

        if with_schema:
            names = _in_list(table_column, [t.table for t in with_schema])
            qualified = _in_list(
                f"({schema_column} || '.' || {table_column})",
                [f"{t.schema}.{t.table}" for t in with_schema],
            )
            parts.append(
                SqlFragment(
                    f"({names.text} AND {qualified.text})",
                    names.params + qualified.params,
                )
            )

        text = "\nOR ".join(part.text for part in parts)
        params: tuple = ()
        for part in parts:
            params += part.params
        return SqlFragment(f"({text})", params)

    return table_filter


def render(fragment_filter: Optional[Callable[..., SqlFragment]], keyword: str, *columns: str) -> SqlFragment:
    """Render an optional filter against the given columns, prefixed by a keyword."""
    if fragment_filter is None:
        return EMPTY_FRAGMENT
    return fragment_filter(*columns).prefixed(keyword)
