"""PostgreSQL catalog extractors."""

import logging
from typing import Any, Optional

from ..base import BaseExtractor
from ..base.extractor import TableKey
from ..base.models import (
    Column,
    ColumnPlaceholder,
    DatabaseModel,
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
from ..exceptions import InternalConsistencyError
from ..filters import SchemaFilter, TableFilter, render
from ..naming import display_name
from .connection import ServerCapabilities
from .types import (
    adjust_formatted_type_name,
    clean_default_value,
    default_sequence_bounds,
    identity_strategy,
    is_serial_default,
)

logger = logging.getLogger(__name__)

# Schemas that hold the catalog itself
SYSTEM_SCHEMAS = "('pg_catalog', 'information_schema')"


def _ordinals(value: Any) -> list[int]:
    """Normalize a catalog position array (list or space-separated vector) to ints."""
    if value is None:
        return []
    if isinstance(value, str):
        return [int(part) for part in value.split()]
    return [int(part) for part in value]


class TableExtractor(BaseExtractor):
    """Extracts tables, along with their columns, constraints and indexes."""

    def extract(
        self,
        table_filter: Optional[TableFilter],
        enum_names: set[str],
        capabilities: ServerCapabilities,
    ) -> list[Table]:
        """Extract all selected tables with their metadata."""
        tables = self._get_tables(table_filter)
        logger.info(f"Found {len(tables)} tables")

        tables_by_key = {(t.schema_name, t.name): t for t in tables}

        ColumnExtractor(self.connection, self.config, self.diagnostics).extract(
            tables_by_key, table_filter, enum_names, capabilities
        )
        constraint_indexes = ConstraintExtractor(self.connection, self.config, self.diagnostics).extract(
            tables_by_key, table_filter
        )
        IndexExtractor(self.connection, self.config, self.diagnostics).extract(
            tables_by_key, table_filter, constraint_indexes
        )
        return tables

    def _get_tables(self, table_filter: Optional[TableFilter]) -> list[Table]:
        """Get the table shells."""
        where = render(table_filter, "AND", "ns.nspname", "cls.relname")
        query = f"""
            SELECT ns.nspname, cls.relname, des.description
            FROM pg_class AS cls
            JOIN pg_namespace AS ns ON ns.oid = cls.relnamespace
            LEFT OUTER JOIN pg_description AS des ON des.objoid = cls.oid AND des.objsubid = 0
                AND des.classoid = 'pg_class'::regclass
            WHERE cls.relkind = 'r'
            AND ns.nspname NOT IN {SYSTEM_SCHEMAS}
            AND cls.relname <> %s
            {where.text}
            ORDER BY ns.nspname, cls.relname
        """
        rows = self.connection.execute_dict(query, (self.config.history_table_name,) + where.params)
        return [
            Table(schema_name=row["nspname"], name=row["relname"], comment=row["description"])
            for row in rows
        ]


class ColumnExtractor(BaseExtractor):
    """
    Extracts columns for already collected tables.

    Every catalog ordinal gets a slot on its table, in attribute order.
    Dropped columns and enum-typed columns occupy a placeholder slot so that
    constraint and index position arrays still line up.
    """

    def extract(
        self,
        tables: dict[TableKey, Table],
        table_filter: Optional[TableFilter],
        enum_names: set[str],
        capabilities: ServerCapabilities,
    ) -> None:
        rows = self._get_columns(table_filter, capabilities)
        for key, group in self.group_by_table(rows).items():
            table = self.lookup_table(tables, key)
            for row in group:
                self._add_column(table, row, enum_names)

    def _get_columns(self, table_filter: Optional[TableFilter], capabilities: ServerCapabilities) -> list[dict]:
        where = render(table_filter, "AND", "ns.nspname", "cls.relname")
        identity = (
            "attr.attidentity"
            if capabilities.has_identity_columns
            else "''::\"char\" AS attidentity"
        )
        query = f"""
            SELECT
                ns.nspname,
                cls.relname,
                attr.attnum,
                attr.attname,
                typ.typname,
                basetyp.typname AS basetypname,
                des.description,
                attr.attisdropped,
                {identity},
                format_type(typ.oid, attr.atttypmod) AS formatted_typname,
                format_type(basetyp.oid, typ.typtypmod) AS formatted_basetypname,
                CASE
                    WHEN pg_proc.proname = 'array_recv' THEN 'a'
                    ELSE typ.typtype
                END AS typtype,
                CASE
                    WHEN pg_proc.proname = 'array_recv' THEN elemtyp.typtype
                    ELSE NULL
                END AS elemtyptype,
                basetyp.typtype AS basetyptype,
                (NOT attr.attnotnull) AS nullable,
                CASE
                    WHEN attr.atthasdef THEN (
                        SELECT pg_get_expr(adbin, cls.oid)
                        FROM pg_attrdef
                        WHERE adrelid = cls.oid AND adnum = attr.attnum
                    )
                    ELSE NULL
                END AS column_default
            FROM pg_class AS cls
            JOIN pg_namespace AS ns ON ns.oid = cls.relnamespace
            JOIN pg_attribute AS attr ON attr.attrelid = cls.oid
            LEFT OUTER JOIN pg_type AS typ ON attr.atttypid = typ.oid
            LEFT OUTER JOIN pg_proc ON pg_proc.oid = typ.typreceive
            LEFT OUTER JOIN pg_type AS elemtyp ON elemtyp.oid = typ.typelem
            LEFT OUTER JOIN pg_type AS basetyp ON basetyp.oid = typ.typbasetype
            LEFT OUTER JOIN pg_description AS des ON des.objoid = cls.oid AND des.objsubid = attr.attnum
                AND des.classoid = 'pg_class'::regclass
            WHERE cls.relkind = 'r'
            AND ns.nspname NOT IN {SYSTEM_SCHEMAS}
            AND attr.attnum > 0
            AND cls.relname <> %s
            {where.text}
            ORDER BY ns.nspname, cls.relname, attr.attnum
        """
        return self.connection.execute_dict(query, (self.config.history_table_name,) + where.params)

    def _add_column(self, table: Table, row: dict[str, Any], enum_names: set[str]) -> None:
        ordinal = row["attnum"]
        name = row["attname"]

        if row["attisdropped"]:
            table.add_slot(ordinal, ColumnPlaceholder(ordinal, PlaceholderReason.DROPPED, name))
            return

        store_type = adjust_formatted_type_name(row["formatted_typname"])
        underlying_store_type = None
        system_type_name = row["typname"]
        if row["formatted_basetypname"] is not None:
            # Domain type, classify by its base type
            underlying_store_type = adjust_formatted_type_name(row["formatted_basetypname"])
            system_type_name = row["basetypname"]

        if self._is_enum_column(row, store_type, underlying_store_type, enum_names):
            self.diagnostics.enum_column_skipped(f"{table.full_name}.{name}")
            table.add_slot(ordinal, ColumnPlaceholder(ordinal, PlaceholderReason.UNSUPPORTED_TYPE, name))
            return

        column = Column(
            name=name,
            store_type=store_type,
            is_nullable=row["nullable"],
            default_value_sql=row["column_default"],
            underlying_store_type=underlying_store_type,
            comment=row["description"],
            ordinal_position=ordinal,
        )
        self.diagnostics.column_found(
            table.full_name, name, store_type, column.is_nullable, column.default_value_sql
        )

        strategy = identity_strategy(row["attidentity"])
        if strategy is None and is_serial_default(table.name, name, system_type_name, column.default_value_sql):
            # The default only drives the implicit sequence
            column.default_value_sql = None
            strategy = ValueGenerationStrategy.SERIAL

        if strategy is not None:
            column.value_generation_strategy = strategy
            column.value_generated = ValueGenerated.ON_ADD

        column.default_value_sql = clean_default_value(
            column.default_value_sql, system_type_name, column.is_nullable
        )
        table.add_slot(ordinal, column)

    @staticmethod
    def _is_enum_column(
        row: dict[str, Any],
        store_type: str,
        underlying_store_type: Optional[str],
        enum_names: set[str],
    ) -> bool:
        """Enums, arrays of enums and domains over enums can't be scaffolded."""
        if "e" in (row["typtype"], row["elemtyptype"], row["basetyptype"]):
            return True
        for type_name in (store_type, underlying_store_type):
            if type_name is not None and type_name.rstrip("[]") in enum_names:
                return True
        return False


class ConstraintExtractor(BaseExtractor):
    """Extracts primary keys, foreign keys and unique constraints."""

    def extract(self, tables: dict[TableKey, Table], table_filter: Optional[TableFilter]) -> set[int]:
        """
        Attach constraints to their tables.

        Returns:
            OIDs of the indexes backing unique constraints, which the index
            extractor must not report again.
        """
        rows = self._get_constraints(table_filter)
        constraint_indexes: set[int] = set()

        for key, group in self.group_by_table(rows).items():
            table = self.lookup_table(tables, key)

            for row in group:
                if row["contype"] == "p":
                    self._add_primary_key(table, row)

            for row in group:
                if row["contype"] == "f":
                    self._add_foreign_key(table, row, tables)

            for row in group:
                if row["contype"] == "u":
                    self._add_unique_constraint(table, row)
                    constraint_indexes.add(row["conindid"])

        return constraint_indexes

    def _get_constraints(self, table_filter: Optional[TableFilter]) -> list[dict]:
        where = render(table_filter, "AND", "ns.nspname", "cls.relname")
        query = f"""
            SELECT
                ns.nspname,
                cls.relname,
                con.conname,
                con.contype,
                con.conkey,
                con.conindid,
                frnns.nspname AS fr_nspname,
                frncls.relname AS fr_relname,
                con.confkey,
                con.confdeltype
            FROM pg_class AS cls
            JOIN pg_namespace AS ns ON ns.oid = cls.relnamespace
            JOIN pg_constraint AS con ON con.conrelid = cls.oid
            LEFT OUTER JOIN pg_class AS frncls ON frncls.oid = con.confrelid
            LEFT OUTER JOIN pg_namespace AS frnns ON frnns.oid = frncls.relnamespace
            WHERE cls.relkind = 'r'
            AND ns.nspname NOT IN {SYSTEM_SCHEMAS}
            AND con.contype IN ('p', 'f', 'u')
            AND cls.relname <> %s
            {where.text}
            ORDER BY ns.nspname, cls.relname, con.conname
        """
        return self.connection.execute_dict(query, (self.config.history_table_name,) + where.params)

    def _add_primary_key(self, table: Table, row: dict[str, Any]) -> None:
        name = row["conname"]
        columns = table.resolve_columns(_ordinals(row["conkey"]))
        if columns is None:
            self.diagnostics.unsupported_column_constraint_skipped(name, table.full_name)
            return
        table.primary_key = PrimaryKey(name=name, columns=columns, table=table)

    def _add_foreign_key(self, table: Table, row: dict[str, Any], tables: dict[TableKey, Table]) -> None:
        name = row["conname"]
        principal_schema = row["fr_nspname"]
        principal_name = row["fr_relname"]

        principal_table = self._find_principal_table(tables, principal_schema, principal_name)
        if principal_table is None:
            self.diagnostics.foreign_key_references_missing_principal_table(
                name, table.full_name, display_name(principal_schema, principal_name)
            )
            return

        column_ordinals = _ordinals(row["conkey"])
        principal_ordinals = _ordinals(row["confkey"])
        if len(column_ordinals) != len(principal_ordinals):
            raise InternalConsistencyError(
                f"Found varying lengths for column and principal column indices in foreign key {name}"
            )

        on_delete = ReferentialAction.from_code(row["confdeltype"])

        columns = table.resolve_columns(column_ordinals)
        principal_columns = principal_table.resolve_columns(principal_ordinals)
        if columns is None or principal_columns is None:
            self.diagnostics.unsupported_column_constraint_skipped(name, table.full_name)
            return

        table.foreign_keys.append(
            ForeignKey(
                name=name,
                principal_table=principal_table,
                columns=columns,
                principal_columns=principal_columns,
                on_delete=on_delete,
                table=table,
            )
        )

    @staticmethod
    def _find_principal_table(
        tables: dict[TableKey, Table],
        schema_name: Optional[str],
        name: Optional[str],
    ) -> Optional[Table]:
        """Exact match first, then a case-insensitive one."""
        table = tables.get((schema_name, name))
        if table is not None or schema_name is None or name is None:
            return table

        for candidate in tables.values():
            if (
                candidate.schema_name.lower() == schema_name.lower()
                and candidate.name.lower() == name.lower()
            ):
                return candidate
        return None

    def _add_unique_constraint(self, table: Table, row: dict[str, Any]) -> None:
        name = row["conname"]
        self.diagnostics.unique_constraint_found(name, table.full_name)

        columns = table.resolve_columns(_ordinals(row["conkey"]))
        if columns is None:
            self.diagnostics.unsupported_column_constraint_skipped(name, table.full_name)
            return
        table.unique_constraints.append(UniqueConstraint(name=name, columns=columns, table=table))


class IndexExtractor(BaseExtractor):
    """Extracts indexes other than primary keys and unique constraints."""

    DEFAULT_METHOD = "btree"

    def extract(
        self,
        tables: dict[TableKey, Table],
        table_filter: Optional[TableFilter],
        constraint_indexes: set[int],
    ) -> None:
        rows = self._get_indexes(table_filter)
        for key, group in self.group_by_table(rows, table_key="cls_relname").items():
            table = self.lookup_table(tables, key)
            for row in group:
                # Unique constraints were already collected along with their index
                if row["idx_oid"] in constraint_indexes:
                    continue
                self._add_index(table, row)

    def _get_indexes(self, table_filter: Optional[TableFilter]) -> list[dict]:
        where = render(table_filter, "AND", "ns.nspname", "cls.relname")
        query = f"""
            SELECT
                idxcls.oid AS idx_oid,
                ns.nspname,
                cls.relname AS cls_relname,
                idxcls.relname AS idx_relname,
                idx.indisunique,
                string_to_array(idx.indkey::text, ' ')::smallint[] AS indkey,
                am.amname,
                CASE
                    WHEN idx.indexprs IS NULL THEN NULL
                    ELSE pg_get_expr(idx.indexprs, cls.oid)
                END AS exprs,
                CASE
                    WHEN idx.indpred IS NULL THEN NULL
                    ELSE pg_get_expr(idx.indpred, cls.oid)
                END AS pred
            FROM pg_class AS cls
            JOIN pg_namespace AS ns ON ns.oid = cls.relnamespace
            JOIN pg_index AS idx ON idx.indrelid = cls.oid
            JOIN pg_class AS idxcls ON idxcls.oid = idx.indexrelid
            JOIN pg_am AS am ON am.oid = idxcls.relam
            WHERE cls.relkind = 'r'
            AND ns.nspname NOT IN {SYSTEM_SCHEMAS}
            AND NOT idx.indisprimary
            AND cls.relname <> %s
            {where.text}
            ORDER BY ns.nspname, cls.relname, idxcls.relname
        """
        return self.connection.execute_dict(query, (self.config.history_table_name,) + where.params)

    def _add_index(self, table: Table, row: dict[str, Any]) -> None:
        name = row["idx_relname"]
        ordinals = _ordinals(row["indkey"])

        if 0 in ordinals:
            # TODO: carry the expression on the index once expression indexes can be scaffolded
            self.diagnostics.expression_index_skipped(name, table.full_name, row["exprs"])
            return

        columns = table.resolve_columns(ordinals)
        if columns is None:
            self.diagnostics.unsupported_column_index_skipped(name, table.full_name)
            return

        method = row["amname"]
        table.indexes.append(
            Index(
                name=name,
                is_unique=row["indisunique"],
                columns=columns,
                filter=row["pred"],
                method=method if method and method != self.DEFAULT_METHOD else None,
                table=table,
            )
        )


class SequenceExtractor(BaseExtractor):
    """Extracts sequences that aren't implied by a serial or identity column."""

    def extract(
        self,
        tables: list[Table],
        schema_filter: Optional[SchemaFilter],
        capabilities: ServerCapabilities,
    ) -> list[Sequence]:
        """Extract all explicit sequences."""
        tables_by_key = {(t.schema_name, t.name): t for t in tables}
        sequences = []

        for row in self._get_sequences(schema_filter):
            if row["owner_column"] is not None and self._is_implicit(row, tables_by_key):
                continue

            sequence = Sequence(
                schema_name=row["sequence_schema"],
                name=row["sequence_name"],
                store_type=row["data_type"],
                start_value=row["start_value"],
                min_value=row["minimum_value"],
                max_value=row["maximum_value"],
                increment_by=row["increment"],
                is_cyclic=row["is_cyclic"],
            )
            self._reset_default_bounds(sequence, capabilities)
            sequences.append(sequence)

        logger.info(f"Found {len(sequences)} sequences")
        return sequences

    def _get_sequences(self, schema_filter: Optional[SchemaFilter]) -> list[dict]:
        where = render(schema_filter, "WHERE", "sequence_schema")
        query = f"""
            SELECT
                sequence_schema,
                sequence_name,
                data_type,
                start_value::bigint,
                minimum_value::bigint,
                maximum_value::bigint,
                increment::bigint,
                CASE
                    WHEN cycle_option = 'YES' THEN TRUE
                    ELSE FALSE
                END AS is_cyclic,
                ownerns.nspname AS owner_schema,
                tblcls.relname AS owner_table,
                att.attname AS owner_column
            FROM information_schema.sequences
            JOIN pg_namespace AS seqns ON seqns.nspname = sequence_schema
            JOIN pg_class AS seqcls
                ON seqcls.relnamespace = seqns.oid
                AND seqcls.relname = sequence_name
                AND seqcls.relkind = 'S'
            LEFT OUTER JOIN pg_depend AS dep ON dep.objid = seqcls.oid AND dep.deptype IN ('a', 'i')
            LEFT OUTER JOIN pg_class AS tblcls ON tblcls.oid = dep.refobjid
            LEFT OUTER JOIN pg_attribute AS att ON att.attrelid = dep.refobjid AND att.attnum = dep.refobjsubid
            LEFT OUTER JOIN pg_namespace AS ownerns ON ownerns.oid = tblcls.relnamespace
            {where.text}
            ORDER BY sequence_schema, sequence_name
        """
        return self.connection.execute_dict(query, where.params)

    @staticmethod
    def _is_implicit(row: dict[str, Any], tables: dict[TableKey, Table]) -> bool:
        """
        Sequences owned by a column are skipped when the owning table isn't
        selected, or when the column generates its values (serial/identity),
        since they get created along with the column.
        """
        owner_table = tables.get((row["owner_schema"], row["owner_table"]))
        if owner_table is None:
            return True
        owner_column = owner_table.get_column(row["owner_column"])
        return owner_column is not None and owner_column.value_generated == ValueGenerated.ON_ADD

    def _reset_default_bounds(self, sequence: Sequence, capabilities: ServerCapabilities) -> None:
        """Unset start/min/max wherever they equal the server default."""
        defaults = default_sequence_bounds(
            sequence.store_type,
            sequence.increment_by,
            sequence.min_value,
            sequence.max_value,
            capabilities,
        )
        if defaults is None:
            self.diagnostics.unexpected_sequence_type(sequence.full_name, sequence.store_type)
            return

        if sequence.start_value == defaults.start:
            sequence.start_value = None
        if sequence.min_value == defaults.min:
            sequence.min_value = None
        if sequence.max_value == defaults.max:
            sequence.max_value = None


class EnumExtractor(BaseExtractor):
    """Extracts enum types."""

    def extract(self, model: DatabaseModel) -> set[str]:
        """
        Register enum types on the model.

        Returns:
            The enum type names, used to recognize enum-typed columns.
        """
        query = """
            SELECT
                nspname,
                typname,
                array_agg(enumlabel ORDER BY enumsortorder) AS labels
            FROM pg_enum
            JOIN pg_type ON pg_type.oid = enumtypid
            JOIN pg_namespace ON pg_namespace.oid = pg_type.typnamespace
            GROUP BY nspname, typname
            ORDER BY nspname, typname
        """
        enum_names = set()
        for row in self.connection.execute_dict(query):
            schema_name = row["nspname"]
            if schema_name == model.default_schema:
                schema_name = None
            model.get_or_add_enum(schema_name, row["typname"], row["labels"])
            enum_names.add(row["typname"])

        logger.info(f"Found {len(enum_names)} enum types")
        return enum_names


class ExtensionExtractor(BaseExtractor):
    """Extracts installed extensions."""

    # Installed in every database
    IMPLICIT_EXTENSIONS = ("plpgsql",)

    def extract(self, model: DatabaseModel) -> None:
        query = """
            SELECT name, default_version, installed_version
            FROM pg_available_extensions
            ORDER BY name
        """
        for row in self.connection.execute_dict(query):
            if row["installed_version"] is None:
                continue
            if row["name"] in self.IMPLICIT_EXTENSIONS:
                continue
            model.get_or_add_extension(row["name"], row["installed_version"])
