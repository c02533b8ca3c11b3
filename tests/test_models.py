"""Tests for data models."""

import pytest
from schema_scaffold.base.models import (
    Column,
    ColumnPlaceholder,
    DatabaseModel,
    PlaceholderReason,
    ReferentialAction,
    Sequence,
    Table,
)
from schema_scaffold.exceptions import InternalConsistencyError


def make_table(*slots) -> Table:
    table = Table(schema_name="public", name="orders")
    for ordinal, slot in enumerate(slots, start=1):
        table.add_slot(ordinal, slot)
    return table


class TestTableColumnSlots:
    """Tests for ordinal-addressed column slots."""

    def test_add_slot_sets_back_reference(self):
        """Should make the table own the column."""
        column = Column(name="id", store_type="integer", ordinal_position=1)
        table = make_table(column)
        assert column.table is table

    def test_column_at_resolves_ordinals(self):
        """Should resolve 1-based ordinals to columns."""
        id_col = Column(name="id", store_type="integer")
        name_col = Column(name="name", store_type="text")
        table = make_table(id_col, name_col)
        assert table.column_at(1) is id_col
        assert table.column_at(2) is name_col

    def test_column_at_placeholder(self):
        """Should resolve a placeholder slot to None."""
        table = make_table(
            ColumnPlaceholder(1, PlaceholderReason.DROPPED),
            Column(name="name", store_type="text"),
        )
        assert table.column_at(1) is None
        assert table.column_at(2).name == "name"

    def test_column_at_out_of_range(self):
        """Should resolve unknown ordinals to None."""
        table = make_table(Column(name="id", store_type="integer"))
        assert table.column_at(0) is None
        assert table.column_at(2) is None

    def test_gaps_are_filled(self):
        """Should keep later ordinals aligned when some are missing."""
        table = Table(schema_name="public", name="orders")
        table.add_slot(1, Column(name="id", store_type="integer"))
        table.add_slot(4, Column(name="total", store_type="numeric"))
        assert len(table.columns) == 4
        assert table.columns[1] == ColumnPlaceholder(2, PlaceholderReason.GAP)
        assert table.column_at(4).name == "total"

    def test_out_of_order_ordinal(self):
        """Should refuse to overwrite an existing slot."""
        table = make_table(Column(name="id", store_type="integer"))
        with pytest.raises(InternalConsistencyError):
            table.add_slot(1, Column(name="again", store_type="integer"))

    def test_resolve_columns(self):
        """Should resolve all ordinals or none."""
        table = make_table(
            Column(name="a", store_type="integer"),
            ColumnPlaceholder(2, PlaceholderReason.UNSUPPORTED_TYPE, "status"),
            Column(name="c", store_type="integer"),
        )
        assert [c.name for c in table.resolve_columns([3, 1])] == ["c", "a"]
        assert table.resolve_columns([1, 2]) is None

    def test_remove_placeholders(self):
        """Should compact the column list, keeping catalog ordinals on columns."""
        table = make_table(
            Column(name="a", store_type="integer", ordinal_position=1),
            ColumnPlaceholder(2, PlaceholderReason.DROPPED),
            Column(name="c", store_type="integer", ordinal_position=3),
        )
        table.remove_placeholders()
        assert not any(isinstance(c, ColumnPlaceholder) for c in table.columns)
        assert [c.name for c in table.columns] == ["a", "c"]
        assert [c.ordinal_position for c in table.columns] == [1, 3]

    def test_get_column(self):
        """Should find real columns by name only."""
        table = make_table(
            Column(name="a", store_type="integer"),
            ColumnPlaceholder(2, PlaceholderReason.UNSUPPORTED_TYPE, "status"),
        )
        assert table.get_column("a").name == "a"
        assert table.get_column("status") is None


class TestDatabaseModel:
    """Tests for DatabaseModel registration."""

    def test_add_table(self):
        """Should register the table and set its back reference."""
        model = DatabaseModel()
        table = model.add_table(Table(schema_name="public", name="orders"))
        assert table.database is model
        assert model.get_table("public", "orders") is table
        assert model.get_table("sales", "orders") is None

    def test_duplicate_table(self):
        """Should reject a second table with the same schema and name."""
        model = DatabaseModel()
        model.add_table(Table(schema_name="public", name="orders"))
        with pytest.raises(InternalConsistencyError):
            model.add_table(Table(schema_name="public", name="orders"))

    def test_duplicate_sequence(self):
        """Should reject a second sequence with the same schema and name."""
        model = DatabaseModel()
        model.add_sequence(Sequence(schema_name="public", name="seq", store_type="bigint"))
        with pytest.raises(InternalConsistencyError):
            model.add_sequence(Sequence(schema_name="public", name="seq", store_type="bigint"))

    def test_get_or_add_enum(self):
        """Should register each enum once."""
        model = DatabaseModel()
        first = model.get_or_add_enum(None, "mood", ["happy", "sad"])
        second = model.get_or_add_enum(None, "mood", ["other"])
        assert first is second
        assert model.enums[0].labels == ["happy", "sad"]

    def test_get_or_add_extension(self):
        """Should register each extension once."""
        model = DatabaseModel()
        model.get_or_add_extension("postgis", "3.4.0")
        model.get_or_add_extension("postgis")
        assert [e.name for e in model.extensions] == ["postgis"]
        assert model.extensions[0].version == "3.4.0"

    def test_structural_equality_ignores_back_references(self):
        """Should compare models by content."""
        def build():
            model = DatabaseModel(database_name="db")
            table = model.add_table(Table(schema_name="public", name="orders"))
            table.add_slot(1, Column(name="id", store_type="integer", ordinal_position=1))
            return model

        assert build() == build()


class TestReferentialAction:
    """Tests for delete action codes."""

    @pytest.mark.parametrize(
        "code,action",
        [
            ("a", ReferentialAction.NO_ACTION),
            ("r", ReferentialAction.RESTRICT),
            ("c", ReferentialAction.CASCADE),
            ("n", ReferentialAction.SET_NULL),
            ("d", ReferentialAction.SET_DEFAULT),
        ],
    )
    def test_known_codes(self, code, action):
        """Should map every catalog code."""
        assert ReferentialAction.from_code(code) is action

    def test_unknown_code(self):
        """Should treat an unknown code as an internal consistency error."""
        with pytest.raises(InternalConsistencyError):
            ReferentialAction.from_code("x")
