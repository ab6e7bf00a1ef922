"""Unit tests for the Query builder, TableQuery cursor and TableDefBuilder."""

from __future__ import annotations

import pytest

from brickdb.errors import CompilationError, ConfigurationError
from brickdb.schema.literals import Aggregate, Identifier, Increment, Literal
from brickdb.schema.query import Query, TableQuery
from brickdb.schema.table import IndexKind, TableDefinition
from brickdb.schema.where import ComparisonOp, Condition, LogicalOp, WhereGroup

# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


def test_query_is_immutable():
    base = Query("user")
    filtered = base.where("id", 1)
    assert base.where_dict() == {}
    assert filtered.where_dict() == {"id": 1}


def test_same_column_conditions_merge():
    query = Query("user").where("id", 1).where("id", {"<": 5})
    assert query.where_dict() == {"id": {"=": 1, "<": 5}}


def test_brackets_nest():
    query = (
        Query("user")
        .where("status", "active")
        .begin_or()
        .where("points", {">": 100})
        .like("name", "a%")
        .begin_and()
        .in_("id", [1, 2])
        .end()
        .end()
        .where("deleted", None)
    )
    assert query.where_dict() == {
        "status": "active",
        1: {"$or": {"points": {">": 100}, "name": {"$like": "a%"}, 2: {"$and": {"id": {"$in": [1, 2]}}}}},
        "deleted": None,
    }


def test_to_where_builds_the_typed_tree():
    group = Query("user").where("a", 1).begin_or().where("b", 2).where("c", 3).end().to_where()
    assert group == WhereGroup(
        LogicalOp.AND,
        (
            Condition("a", ComparisonOp.EQ, 1),
            WhereGroup(
                LogicalOp.OR,
                (Condition("b", ComparisonOp.EQ, 2), Condition("c", ComparisonOp.EQ, 3)),
            ),
        ),
    )


def test_end_without_begin_raises():
    with pytest.raises(CompilationError):
        Query("user").end()


def test_options_and_to_dict():
    query = Query().set_from("user").set_limit(5).set_offset(10).set_order("-id")
    assert query.to_dict() == {
        "from": "user",
        "where": {},
        "limit": 5,
        "offset": 10,
        "order": ["-id"],
    }


# ---------------------------------------------------------------------------
# TableQuery
# ---------------------------------------------------------------------------


class _RecordingDB:
    def __init__(self):
        self.calls = []

    def get(self, table, where, **options):
        self.calls.append((table, where, options))
        return [{"id": 1}, {"id": 2}]


def test_table_query_only_fetches_on_fetch():
    db = _RecordingDB()
    cursor = TableQuery(db=db, table="user").with_limit(10).with_page(3).with_order("-id")
    assert db.calls == []
    assert cursor.offset == 20
    assert cursor.page == 3

    rows = cursor.fetch()
    assert len(rows) == 2
    assert rows.first() == {"id": 1}
    assert [r["id"] for r in rows] == [1, 2]
    (table, _, options) = db.calls[0]
    assert table == "user"
    assert options == {"columns": None, "order": ["-id"], "limit": 10, "offset": 20}


def test_table_query_paging_returns_new_cursors():
    first = TableQuery(db=_RecordingDB(), table="user", limit=5)
    second = first.with_page(2)
    assert first.offset is None
    assert second.offset == 5


def test_with_page_needs_a_limit():
    with pytest.raises(ConfigurationError):
        TableQuery(db=_RecordingDB(), table="user").with_page(2)
    with pytest.raises(ConfigurationError):
        TableQuery(db=_RecordingDB(), table="user", limit=5).with_page(0)


# ---------------------------------------------------------------------------
# TableDefBuilder
# ---------------------------------------------------------------------------


def test_builder_null_default_semantics():
    table = (
        TableDefinition.builder("t")
        .column("required", "int")
        .column("nullable", "int", null_default=None)
        .column("also_nullable", "int", null_default=True)
        .column("defaulted", "varchar(5)", null_default="x")
        .build()
    )
    assert not table.columns["required"].allow_null
    assert table.columns["nullable"].allow_null
    assert table.columns["also_nullable"].allow_null
    assert table.columns["defaulted"].default == "x"
    assert not table.columns["defaulted"].allow_null


def test_builder_index_merging():
    table = (
        TableDefinition.builder("t")
        .column("a", "int", index=["primary", "index"])
        .column("b", "int", index=["primary", "unique.ab"])
        .column("c", "int", index="unique.ab")
        .column("d", "int", index="unique")
        .build()
    )
    by_kind = {}
    for index in table.indexes:
        by_kind.setdefault(index.type, []).append(index.columns)
    assert by_kind[IndexKind.PRIMARY] == [("a", "b")]
    assert by_kind[IndexKind.UNIQUE] == [("b", "c"), ("d",)]
    assert by_kind[IndexKind.INDEX] == [("a",)]


def test_builder_unknown_index_type():
    with pytest.raises(ConfigurationError):
        TableDefinition.builder("t").column("a", "int", index="fulltext")


def test_table_definition_resolves_type_strings():
    table = TableDefinition(name="t", columns={"id": "uint", "name": "varchar(20)"})
    assert table.columns["id"].unsigned
    assert table.columns["name"].max_length == 20
    assert TableDefinition.model_validate(table.model_dump(mode="json")) == table


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------


def test_literal_per_dialect_with_default():
    literal = Literal({"MySQL": "now()", "default": "current_timestamp"})
    assert literal.get_value("mysql") == "now()"
    assert literal.get_value("sqlite") == "current_timestamp"


def test_literal_without_a_matching_dialect():
    with pytest.raises(ConfigurationError):
        Literal({"mysql": "now()"}).get_value("sqlite")


def test_increment_needs_a_column():
    assert Increment(2).get_value("mysql", "`n`") == "`n` +2"
    with pytest.raises(ConfigurationError):
        Increment().get_value("mysql")


def test_aggregate_renders_with_an_alias():
    quote = lambda name: f"`{name}`"  # noqa: E731
    assert Aggregate("sum", "points").get_value("mysql", quote) == "sum(`points`) as `sum`"
    assert Aggregate("count", "*", "n").get_value("sqlite", quote) == "count(*) as `n`"
    assert Aggregate("count-distinct", "name", "names").get_value("mysql", quote) == (
        "count(distinct `name`) as `names`"
    )


def test_aggregate_rejects_unknown_functions():
    with pytest.raises(ConfigurationError):
        Aggregate("median", "points")
    with pytest.raises(ConfigurationError):
        Aggregate("max", "points").get_value("mysql")


def test_identifier_splits_dots():
    assert Identifier("information_schema.COLUMNS") == Identifier("information_schema", "COLUMNS")
    assert Identifier("a.b").escape(lambda p: f"[{p}]") == "[a].[b]"
