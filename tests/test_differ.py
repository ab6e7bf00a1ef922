"""Unit tests for normalize_table and compute_alter_plan."""

from __future__ import annotations

import pytest

from brickdb.compile.mysql import MySQLDDLBuilder, MySQLDialect
from brickdb.compile.sqlite import SQLiteDialect
from brickdb.errors import ConfigurationError, PrimaryKeyMismatchError
from brickdb.migrate.differ import column_changed, compute_alter_plan, normalize_table
from brickdb.schema.literals import Literal
from brickdb.schema.table import IndexDescriptor, IndexKind, TableDefinition
from brickdb.schema.types import resolve
from tests.fixtures import pair_table, user_table

MYSQL = MySQLDialect()
SQLITE = SQLiteDialect()


# ---------------------------------------------------------------------------
# normalize_table
# ---------------------------------------------------------------------------


def test_primary_index_is_derived_from_flags():
    flagged = resolve("int").model_copy(update={"primary": True, "allow_null": True})
    table = normalize_table(TableDefinition(name="t", columns={"id": flagged, "v": "text"}))
    assert table.primary_index == IndexDescriptor(type=IndexKind.PRIMARY, columns=("id",), name="primary")
    assert table.columns["id"].allow_null is False


def test_flags_are_propagated_from_the_primary_index():
    table = normalize_table(pair_table())
    assert table.primary_columns == ["col1", "col2"]
    assert not table.columns["label"].primary


def test_flag_and_index_mismatch_raises():
    flagged = resolve("int").model_copy(update={"primary": True})
    definition = TableDefinition(
        name="t",
        columns={"a": flagged, "b": "int"},
        indexes=(IndexDescriptor(type=IndexKind.PRIMARY, columns=("b",)),),
    )
    with pytest.raises(PrimaryKeyMismatchError) as exc_info:
        normalize_table(definition)
    assert exc_info.value.index_columns == ["b"]
    assert exc_info.value.column_flags == ["a"]


def test_two_primary_indexes_raise():
    definition = TableDefinition(
        name="t",
        columns={"a": "int", "b": "int"},
        indexes=(
            IndexDescriptor(type=IndexKind.PRIMARY, columns=("a",)),
            IndexDescriptor(type=IndexKind.PRIMARY, columns=("b",)),
        ),
    )
    with pytest.raises(ConfigurationError):
        normalize_table(definition)


def test_index_over_undefined_column_raises():
    definition = TableDefinition(
        name="t", columns={"a": "int"}, indexes=(IndexDescriptor(columns=("missing",)),)
    )
    with pytest.raises(ConfigurationError):
        normalize_table(definition)


def test_index_names():
    table = normalize_table(
        TableDefinition.builder("post")
        .primary_key("post_id")
        .column("slug", "varchar(50)", index="unique")
        .column("author", "int", index="index.byauthor")
        .column("created", "datetime", index="index.byauthor")
        .build(),
        prefix="gdn_",
    )
    names = {i.type: i.name for i in table.indexes}
    assert names == {
        IndexKind.PRIMARY: "primary",
        IndexKind.UNIQUE: "ux_gdn_post_slug",
        IndexKind.INDEX: "ix_gdn_post_byauthor",
    }
    (multi,) = [i for i in table.indexes if i.type is IndexKind.INDEX]
    assert multi.columns == ("author", "created")


def test_live_index_names_are_adopted():
    live = normalize_table(user_table()).model_copy(
        update={
            "indexes": (
                IndexDescriptor(type=IndexKind.PRIMARY, columns=("user_id",), name="primary"),
                IndexDescriptor(type=IndexKind.UNIQUE, columns=("email",), name="legacy_email"),
            )
        }
    )
    table = normalize_table(user_table(), live)
    assert {i.name for i in table.indexes} == {"primary", "legacy_email", "ix_user_points"}


# ---------------------------------------------------------------------------
# compute_alter_plan
# ---------------------------------------------------------------------------


def _plan(desired, current, dialect=MYSQL, drop=False):
    current = normalize_table(current)
    return compute_alter_plan(normalize_table(desired, current), current, dialect, drop=drop)


def test_identical_tables_give_an_empty_plan():
    plan = _plan(user_table(), user_table())
    assert plan.is_empty
    assert MySQLDDLBuilder(MYSQL).alter_table(plan) is None


def test_added_and_altered_columns():
    current = user_table()
    desired = (
        TableDefinition.builder("user")
        .primary_key("user_id")
        .column("name", "varchar(80)")
        .column("email", "varchar(100)", index="unique")
        .column("points", "int", null_default=0, index="index")
        .column("bio", "text", null_default=None)
        .column("age", "byte", null_default=None)
        .build()
    )
    plan = _plan(desired, current)
    assert list(plan.add_columns) == ["age"]
    assert list(plan.alter_columns) == ["name"]
    assert plan.drop_columns == []
    assert MySQLDDLBuilder(MYSQL).alter_table(plan) == (
        "alter table `user`\n"
        "  add `age` tinyint after `bio`,\n"
        "  modify `name` varchar(80) not null"
    )


def test_missing_columns_are_kept_without_drop():
    desired = TableDefinition.builder("user").primary_key("user_id").column("name", "varchar(50)").build()
    plan = _plan(desired, user_table())
    assert plan.drop_columns == []
    assert plan.drop_indexes == []
    assert plan.is_empty
    assert set(plan.merged.columns) == {"user_id", "name", "email", "points", "bio"}


def test_drop_removes_columns_and_indexes():
    desired = TableDefinition.builder("user").primary_key("user_id").column("name", "varchar(50)").build()
    plan = _plan(desired, user_table(), drop=True)
    assert plan.drop_columns == ["email", "points", "bio"]
    assert {i.name for i in plan.drop_indexes} == {"ux_user_email", "ix_user_points"}
    assert MySQLDDLBuilder(MYSQL).alter_table(plan) == (
        "alter table `user`\n"
        "  drop index `ux_user_email`,\n"
        "  drop index `ix_user_points`,\n"
        "  drop `email`,\n"
        "  drop `points`,\n"
        "  drop `bio`"
    )
    assert plan.merged == plan.desired


def test_reordered_primary_key_is_replaced_without_drop():
    plan = _plan(pair_table(("col2", "col1")), pair_table(("col1", "col2")))
    assert [i.columns for i in plan.drop_indexes] == [("col1", "col2")]
    assert [i.columns for i in plan.add_indexes] == [("col2", "col1")]
    assert MySQLDDLBuilder(MYSQL).alter_table(plan) == (
        "alter table `pair`\n"
        "  drop primary key,\n"
        "  add primary key (`col2`, `col1`)"
    )
    assert plan.merged.primary_index.columns == ("col2", "col1")


def test_secondary_index_order_does_not_matter():
    current = TableDefinition.builder("t").column("a", "int").column("b", "int").index(["a", "b"]).build()
    desired = TableDefinition.builder("t").column("a", "int").column("b", "int").index(["b", "a"]).build()
    assert _plan(desired, current).is_empty


def test_defaults_compare_by_logical_value():
    desired = resolve("int").model_copy(update={"default": 0})
    live = resolve("int").model_copy(update={"default": "0"})
    assert not column_changed(desired, live, MYSQL)
    assert column_changed(desired, live.model_copy(update={"default": "1"}), MYSQL)


def test_enum_changes_only_matter_on_mysql():
    desired = resolve("enum('a','b','c')")
    live = resolve("enum('a','b')")
    assert column_changed(desired, live, MYSQL)
    assert not column_changed(desired, live, SQLITE)


def test_types_compare_by_native_spelling():
    assert not column_changed(resolve("integer"), resolve("int(11)"), MYSQL)
    assert column_changed(resolve("int"), resolve("uint"), MYSQL)


@pytest.mark.parametrize(
    ("declared", "reported"),
    [("decimal", "decimal(10,0)"), ("numeric(8)", "decimal(8,0)"), ("char", "char(1)"), ("binary", "binary(1)")],
)
def test_unsized_types_match_what_mysql_reports(declared, reported):
    assert not column_changed(resolve(declared), resolve(reported), MYSQL)


def test_literal_defaults_compare_as_sql_text():
    desired = resolve("datetime").model_copy(update={"default": Literal("CURRENT_TIMESTAMP")})
    assert not column_changed(desired, resolve("datetime").model_copy(update={"default": "CURRENT_TIMESTAMP"}), MYSQL)
    assert not column_changed(desired, resolve("datetime").model_copy(update={"default": "current_timestamp()"}), MYSQL)
    assert column_changed(desired, resolve("datetime"), MYSQL)
    assert column_changed(desired, resolve("datetime").model_copy(update={"default": "'CURRENT_TIMESTAMP'"}), SQLITE)
