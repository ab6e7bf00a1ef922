"""Unit tests for StatementBuilder and the DDL builders (both dialects)."""

from __future__ import annotations

from datetime import datetime

import pytest

from brickdb.compile.builder import StatementBuilder
from brickdb.compile.mysql import MySQLDDLBuilder, MySQLDialect
from brickdb.compile.sqlite import SQLiteDDLBuilder, SQLiteDialect
from brickdb.errors import ConfigurationError, InvalidTruncateError
from brickdb.migrate.differ import normalize_table
from brickdb.schema.literals import Aggregate, Identifier, Increment, Literal
from brickdb.schema.types import resolve
from tests.fixtures import pair_table, user_table

# ---------------------------------------------------------------------------
# select
# ---------------------------------------------------------------------------


def test_select_star(my):
    r = my.select("user")
    assert r.sql == "select *\nfrom `user`"
    assert r.params == {}
    assert r.dialect == "mysql"


def test_select_full(my):
    r = my.select("user", {"id": {">": 1}}, columns=["id", "name"], order=["-name", "id"], limit=10, offset=20)
    assert r.sql == (
        "select `id`, `name`\n"
        "from `user`\n"
        "where `id` > %(param_0)s\n"
        "order by `name` desc, `id`\n"
        "limit 10 offset 20"
    )
    assert r.params == {"param_0": 1}


def test_select_aggregates(my):
    r = my.select("user", columns=["status", Aggregate("count", "*", "n"), Aggregate("max", "points")])
    assert r.sql == "select `status`, count(*) as `n`, max(`points`) as `max`\nfrom `user`"


def test_select_page_derives_offset(sq):
    assert sq.select("user", limit=10, page=3).sql.endswith("limit 10 offset 20")
    assert sq.select("user", limit=10, page=1).sql.endswith("limit 10")


def test_select_invalid_page(sq):
    with pytest.raises(ConfigurationError):
        sq.select("user", limit=10, page=0)


def test_select_offset_without_limit(my, sq):
    assert my.select("user", offset=5).sql.endswith("limit 18446744073709551615 offset 5")
    assert sq.select("user", offset=5).sql.endswith("limit -1 offset 5")


def test_prefix_applies_to_plain_names_only():
    builder = StatementBuilder(SQLiteDialect(), prefix="gdn_")
    assert "from `gdn_user`" in builder.select("user").sql
    assert "from `information_schema`.`COLUMNS`" in builder.select(Identifier("information_schema.COLUMNS")).sql
    assert "from user_view" in builder.select(Literal("user_view")).sql


# ---------------------------------------------------------------------------
# insert
# ---------------------------------------------------------------------------


def test_insert(sq):
    r = sq.insert("user", {"name": "a", "points": 2})
    assert r.sql == "insert into `user`\n(`name`, `points`)\nvalues (:param_0, :param_1)"
    assert r.params == {"param_0": "a", "param_1": 2}


def test_insert_verbs(my, sq):
    assert my.insert("t", {"a": 1}, ignore=True).sql.startswith("insert ignore into `t`")
    assert my.insert("t", {"a": 1}, replace=True).sql.startswith("replace into `t`")
    assert sq.insert("t", {"a": 1}, ignore=True).sql.startswith("insert or ignore into `t`")
    assert sq.insert("t", {"a": 1}, replace=True).sql.startswith("insert or replace into `t`")


def test_mysql_upsert_updates_every_column(my):
    r = my.insert("t", {"id": 1, "name": "x"}, upsert=True)
    assert r.sql.endswith("on duplicate key update `id` = values(`id`), `name` = values(`name`)")


def test_sqlite_has_no_native_upsert(sq):
    with pytest.raises(ConfigurationError):
        sq.insert("t", {"id": 1}, upsert=True)


def test_insert_options_are_exclusive(my):
    with pytest.raises(ConfigurationError):
        my.insert("t", {"a": 1}, ignore=True, replace=True)
    with pytest.raises(ConfigurationError):
        my.insert("t", {"a": 1}, ignore=True, upsert=True)


def test_insert_empty_row(my):
    with pytest.raises(ConfigurationError):
        my.insert("t", {})


def test_insert_binds_dates_per_dialect(my, sq):
    when = datetime(2024, 1, 2, 3, 4, 5)
    assert my.insert("t", {"at": when}).params == {"param_0": "2024-01-02 03:04:05"}
    assert sq.insert("t", {"at": when}).params == {"param_0": "2024-01-02T03:04:05"}


def test_insert_literal_value(sq):
    r = sq.insert("t", {"created": Literal.timestamp()})
    assert "values (cast(strftime('%s', 'now') as integer))" in r.sql
    assert r.params == {}


# ---------------------------------------------------------------------------
# update / delete
# ---------------------------------------------------------------------------


def test_update_shares_param_numbering_with_where(my):
    r = my.update("user", {"name": "z", "points": 3}, {"id": 7})
    assert r.sql == (
        "update `user`\n"
        "set\n"
        "  `name` = %(param_0)s,\n"
        "  `points` = %(param_1)s\n"
        "where `id` = %(param_2)s"
    )
    assert r.params == {"param_0": "z", "param_1": 3, "param_2": 7}


def test_update_ignore_verbs(my, sq):
    assert my.update("t", {"a": 1}, ignore=True).sql.startswith("update ignore `t`")
    assert sq.update("t", {"a": 1}, ignore=True).sql.startswith("update or ignore `t`")


def test_update_increment(sq):
    r = sq.update("user", {"points": Increment(5), "visits": Increment(-1)})
    assert "`points` = `points` +5" in r.sql
    assert "`visits` = `visits` -1" in r.sql
    assert r.params == {}


def test_update_without_values(my):
    with pytest.raises(ConfigurationError):
        my.update("t", {})


def test_delete(sq):
    r = sq.delete("user", {"id": [1, 2]})
    assert r.sql == "delete from `user`\nwhere `id` in (:param_0, :param_1)"


def test_truncate_per_dialect(my, sq):
    assert my.delete("user", truncate=True).sql == "truncate table `user`"
    assert sq.delete("user", truncate=True).sql == "delete from `user`"


def test_truncate_with_filter_is_rejected(my):
    with pytest.raises(InvalidTruncateError) as exc_info:
        my.delete("user", {"id": 1}, truncate=True)
    assert exc_info.value.table == "user"


def test_truncate_with_only_empty_brackets(my):
    assert my.delete("user", {0: {}}, truncate=True).sql == "truncate table `user`"
    assert my.delete("user", {"$or": {1: {}}}, truncate=True).sql == "truncate table `user`"


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------


def test_mysql_create_table():
    ddl = MySQLDDLBuilder(MySQLDialect(), prefix="gdn_")
    (sql,) = ddl.create_table(normalize_table(user_table(), prefix="gdn_"))
    assert sql == (
        "create table `gdn_user` (\n"
        "  `user_id` int not null auto_increment,\n"
        "  `name` varchar(50) not null,\n"
        "  `email` varchar(100) not null,\n"
        "  `points` int not null default 0,\n"
        "  `bio` text,\n"
        "  primary key (`user_id`),\n"
        "  unique `ux_gdn_user_email` (`email`),\n"
        "  index `ix_gdn_user_points` (`points`)\n"
        ")"
    )


def test_sqlite_create_table_with_auto_increment():
    ddl = SQLiteDDLBuilder(SQLiteDialect())
    statements = ddl.create_table(normalize_table(user_table()))
    assert statements == [
        "create table `user` (\n"
        "  `user_id` integer not null primary key autoincrement,\n"
        "  `name` varchar(50) not null,\n"
        "  `email` varchar(100) not null,\n"
        "  `points` int not null default 0,\n"
        "  `bio` text\n"
        ")",
        "create unique index `ux_user_email` on `user` (`email`)",
        "create index `ix_user_points` on `user` (`points`)",
    ]


def test_sqlite_create_table_puts_key_columns_first():
    ddl = SQLiteDDLBuilder(SQLiteDialect())
    (sql,) = ddl.create_table(normalize_table(pair_table(("col2", "col1"))))
    assert sql == (
        "create table `pair` (\n"
        "  `col2` int not null,\n"
        "  `col1` int not null,\n"
        "  `label` varchar(20),\n"
        "  primary key (`col2`, `col1`)\n"
        ")"
    )


def test_literal_defaults_render_raw():
    created = resolve("datetime").model_copy(
        update={"default": Literal({"mysql": "current_timestamp", "sqlite": "CURRENT_TIMESTAMP"})}
    )
    assert MySQLDDLBuilder(MySQLDialect()).column_definition("created", created) == (
        "`created` datetime not null default current_timestamp"
    )
    assert SQLiteDDLBuilder(SQLiteDialect()).column_definition("created", created) == (
        "`created` datetime not null default CURRENT_TIMESTAMP"
    )


def test_native_types_per_dialect():
    my, sq = MySQLDialect(), SQLiteDialect()
    flag, n, kind = resolve("bool"), resolve("ubigint"), resolve("enum('a','b')")
    assert my.native_type(flag) == "tinyint(1)"
    assert sq.native_type(flag) == "boolean"
    assert my.native_type(n) == "bigint unsigned"
    assert my.native_type(kind) == "enum('a','b')"
    assert sq.native_type(kind) == "text"


def test_quote_literal_per_dialect():
    assert SQLiteDialect().quote_literal("it's") == "'it''s'"
    assert MySQLDialect().quote_literal("it's") == "'it\\'s'"
    assert SQLiteDialect().quote_literal(False) == "0"
