"""SQLite driver: pragma introspection, copy-swap migration and upsert emulation.

SQLite cannot modify or drop columns in place, so every non-empty plan is
applied by rebuilding the table::

    drop index `ix_user_name`                 -- names are global, free them
    alter table `user` rename to `user_1700000000`
    create table `user` (...)                 -- merged definition
    insert into `user` (...) select ... from `user_1700000000`
    drop table `user_1700000000`              -- only after the copy worked

Unique indexes are dropped along with plain ones.  SQLite keeps index names
in one namespace per database, and a renamed table keeps its indexes, so
recreating ``ux_user_email`` on the new table would collide with the copy
still attached to ``user_1700000000``.  Auto-indexes (``sqlite_autoindex_*``)
belong to the table and cannot be dropped; they are left alone.
"""
from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Mapping
from typing import Any

from brickdb.compile.base import CompiledSQL, Dialect
from brickdb.compile.builder import TableRef
from brickdb.compile.sqlite import SQLiteDDLBuilder, SQLiteDialect
from brickdb.config import ConnectionConfig
from brickdb.drivers.base import Database, escape_like
from brickdb.errors import ConfigurationError, EngineError, MissingKeyError
from brickdb.migrate.differ import AlterPlan
from brickdb.schema.literals import Identifier
from brickdb.schema.table import ColumnDescriptor, IndexDescriptor, IndexKind, TableDefinition
from brickdb.schema.types import coerce_default, resolve

logger = logging.getLogger(__name__)


class SQLiteDatabase(Database):
    """SQLite through the standard library ``sqlite3`` module.

    Args:
        connection: An open ``sqlite3`` connection.
        prefix: Prefix added to every table name.
    """

    engine_errors = (sqlite3.Error,)
    _ddl: SQLiteDDLBuilder

    @classmethod
    def connect(cls, config: ConnectionConfig) -> SQLiteDatabase:
        """Open the database file (or ``:memory:``) named by ``config``."""
        try:
            connection = sqlite3.connect(config.database)
        except sqlite3.Error as exc:
            raise EngineError(str(exc)) from exc
        return cls(connection, prefix=config.prefix)

    def _make_dialect(self) -> Dialect:
        return SQLiteDialect()

    def _make_ddl(self) -> SQLiteDDLBuilder:
        return SQLiteDDLBuilder(self._dialect, self._prefix)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _pragma(self, sql: str, **params: Any) -> list[dict[str, Any]]:
        return self._query_rows(CompiledSQL(sql=sql, params=params, dialect="sqlite"))

    def _fetch_column_defs(self, table: str) -> dict[str, ColumnDescriptor] | None:
        rows = self._pragma("select * from pragma_table_info(:table)", table=self._prefix + table)
        if not rows:
            return None

        key_count = sum(1 for row in rows if row["pk"])
        columns: dict[str, ColumnDescriptor] = {}
        for row in rows:
            declared = (row["type"] or "text").strip()
            column = resolve(declared)
            # A lone ``integer`` primary key is the rowid alias.
            rowid = bool(row["pk"]) and key_count == 1 and declared.lower() == "integer"
            columns[row["name"]] = column.model_copy(
                update={
                    "allow_null": not row["notnull"] and not row["pk"],
                    "default": coerce_default(row["dflt_value"], column),
                    "auto_increment": rowid,
                    "primary": bool(row["pk"]),
                }
            )
        return columns

    def _fetch_indexes(self, table: str) -> list[IndexDescriptor]:
        name = self._prefix + table
        indexes = []

        key_columns = [
            row["name"]
            for row in sorted(
                self._pragma("select * from pragma_table_info(:table)", table=name),
                key=lambda r: r["pk"],
            )
            if row["pk"]
        ]
        if key_columns:
            indexes.append(IndexDescriptor(type=IndexKind.PRIMARY, columns=tuple(key_columns), name="primary"))

        for row in self._pragma("select * from pragma_index_list(:table)", table=name):
            if row["origin"] == "pk":
                continue
            members = self._pragma(
                "select * from pragma_index_info(:index) order by seqno", index=row["name"]
            )
            kind = IndexKind.UNIQUE if row["unique"] else IndexKind.INDEX
            indexes.append(
                IndexDescriptor(type=kind, columns=tuple(m["name"] for m in members), name=row["name"])
            )
        return indexes

    def _fetch_table_names(self) -> list[str]:
        rows = self.get(
            Identifier("sqlite_master"),
            {"type": "table", "name": {"$like": escape_like(self._prefix) + "%"}},
            columns=["name"],
        )
        return [row["name"] for row in rows if not row["name"].startswith("sqlite_")]

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def _create_table(self, definition: TableDefinition) -> None:
        for sql in self._ddl.create_table(definition):
            self._query_define(sql)

    def _alter_table(self, plan: AlterPlan) -> None:
        target = plan.merged
        current = plan.current
        temporary = f"{plan.table}_{int(time.time())}"

        for index in current.indexes:
            if index.type is not IndexKind.PRIMARY and not (index.name or "").startswith("sqlite_"):
                self._query_define(self._ddl.drop_index(plan.table, index))
        self._query_define(self._ddl.rename_table(plan.table, temporary))

        try:
            for sql in self._ddl.create_table(target):
                self._query_define(sql)
            columns = [name for name in target.columns if name in current.columns]
            if columns:
                self._query_define(self._ddl.copy_rows(temporary, plan.table, columns))
        except EngineError:
            logger.error(
                "Migrating table %s%s failed; the original rows remain in %s%s",
                self._prefix,
                plan.table,
                self._prefix,
                temporary,
            )
            raise

        self._query_define(self._ddl.drop_table(temporary))

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    def insert(
        self,
        table: TableRef,
        row: Mapping[str, Any],
        ignore: bool = False,
        replace: bool = False,
        upsert: bool = False,
    ) -> Any:
        """Insert ``row``; ``upsert`` is emulated with an update then an insert.

        With ``upsert`` the row must carry every primary key column.  The
        key value is returned (a dict of them for composite keys).

        Raises:
            ConfigurationError: If the table is unknown or has no primary key.
            MissingKeyError: If ``row`` lacks a primary key value.
        """
        if not upsert:
            return super().insert(table, row, ignore=ignore, replace=replace)
        if ignore or replace:
            raise ConfigurationError("Upsert cannot be combined with ignore or replace.")
        if not isinstance(table, str):
            raise ConfigurationError("Upsert needs a plain table name.")

        definition = self.get_table_def(table)
        if definition is None or definition.primary_index is None:
            raise ConfigurationError(f"Upsert needs table '{table}' to exist with a primary key.")

        keys = definition.primary_index.columns
        missing = [k for k in keys if row.get(k) is None]
        if missing:
            raise MissingKeyError(table, missing)

        where = {k: row[k] for k in keys}
        values = {c: v for c, v in row.items() if c not in keys}
        if not values:
            super().insert(table, row, ignore=True)
        elif not self.update(table, values, where):
            super().insert(table, row)

        return row[keys[0]] if len(keys) == 1 else where
