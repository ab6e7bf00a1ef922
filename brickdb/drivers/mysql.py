"""MySQL driver: information_schema introspection and in-place alters."""
from __future__ import annotations

from typing import Any

import pymysql

from brickdb.compile.base import Dialect
from brickdb.compile.mysql import MySQLDDLBuilder, MySQLDialect
from brickdb.config import ConnectionConfig
from brickdb.drivers.base import Database, escape_like
from brickdb.errors import EngineError
from brickdb.migrate.differ import AlterPlan
from brickdb.schema.literals import Identifier
from brickdb.schema.table import ColumnDescriptor, IndexDescriptor, IndexKind, TableDefinition
from brickdb.schema.types import coerce_default, resolve


def _text(value: Any) -> Any:
    # Some server versions report information_schema text as bytes.
    return value.decode() if isinstance(value, (bytes, bytearray)) else value


class MySQLDatabase(Database):
    """MySQL / MariaDB through PyMySQL.

    Args:
        connection: An open PyMySQL connection.
        prefix: Prefix added to every table name.
        charset: Charset used when inlining DDL literals.
    """

    engine_errors = (pymysql.MySQLError,)
    _ddl: MySQLDDLBuilder

    def __init__(self, connection: Any, prefix: str = "", charset: str = "utf8mb4") -> None:
        self._charset = charset
        self._database_name: str | None = None
        super().__init__(connection, prefix)

    @classmethod
    def connect(cls, config: ConnectionConfig) -> MySQLDatabase:
        """Open a PyMySQL connection described by ``config``."""
        try:
            connection = pymysql.connect(
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password or "",
                database=config.database,
                charset=config.charset,
            )
        except pymysql.MySQLError as exc:
            raise EngineError(str(exc)) from exc
        return cls(connection, prefix=config.prefix, charset=config.charset)

    def _make_dialect(self) -> Dialect:
        return MySQLDialect(self._charset)

    def _make_ddl(self) -> MySQLDDLBuilder:
        return MySQLDDLBuilder(self._dialect, self._prefix)

    @property
    def database_name(self) -> str:
        """The current schema, read once with ``select database()``."""
        if self._database_name is None:
            cursor = self._execute("select database()")
            try:
                row = cursor.fetchone()
            finally:
                cursor.close()
            self._database_name = _text(row[0]) if row and row[0] else ""
        return self._database_name

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _fetch_column_defs(self, table: str) -> dict[str, ColumnDescriptor] | None:
        rows = self.get(
            Identifier("information_schema", "COLUMNS"),
            {"TABLE_SCHEMA": self.database_name, "TABLE_NAME": self._prefix + table},
            columns=["COLUMN_NAME", "COLUMN_TYPE", "IS_NULLABLE", "COLUMN_DEFAULT", "EXTRA", "COLUMN_KEY"],
            order=["ORDINAL_POSITION"],
        )
        if not rows:
            return None

        columns: dict[str, ColumnDescriptor] = {}
        for row in rows:
            column_type = _text(row["COLUMN_TYPE"])
            column = resolve("bool" if column_type.lower() == "tinyint(1)" else column_type)

            default = _text(row["COLUMN_DEFAULT"])
            if isinstance(default, str) and default.upper() == "NULL":
                default = None

            columns[_text(row["COLUMN_NAME"])] = column.model_copy(
                update={
                    "allow_null": _text(row["IS_NULLABLE"]).upper() == "YES",
                    "default": coerce_default(default, column),
                    "auto_increment": "auto_increment" in (_text(row["EXTRA"]) or "").lower(),
                    "primary": _text(row["COLUMN_KEY"]) == "PRI",
                }
            )
        return columns

    def _fetch_indexes(self, table: str) -> list[IndexDescriptor]:
        rows = self.get(
            Identifier("information_schema", "STATISTICS"),
            {"TABLE_SCHEMA": self.database_name, "TABLE_NAME": self._prefix + table},
            columns=["INDEX_NAME", "COLUMN_NAME", "NON_UNIQUE"],
            order=["INDEX_NAME", "SEQ_IN_INDEX"],
        )

        grouped: dict[str, list[dict[str, Any]]] = {}
        for row in rows:
            grouped.setdefault(_text(row["INDEX_NAME"]), []).append(row)

        indexes = []
        for name, members in grouped.items():
            if name == "PRIMARY":
                kind, name = IndexKind.PRIMARY, "primary"
            elif int(members[0]["NON_UNIQUE"]):
                kind = IndexKind.INDEX
            else:
                kind = IndexKind.UNIQUE
            columns = tuple(_text(m["COLUMN_NAME"]) for m in members)
            indexes.append(IndexDescriptor(type=kind, columns=columns, name=name))
        return indexes

    def _fetch_table_names(self) -> list[str]:
        rows = self.get(
            Identifier("information_schema", "TABLES"),
            {
                "TABLE_SCHEMA": self.database_name,
                "TABLE_NAME": {"$like": escape_like(self._prefix) + "%"},
            },
            columns=["TABLE_NAME"],
        )
        return [_text(row["TABLE_NAME"]) for row in rows]

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def _create_table(self, definition: TableDefinition) -> None:
        for sql in self._ddl.create_table(definition):
            self._query_define(sql)

    def _alter_table(self, plan: AlterPlan) -> None:
        sql = self._ddl.alter_table(plan)
        if sql is not None:
            self._query_define(sql)
