"""SQLite dialect and DDL builder."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar

from brickdb.compile.base import Dialect
from brickdb.compile.ddl import DDLBuilder
from brickdb.schema.table import ColumnDescriptor, IndexDescriptor, IndexKind, TableDefinition


class SQLiteDialect(Dialect):
    """SQLite-flavoured rendering rules.

    Parameter style: ``:name`` – compatible with Python's built-in
    ``sqlite3`` named-parameter execution (``cursor.execute(sql, dict)``).

    SQLite's ``like`` needs an explicit escape character, has no upsert
    verb and no ``truncate``.  Dates are bound as ISO-8601 strings.
    """

    type_translations: ClassVar[dict[str, str]] = {
        "bool": "boolean",
        "byte": "tinyint",
        "short": "smallint",
        "long": "bigint",
        "enum": "text",
    }

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    @property
    def unbounded_limit(self) -> int:
        return -1

    def param_placeholder(self, name: str) -> str:
        return f":{name}"

    def like_clause(self, column: str, placeholder: str) -> str:
        return f"{column} like {placeholder} escape '\\'"

    def bind_value(self, value: Any) -> Any:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return super().bind_value(value)

    def quote_literal(self, value: Any) -> str:
        value = self.bind_value(value)
        if value is None:
            return "null"
        if isinstance(value, (int, float)):
            return str(value)
        text = str(value).replace("'", "''")
        return f"'{text}'"

    def insert_verb(self, ignore: bool = False, replace: bool = False) -> str:
        if ignore:
            return "insert or ignore into "
        if replace:
            return "insert or replace into "
        return "insert into "

    def update_verb(self, ignore: bool = False) -> str:
        return "update or ignore " if ignore else "update "

    def truncate(self, table: str) -> str:
        return f"delete from {table}"

    def upsert_clause(self, columns: list[str]) -> str | None:
        return None

    def native_type(self, column: ColumnDescriptor) -> str:
        # The rowid alias must be spelled exactly ``integer``.
        if column.auto_increment:
            return "integer"
        if column.enum is not None:
            column = column.model_copy(update={"enum": None})
        return super().native_type(column)


class SQLiteDDLBuilder(DDLBuilder):
    """SQLite DDL: primary-key-first create and the copy-swap helpers."""

    def column_definition(self, name: str, column: ColumnDescriptor) -> str:
        result = f"{self._dialect.quote_identifier(name)} {self._dialect.native_type(column)}"
        if column.primary and column.auto_increment:
            return result + " not null primary key autoincrement"
        if not column.allow_null:
            result += " not null"
        return result + self._default_clause(column)

    def create_table(self, definition: TableDefinition) -> list[str]:
        """Return the create statement followed by one per secondary index.

        Primary key columns come first, in key order.
        """
        columns = dict(definition.columns)
        parts: list[str] = []
        auto_increment = False

        pk = definition.primary_index
        if pk is not None:
            for name in pk.columns:
                column = columns.pop(name)
                parts.append(self.column_definition(name, column))
                auto_increment = auto_increment or column.auto_increment

        parts += [self.column_definition(n, c) for n, c in columns.items()]
        if pk is not None and not auto_increment:
            parts.append(f"primary key {self.column_list(pk.columns)}")

        body = ",\n  ".join(parts)
        statements = [f"create table {self.table_name(definition.name)} (\n  {body}\n)"]
        statements += [self.create_index(definition.name, i) for i in self._secondary_indexes(definition)]
        return statements

    def create_index(self, table: str, index: IndexDescriptor) -> str:
        unique = "unique " if index.type is IndexKind.UNIQUE else ""
        return (
            f"create {unique}index {self.index_name(table, index)} "
            f"on {self.table_name(table)} {self.column_list(index.columns)}"
        )

    def drop_index(self, table: str, index: IndexDescriptor) -> str:
        return f"drop index if exists {self.index_name(table, index)}"

    def rename_table(self, old: str, new: str) -> str:
        return f"alter table {self.table_name(old)} rename to {self.table_name(new)}"

    def copy_rows(self, source: str, target: str, columns: list[str]) -> str:
        """Return ``insert into target (cols) select cols from source``."""
        quote = self._dialect.quote_identifier
        select = ", ".join(quote(c) for c in columns)
        return (
            f"insert into {self.table_name(target)}\n"
            f"{self.column_list(columns)}\n"
            f"select {select}\n"
            f"from {self.table_name(source)}"
        )
