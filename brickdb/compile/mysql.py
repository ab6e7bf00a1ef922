"""MySQL dialect and DDL builder."""
from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from pymysql.converters import escape_item

from brickdb.compile.base import Dialect
from brickdb.compile.ddl import DDLBuilder
from brickdb.schema.table import (
    ColumnDescriptor,
    IndexDescriptor,
    IndexKind,
    TableDefinition,
)

if TYPE_CHECKING:
    from brickdb.migrate.differ import AlterPlan


class MySQLDialect(Dialect):
    """MySQL-flavoured rendering rules.

    Parameter style: ``%(name)s`` – PyMySQL's named-parameter execution
    (``cursor.execute(sql, dict)``).

    Booleans are stored as ``tinyint(1)``; native upserts use
    ``on duplicate key update``.
    """

    type_translations: ClassVar[dict[str, str]] = {
        "bool": "tinyint(1)",
        "byte": "tinyint",
        "short": "smallint",
        "long": "bigint",
    }

    def __init__(self, charset: str = "utf8mb4") -> None:
        self._charset = charset

    @property
    def dialect_name(self) -> str:
        return "mysql"

    @property
    def unbounded_limit(self) -> int:
        return 18446744073709551615

    def param_placeholder(self, name: str) -> str:
        return f"%({name})s"

    def like_clause(self, column: str, placeholder: str) -> str:
        return f"{column} like {placeholder}"

    def quote_literal(self, value: Any) -> str:
        return escape_item(self.bind_value(value), self._charset)

    def insert_verb(self, ignore: bool = False, replace: bool = False) -> str:
        if ignore:
            return "insert ignore into "
        if replace:
            return "replace into "
        return "insert into "

    def update_verb(self, ignore: bool = False) -> str:
        return "update ignore " if ignore else "update "

    def truncate(self, table: str) -> str:
        return f"truncate table {table}"

    def upsert_clause(self, columns: list[str]) -> str | None:
        quote = self.quote_identifier
        updates = ", ".join(f"{quote(c)} = values({quote(c)})" for c in columns)
        return f"on duplicate key update {updates}"


class MySQLDDLBuilder(DDLBuilder):
    """MySQL DDL: inline indexes and a single in-place ``alter table``."""

    def column_definition(self, name: str, column: ColumnDescriptor) -> str:
        result = f"{self._dialect.quote_identifier(name)} {self._dialect.native_type(column)}"
        if not column.allow_null:
            result += " not null"
        result += self._default_clause(column)
        if column.auto_increment:
            result += " auto_increment"
        return result

    def index_definition(self, table: str, index: IndexDescriptor) -> str:
        columns = self.column_list(index.columns)
        if index.type is IndexKind.PRIMARY:
            return f"primary key {columns}"
        keyword = "unique" if index.type is IndexKind.UNIQUE else "index"
        return f"{keyword} {self.index_name(table, index)} {columns}"

    def create_table(self, definition: TableDefinition) -> list[str]:
        parts = [self.column_definition(n, c) for n, c in definition.columns.items()]
        parts += [self.index_definition(definition.name, i) for i in definition.indexes]
        body = ",\n  ".join(parts)
        return [f"create table {self.table_name(definition.name)} (\n  {body}\n)"]

    def alter_table(self, plan: AlterPlan) -> str | None:
        """Return one ``alter table`` applying ``plan``, or ``None`` if empty.

        Added columns are placed after their predecessor in the desired
        column order (or ``first``).
        """
        table = plan.table
        quote = self._dialect.quote_identifier
        parts: list[str] = []

        for index in plan.drop_indexes:
            if index.type is IndexKind.PRIMARY:
                parts.append("drop primary key")
            else:
                parts.append(f"drop index {self.index_name(table, index)}")

        positions = _column_positions(list(plan.desired.columns), quote)
        for name, column in plan.add_columns.items():
            parts.append(f"add {self.column_definition(name, column)}{positions[name]}")
        for index in plan.add_indexes:
            parts.append(f"add {self.index_definition(table, index)}")
        for name, column in plan.alter_columns.items():
            parts.append(f"modify {self.column_definition(name, column)}")
        for name in plan.drop_columns:
            parts.append(f"drop {quote(name)}")

        if not parts:
            return None
        return f"alter table {self.table_name(table)}\n  " + ",\n  ".join(parts)


def _column_positions(names: list[str], quote: Callable[[str], str]) -> dict[str, str]:
    positions: dict[str, str] = {}
    previous = " first"
    for name in names:
        positions[name] = previous
        previous = f" after {quote(name)}"
    return positions
