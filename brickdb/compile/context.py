"""Compilation context value object.

Packages the ``(dialect, prefix)`` pair shared by the statement builder and
the where compiler into a single cohesive object.
"""
from __future__ import annotations

from dataclasses import dataclass

from brickdb.compile.base import Dialect
from brickdb.schema.literals import Aggregate, Identifier, Literal


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for compiling statements on one connection.

    Attributes:
        dialect: Dialect-specific rendering rules.
        prefix: Prefix added to every table name not given as an
            :class:`~brickdb.schema.literals.Identifier`.
    """

    dialect: Dialect
    prefix: str = ""

    def table_name(self, table: str | Identifier | Literal) -> str:
        """Return the quoted, prefixed name of ``table``."""
        if isinstance(table, Literal):
            return table.get_value(self.dialect.dialect_name)
        if isinstance(table, Identifier):
            return table.escape(self.dialect.quote_identifier)
        return self.dialect.quote_identifier(self.prefix + table)

    def column_name(self, column: str | Literal) -> str:
        if isinstance(column, Aggregate):
            return column.get_value(self.dialect.dialect_name, self.dialect.quote_identifier)
        if isinstance(column, Literal):
            return column.get_value(self.dialect.dialect_name)
        return self.dialect.quote_identifier(column)
