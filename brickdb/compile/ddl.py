"""Shared DDL rendering.

Each engine subclasses :class:`DDLBuilder` next to its dialect; the
statements here are identical on both engines.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from brickdb.compile.base import Dialect
from brickdb.schema.literals import Identifier, Literal
from brickdb.schema.table import (
    ColumnDescriptor,
    IndexDescriptor,
    IndexKind,
    TableDefinition,
    build_index_name,
)


class DDLBuilder(ABC):
    """Renders create/drop statements for one dialect.

    Args:
        dialect: Dialect used for quoting and type names.
        prefix: Table-name prefix of the connection.
    """

    def __init__(self, dialect: Dialect, prefix: str = "") -> None:
        self._dialect = dialect
        self._prefix = prefix

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @abstractmethod
    def create_table(self, definition: TableDefinition) -> list[str]:
        """Return the statements creating ``definition`` with its indexes."""

    @abstractmethod
    def column_definition(self, name: str, column: ColumnDescriptor) -> str:
        """Return ``name`` followed by its type and constraints."""

    def drop_table(self, table: str | Identifier, if_exists: bool = False) -> str:
        return f"drop table {'if exists ' if if_exists else ''}{self.table_name(table)}"

    def table_name(self, table: str | Identifier) -> str:
        """Return the quoted, prefixed table name.

        :class:`~brickdb.schema.literals.Identifier` names are not prefixed.
        """
        if isinstance(table, Identifier):
            return table.escape(self._dialect.quote_identifier)
        return self._dialect.quote_identifier(self._prefix + table)

    def index_name(self, table: str, index: IndexDescriptor) -> str:
        """Return the quoted name of ``index``, building one if unset."""
        name = index.name or build_index_name(self._prefix + table, index)
        return self._dialect.quote_identifier(name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def column_list(self, columns: list[str] | tuple[str, ...]) -> str:
        quote = self._dialect.quote_identifier
        return "(" + ", ".join(quote(c) for c in columns) + ")"

    def _default_clause(self, column: ColumnDescriptor) -> str:
        if column.default is None:
            return ""
        if isinstance(column.default, Literal):
            return f" default {column.default.get_value(self._dialect.dialect_name)}"
        return f" default {self._dialect.quote_literal(column.default)}"

    @staticmethod
    def _secondary_indexes(definition: TableDefinition) -> list[IndexDescriptor]:
        return [i for i in definition.indexes if i.type is not IndexKind.PRIMARY]
