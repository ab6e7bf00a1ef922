"""Compiler abstractions: CompiledSQL and the Dialect ABC.

The Template Method pattern (GoF) is used:
- ``Dialect`` defines the rendering steps every statement needs.
- ``MySQLDialect`` and ``SQLiteDialect`` override the engine-specific ones
  (placeholder style, LIKE escaping, native type names, insert verbs).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar

from brickdb.schema import types
from brickdb.schema.table import ColumnDescriptor


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with named placeholders.
        params: Values for the placeholders, already converted by the
            dialect's :meth:`Dialect.bind_value`.
        dialect: The target dialect (``'mysql'`` or ``'sqlite'``).
    """

    sql: str
    params: dict[str, Any]
    dialect: str


class Dialect(ABC):
    """Abstract base for engine-specific SQL rendering rules.

    Subclasses implement the abstract steps; the statement and DDL builders
    use this interface and never branch on the engine name.
    """

    #: Canonical type name -> engine spelling.
    type_translations: ClassVar[dict[str, str]] = {}

    #: Datetime format for bound values.
    date_format: ClassVar[str] = "%Y-%m-%d %H:%M:%S"

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (``'mysql'`` or ``'sqlite'``)."""

    @property
    @abstractmethod
    def unbounded_limit(self) -> int:
        """Return the limit used when only an offset is requested."""

    @abstractmethod
    def param_placeholder(self, name: str) -> str:
        """Return the SQL placeholder string for a named parameter.

        Args:
            name: Parameter name (e.g. ``'param_0'``).

        Returns:
            Dialect-specific placeholder string.
        """

    @abstractmethod
    def like_clause(self, column: str, placeholder: str) -> str:
        """Return ``column like placeholder`` plus any required escape clause.

        Args:
            column: Quoted column name.
            placeholder: Bound pattern placeholder.
        """

    @abstractmethod
    def quote_literal(self, value: Any) -> str:
        """Return ``value`` as an inline SQL literal (DDL defaults).

        Args:
            value: A Python scalar.
        """

    @abstractmethod
    def insert_verb(self, ignore: bool = False, replace: bool = False) -> str:
        """Return the statement prefix up to the table name."""

    @abstractmethod
    def update_verb(self, ignore: bool = False) -> str:
        """Return the update prefix up to the table name."""

    @abstractmethod
    def truncate(self, table: str) -> str:
        """Return the statement removing every row of ``table``."""

    @abstractmethod
    def upsert_clause(self, columns: list[str]) -> str | None:
        """Return the trailing clause turning an insert into an upsert.

        ``None`` means the engine has no native upsert and the driver
        emulates it.
        """

    def quote_identifier(self, name: str) -> str:
        """Return a backtick-quoted identifier.

        Both engines accept backticks; embedded backticks are doubled.
        """
        escaped = name.replace("`", "``")
        return f"`{escaped}`"

    def bind_value(self, value: Any) -> Any:
        """Convert a Python value to what the DB-API driver binds.

        Booleans become ``1``/``0`` and dates use :attr:`date_format`.
        """
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, datetime):
            return value.strftime(self.date_format)
        if isinstance(value, date):
            return value.isoformat()
        return value

    def native_type(self, column: ColumnDescriptor) -> str:
        """Return the engine spelling of ``column``'s type.

        Unsigned integers render with an `` unsigned`` suffix.
        """
        db_type = self.type_translations.get(column.db_type, column.db_type)
        base = types.render(column.model_copy(update={"db_type": db_type, "unsigned": False}))
        return f"{base} unsigned" if column.unsigned else base
