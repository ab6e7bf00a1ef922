"""Custom exception hierarchy for brickdb.

All public errors inherit from BrickDBError so callers can catch the base
class for any brickdb-specific failure.  A table that does not exist is not
an error: introspection returns ``None`` for it.
"""
from __future__ import annotations


class BrickDBError(Exception):
    """Base exception for all brickdb errors."""


class UnknownTypeError(BrickDBError):
    """Raised when a type string cannot be resolved by the type registry.

    Args:
        type_string: The type string that failed to resolve.
    """

    def __init__(self, type_string: str) -> None:
        super().__init__(f"Unknown type '{type_string}'.")
        self.type_string = type_string


class ConfigurationError(BrickDBError):
    """Raised when a table definition or call option is misconfigured."""


class PrimaryKeyMismatchError(ConfigurationError):
    """Raised when column ``primary`` flags disagree with the primary index.

    Args:
        table: The table being defined.
        index_columns: Columns of the declared primary index.
        column_flags: Columns carrying the ``primary`` flag.
    """

    def __init__(
        self,
        table: str,
        index_columns: list[str],
        column_flags: list[str],
    ) -> None:
        super().__init__(
            f"There is a mismatch in the primary key index {index_columns} and "
            f"the primary key columns {column_flags} of table '{table}'."
        )
        self.table = table
        self.index_columns = index_columns
        self.column_flags = column_flags


class CompilationError(BrickDBError):
    """Raised when a where-expression or statement cannot be compiled.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class MissingKeyError(BrickDBError):
    """Raised when an emulated upsert lacks values for the full primary key.

    Args:
        table: The target table.
        missing: Primary key columns absent from the row.
    """

    def __init__(self, table: str, missing: list[str]) -> None:
        super().__init__(
            f"Cannot upsert into '{table}' without primary key values for {missing}."
        )
        self.table = table
        self.missing = missing


class InvalidTruncateError(BrickDBError):
    """Raised when a truncate is requested together with a where filter."""

    def __init__(self, table: str) -> None:
        super().__init__(f"You cannot truncate '{table}' with a where filter.")
        self.table = table


class EngineError(BrickDBError):
    """Raised when the underlying database engine rejects a statement.

    The driver exception is always chained as ``__cause__``.

    Args:
        message: The engine's error message.
        sql: The statement that failed.
    """

    def __init__(self, message: str, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql
