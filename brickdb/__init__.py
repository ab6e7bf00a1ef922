"""brickdb – Schema-synchronizing database layer for MySQL and SQLite.

Describe your tables. Don't migrate them.

Public API
----------
``connect``
    Open a :class:`~brickdb.drivers.base.Database` from a
    :class:`~brickdb.config.ConnectionConfig` or a DSN string.

``Database.define_table``
    Create a table, or alter the live one until it matches the definition.

``Database.get`` / ``insert`` / ``update`` / ``delete`` / ``load``
    Single-table data access with loose where mappings.

Re-exported types
-----------------
``TableDefinition``, ``ColumnDescriptor``, ``IndexDescriptor``,
``TableDefBuilder``, ``Query``, ``Identifier``, ``Literal``, ``Increment``,
``Aggregate``, ``ConnectionConfig``, ``AlterPlan``, ``CompiledSQL`` and all error classes.

Extensibility
-------------
New engines can be registered via::

    from brickdb.drivers.registry import DriverFactory

    @DriverFactory.register("mariadb")
    class MariaDBDatabase(MySQLDatabase):
        ...

After registration, ``connect`` picks it up automatically for any
``ConnectionConfig`` with ``target="mariadb"``.
"""

from __future__ import annotations

from brickdb.compile.base import CompiledSQL
from brickdb.compile.builder import StatementBuilder
from brickdb.compile.mysql import MySQLDialect
from brickdb.compile.sqlite import SQLiteDialect
from brickdb.config import ConnectionConfig
from brickdb.drivers.base import Database
from brickdb.drivers.mysql import MySQLDatabase
from brickdb.drivers.registry import DriverFactory
from brickdb.drivers.sqlite import SQLiteDatabase
from brickdb.errors import (
    BrickDBError,
    CompilationError,
    ConfigurationError,
    EngineError,
    InvalidTruncateError,
    MissingKeyError,
    PrimaryKeyMismatchError,
    UnknownTypeError,
)
from brickdb.migrate.differ import AlterPlan
from brickdb.schema.builder import TableDefBuilder
from brickdb.schema.literals import Aggregate, Identifier, Increment, Literal
from brickdb.schema.query import Query, TableQuery
from brickdb.schema.table import ColumnDescriptor, IndexDescriptor, IndexKind, TableDefinition

# ---------------------------------------------------------------------------
# Register built-in drivers with DriverFactory
# ---------------------------------------------------------------------------

DriverFactory.register_class("mysql", MySQLDatabase)
DriverFactory.register_class("sqlite", SQLiteDatabase)

__all__ = [
    # Entry point
    "connect",
    # Configuration
    "ConnectionConfig",
    # Schema types
    "TableDefinition",
    "TableDefBuilder",
    "ColumnDescriptor",
    "IndexDescriptor",
    "IndexKind",
    "AlterPlan",
    # Queries
    "Query",
    "TableQuery",
    "Identifier",
    "Literal",
    "Increment",
    "Aggregate",
    # Compilation
    "CompiledSQL",
    "StatementBuilder",
    "MySQLDialect",
    "SQLiteDialect",
    # Drivers
    "Database",
    "DriverFactory",
    "MySQLDatabase",
    "SQLiteDatabase",
    # Errors
    "BrickDBError",
    "UnknownTypeError",
    "ConfigurationError",
    "PrimaryKeyMismatchError",
    "CompilationError",
    "MissingKeyError",
    "InvalidTruncateError",
    "EngineError",
]


def connect(config: ConnectionConfig | str) -> Database:
    """Open a database connection.

    Args:
        config: A :class:`ConnectionConfig` or a DSN string such as
            ``"sqlite:///app.db"`` or ``"mysql://user:pw@host/app"``.

    Returns:
        The driver registered for ``config.target``.

    Raises:
        ConfigurationError: On an unsupported DSN or target.
        EngineError: If the engine refuses the connection.
    """
    if isinstance(config, str):
        config = ConnectionConfig.from_dsn(config)
    # Target resolved via DriverFactory (no if-chain)
    return DriverFactory.create(config)
