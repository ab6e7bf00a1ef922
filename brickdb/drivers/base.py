"""Database ABC: schema cache, define/alter algorithm and data access.

Each engine implements introspection and DDL application; everything that
is engine-independent (the cache, the define state machine, statement
execution, row shaping and error wrapping) lives here.

Define state machine
--------------------
``define_table`` normalizes the desired definition, reads the live one
(through the cache), and then either creates the table (returns ``None``)
or computes an :class:`~brickdb.migrate.differ.AlterPlan`.  An empty plan
issues no DDL.  Every call re-diffs against the live schema; there is no
migration history.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, ClassVar

from brickdb.compile.base import CompiledSQL, Dialect
from brickdb.compile.builder import StatementBuilder, TableRef
from brickdb.compile.ddl import DDLBuilder
from brickdb.config import ConnectionConfig
from brickdb.errors import ConfigurationError, EngineError
from brickdb.migrate.differ import AlterPlan, compute_alter_plan, normalize_table
from brickdb.schema.literals import Identifier, Literal
from brickdb.schema.query import TableQuery
from brickdb.schema.table import ColumnDescriptor, IndexDescriptor, IndexKind, TableDefinition
from brickdb.schema.where import parse_where

logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    """Escape ``like`` wildcards with backslashes."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Database(ABC):
    """A DB-API connection plus its dialect, schema cache and prefix.

    Args:
        connection: An open DB-API 2.0 connection.
        prefix: Prefix added to every table name.
    """

    #: Exception classes of the DB-API driver, wrapped in :class:`EngineError`.
    engine_errors: ClassVar[tuple[type[Exception], ...]] = ()

    def __init__(self, connection: Any, prefix: str = "") -> None:
        self._connection = connection
        self._prefix = prefix
        self._dialect = self._make_dialect()
        self._statements = StatementBuilder(self._dialect, prefix)
        self._ddl = self._make_ddl()
        self._tables: dict[str, TableDefinition] = {}
        self._table_names: dict[str, str] | None = None

    # ------------------------------------------------------------------
    # Engine hooks
    # ------------------------------------------------------------------

    @classmethod
    @abstractmethod
    def connect(cls, config: ConnectionConfig) -> Database:
        """Open a connection described by ``config`` and wrap it."""

    @abstractmethod
    def _make_dialect(self) -> Dialect:
        """Return the dialect for this engine."""

    @abstractmethod
    def _make_ddl(self) -> DDLBuilder:
        """Return the DDL builder for this engine."""

    @abstractmethod
    def _fetch_column_defs(self, table: str) -> dict[str, ColumnDescriptor] | None:
        """Read the live columns of ``table``; ``None`` if it does not exist."""

    @abstractmethod
    def _fetch_indexes(self, table: str) -> list[IndexDescriptor]:
        """Read the live indexes of ``table``."""

    @abstractmethod
    def _fetch_table_names(self) -> list[str]:
        """Read the prefixed names of all tables carrying the prefix."""

    @abstractmethod
    def _create_table(self, definition: TableDefinition) -> None:
        """Create ``definition`` including its indexes."""

    @abstractmethod
    def _alter_table(self, plan: AlterPlan) -> None:
        """Apply a non-empty ``plan`` to the live table."""

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def statements(self) -> StatementBuilder:
        return self._statements

    def close(self) -> None:
        self._connection.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def get_table_names(self) -> list[str]:
        """Return the names (without prefix) of the tables carrying the prefix."""
        if self._table_names is None:
            names = [self._strip_prefix(n) for n in self._fetch_table_names()]
            self._table_names = {n.lower(): n for n in names}
        return list(self._table_names.values())

    def get_table_def(self, table: str) -> TableDefinition | None:
        """Return the normalized live definition of ``table``, or ``None``."""
        key = table.lower()
        cached = self._tables.get(key)
        if cached is not None:
            return cached
        if self._table_names is not None and key not in self._table_names:
            return None

        columns = self._fetch_column_defs(table)
        if not columns:
            return None
        indexes = tuple(self._fetch_indexes(table))

        # The primary index is authoritative: MySQL flags a unique not-null
        # key as ``PRI`` on tables that have no primary key.
        pk = next((i for i in indexes if i.type is IndexKind.PRIMARY), None)
        pk_columns = set(pk.columns) if pk else set()
        columns = {
            name: column
            if column.primary == (name in pk_columns)
            else column.model_copy(update={"primary": name in pk_columns})
            for name, column in columns.items()
        }

        fetched = TableDefinition(name=table, columns=columns, indexes=indexes)
        definition = normalize_table(fetched, prefix=self._prefix)
        self._cache(definition)
        return definition

    def get_column_defs(self, table: str) -> dict[str, ColumnDescriptor] | None:
        definition = self.get_table_def(table)
        return dict(definition.columns) if definition is not None else None

    def get_indexes(self, table: str) -> list[IndexDescriptor]:
        definition = self.get_table_def(table)
        return list(definition.indexes) if definition is not None else []

    def define_table(self, definition: TableDefinition, drop: bool = False) -> AlterPlan | None:
        """Create or alter a table so it matches ``definition``.

        Args:
            definition: The desired table.
            drop: Allow dropping columns and indexes missing from
                ``definition``.

        Returns:
            ``None`` when the table was created, otherwise the applied
            plan (empty when the table already matched).

        Raises:
            PrimaryKeyMismatchError: If the definition's primary key is
                inconsistent.
            EngineError: If the engine rejects a DDL statement.
        """
        current = self.get_table_def(definition.name)
        desired = normalize_table(definition, current, self._prefix)

        if current is None:
            logger.info("Creating table %s%s", self._prefix, desired.name)
            self._create_table(desired)
            self._cache(desired)
            return None

        plan = compute_alter_plan(desired, current, self._dialect, drop=drop)
        if plan.is_empty:
            logger.debug("Table %s%s is up to date", self._prefix, desired.name)
            return plan

        logger.info(
            "Altering table %s%s: add %s, alter %s, drop %s, add %d indexes, drop %d indexes",
            self._prefix,
            desired.name,
            list(plan.add_columns),
            list(plan.alter_columns),
            plan.drop_columns,
            len(plan.add_indexes),
            len(plan.drop_indexes),
        )
        self._alter_table(plan)
        self._cache(plan.merged)
        return plan

    def drop_table(self, table: str, ignore: bool = False) -> None:
        """Drop ``table``; with ``ignore`` a missing table is not an error."""
        self._query_define(self._ddl.drop_table(table, if_exists=ignore))
        key = table.lower()
        self._tables.pop(key, None)
        if self._table_names is not None:
            self._table_names.pop(key, None)

    def reset(self) -> Database:
        """Forget every cached table definition and table name."""
        self._tables = {}
        self._table_names = None
        return self

    def _cache(self, definition: TableDefinition) -> None:
        key = definition.name.lower()
        self._tables[key] = definition
        if self._table_names is not None:
            self._table_names[key] = definition.name

    def _strip_prefix(self, name: str) -> str:
        if self._prefix and name.lower().startswith(self._prefix.lower()):
            return name[len(self._prefix):]
        return name

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    def get(
        self,
        table: TableRef,
        where: Any = None,
        columns: Sequence[str | Literal] | None = None,
        order: Sequence[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        page: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows from ``table`` as dicts."""
        compiled = self._statements.select(
            table, where, columns=columns, order=order, limit=limit, offset=offset, page=page
        )
        return self._query_rows(compiled)

    def get_one(
        self,
        table: TableRef,
        where: Any = None,
        columns: Sequence[str | Literal] | None = None,
        order: Sequence[str] | None = None,
    ) -> dict[str, Any] | None:
        """Return the first matching row, or ``None``."""
        rows = self.get(table, where, columns=columns, order=order, limit=1)
        return rows[0] if rows else None

    def query(self, table: str | Identifier, where: Any = None) -> TableQuery:
        """Return an unfetched :class:`~brickdb.schema.query.TableQuery`."""
        return TableQuery(db=self, table=table, where=parse_where(where))

    def insert(
        self,
        table: TableRef,
        row: Mapping[str, Any],
        ignore: bool = False,
        replace: bool = False,
        upsert: bool = False,
    ) -> Any:
        """Insert ``row`` and return the generated id."""
        compiled = self._statements.insert(table, row, ignore=ignore, replace=replace, upsert=upsert)
        return self._query_id(compiled)

    def load(
        self,
        table: TableRef,
        rows: Iterable[Mapping[str, Any]],
        ignore: bool = False,
        replace: bool = False,
    ) -> int:
        """Bulk insert ``rows`` with one prepared statement.

        The statement is built from the first row's columns; every other row
        must have the same columns.  Returns the number of inserted rows.
        """
        iterator = iter(rows)
        first = next(iterator, None)
        if first is None:
            return 0

        compiled = self._statements.insert(table, first, ignore=ignore, replace=replace)
        columns = list(first)
        names = list(compiled.params)
        if len(names) != len(columns):
            raise ConfigurationError("Bulk loads cannot contain literal values.")

        def params(row: Mapping[str, Any]) -> dict[str, Any]:
            if set(row) != set(columns):
                raise ConfigurationError(f"Every loaded row needs the columns {columns}.")
            return {n: self._dialect.bind_value(row[c]) for n, c in zip(names, columns)}

        batch = [compiled.params] + [params(row) for row in iterator]
        cursor = self._execute(compiled.sql, batch, many=True)
        try:
            count = cursor.rowcount
        finally:
            cursor.close()
        self._commit(compiled.sql)
        return count

    def update(
        self,
        table: TableRef,
        values: Mapping[str, Any],
        where: Any = None,
        ignore: bool = False,
    ) -> int:
        """Update matching rows and return the affected row count."""
        return self._query_modify(self._statements.update(table, values, where, ignore=ignore))

    def delete(self, table: TableRef, where: Any = None, truncate: bool = False) -> int:
        """Delete matching rows and return the affected row count.

        Raises:
            InvalidTruncateError: If ``truncate`` is combined with a filter.
        """
        return self._query_modify(self._statements.delete(table, where, truncate=truncate))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, sql: str, params: Any = None, many: bool = False) -> Any:
        logger.debug("Executing %s with %s", sql, params)
        cursor = self._connection.cursor()
        try:
            if many:
                cursor.executemany(sql, params)
            elif params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
        except self.engine_errors as exc:
            cursor.close()
            raise EngineError(str(exc), sql=sql) from exc
        return cursor

    def _commit(self, sql: str) -> None:
        try:
            self._connection.commit()
        except self.engine_errors as exc:
            raise EngineError(str(exc), sql=sql) from exc

    def _query_rows(self, compiled: CompiledSQL) -> list[dict[str, Any]]:
        cursor = self._execute(compiled.sql, compiled.params)
        try:
            names = [d[0] for d in cursor.description or ()]
            return [dict(zip(names, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def _query_modify(self, compiled: CompiledSQL) -> int:
        cursor = self._execute(compiled.sql, compiled.params)
        try:
            count = cursor.rowcount
        finally:
            cursor.close()
        self._commit(compiled.sql)
        return count

    def _query_id(self, compiled: CompiledSQL) -> Any:
        cursor = self._execute(compiled.sql, compiled.params)
        try:
            last_id = cursor.lastrowid
        finally:
            cursor.close()
        self._commit(compiled.sql)
        return last_id

    def _query_define(self, sql: str) -> None:
        logger.info("%s", sql)
        self._execute(sql).close()
        self._commit(sql)
