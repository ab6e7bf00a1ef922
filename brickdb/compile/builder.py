"""Statement builder: single-table select / insert / update / delete.

``StatementBuilder`` is the top-level orchestrator for DML.  Table and
column quoting plus every engine-specific verb is delegated to the injected
:class:`~brickdb.compile.base.Dialect`; predicates are delegated to
:class:`~brickdb.compile.expression_builder.WhereCompiler`.

Runtime context sharing
-----------------------
One :class:`~brickdb.compile.expression_builder.RuntimeContext` is created
per statement and shared by the set list, the value list and the where
clause, so placeholder names are unique within the statement.

Generated SQL uses lowercase keywords with one clause per line::

    select `id`, `name`
    from `px_user`
    where `id` > %(param_0)s
    order by `name` desc
    limit 10 offset 20
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from brickdb.compile.base import CompiledSQL, Dialect
from brickdb.compile.context import CompilationContext
from brickdb.compile.expression_builder import RuntimeContext, WhereCompiler
from brickdb.errors import ConfigurationError, InvalidTruncateError
from brickdb.schema.literals import Identifier, Literal
from brickdb.schema.where import parse_where

TableRef = str | Identifier | Literal


class StatementBuilder:
    """Compiles single-table statements to parameterized SQL.

    Args:
        dialect: Dialect-specific rendering rules.
        prefix: Prefix added to plain table names.
    """

    def __init__(self, dialect: Dialect, prefix: str = "") -> None:
        self._ctx = CompilationContext(dialect=dialect, prefix=prefix)

    @property
    def context(self) -> CompilationContext:
        return self._ctx

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def select(
        self,
        table: TableRef,
        where: Any = None,
        columns: Sequence[str | Literal] | None = None,
        order: Sequence[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        page: int | None = None,
    ) -> CompiledSQL:
        """Compile a select.

        Args:
            table: Table to select from.
            where: Where filter (mapping or parsed group).
            columns: Columns to select; ``*`` when empty.
            order: Order columns; a ``-`` prefix sorts descending.
            limit: Maximum number of rows.
            offset: Rows to skip.  Takes precedence over ``page``.
            page: 1-based page number, ``offset = (page - 1) * limit``.

        Raises:
            ConfigurationError: If ``page`` is below 1.
        """
        runtime, where_compiler = self._start()

        if columns:
            select = ", ".join(self._ctx.column_name(c) for c in columns)
        else:
            select = "*"
        parts = [f"select {select}", f"from {self._ctx.table_name(table)}"]

        predicate = where_compiler.build(parse_where(where))
        if predicate:
            parts.append(f"where {predicate}")

        if order:
            parts.append("order by " + ", ".join(self._order_item(o) for o in order))

        if offset is None and page is not None:
            if page < 1:
                raise ConfigurationError(f"Invalid page {page}; pages start at 1.")
            offset = (page - 1) * (limit or 0)

        if limit:
            limit_sql = f"limit {int(limit)}"
            if offset:
                limit_sql += f" offset {int(offset)}"
            parts.append(limit_sql)
        elif offset:
            parts.append(f"limit {self._ctx.dialect.unbounded_limit} offset {int(offset)}")

        return self._finish("\n".join(parts), runtime)

    def insert(
        self,
        table: TableRef,
        row: Mapping[str, Any],
        ignore: bool = False,
        replace: bool = False,
        upsert: bool = False,
    ) -> CompiledSQL:
        """Compile an insert.

        At most one of ``ignore``, ``replace`` and ``upsert`` may be set.

        Raises:
            ConfigurationError: On conflicting options, an empty row, or an
                upsert on a dialect without a native upsert clause.
        """
        _check_exclusive(ignore=ignore, replace=replace, upsert=upsert)
        if not row:
            raise ConfigurationError("Cannot insert an empty row.")

        runtime, where_compiler = self._start()
        dialect = self._ctx.dialect
        columns = list(row)
        quoted = [dialect.quote_identifier(c) for c in columns]
        values = [where_compiler.bind(row[c], q) for c, q in zip(columns, quoted)]

        sql = (
            f"{dialect.insert_verb(ignore=ignore, replace=replace)}{self._ctx.table_name(table)}\n"
            f"({', '.join(quoted)})\n"
            f"values ({', '.join(values)})"
        )
        if upsert:
            clause = dialect.upsert_clause(columns)
            if clause is None:
                raise ConfigurationError(
                    f"The {dialect.dialect_name} dialect has no native upsert."
                )
            sql += f"\n{clause}"
        return self._finish(sql, runtime)

    def update(
        self,
        table: TableRef,
        values: Mapping[str, Any],
        where: Any = None,
        ignore: bool = False,
    ) -> CompiledSQL:
        """Compile an update.

        :class:`~brickdb.schema.literals.Literal` values (including
        :class:`~brickdb.schema.literals.Increment`) render as raw SQL.
        """
        if not values:
            raise ConfigurationError("Cannot update without values to set.")

        runtime, where_compiler = self._start()
        dialect = self._ctx.dialect
        sets = []
        for column, value in values.items():
            quoted = dialect.quote_identifier(column)
            sets.append(f"{quoted} = {where_compiler.bind(value, quoted)}")

        sql = f"{dialect.update_verb(ignore=ignore)}{self._ctx.table_name(table)}\nset\n  " + ",\n  ".join(sets)
        predicate = where_compiler.build(parse_where(where))
        if predicate:
            sql += f"\nwhere {predicate}"
        return self._finish(sql, runtime)

    def delete(
        self,
        table: TableRef,
        where: Any = None,
        truncate: bool = False,
    ) -> CompiledSQL:
        """Compile a delete, or a truncate when ``truncate`` is set.

        Raises:
            InvalidTruncateError: If ``truncate`` is combined with a where
                filter.
        """
        group = parse_where(where)
        table_sql = self._ctx.table_name(table)

        if truncate:
            if not group.is_empty:
                raise InvalidTruncateError(str(table))
            return self._finish(self._ctx.dialect.truncate(table_sql), RuntimeContext())

        runtime, where_compiler = self._start()
        sql = f"delete from {table_sql}"
        predicate = where_compiler.build(group)
        if predicate:
            sql += f"\nwhere {predicate}"
        return self._finish(sql, runtime)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _start(self) -> tuple[RuntimeContext, WhereCompiler]:
        runtime = RuntimeContext()
        return runtime, WhereCompiler(self._ctx, runtime)

    def _finish(self, sql: str, runtime: RuntimeContext) -> CompiledSQL:
        return CompiledSQL(sql=sql, params=runtime.params, dialect=self._ctx.dialect.dialect_name)

    def _order_item(self, column: str) -> str:
        if column.startswith("-"):
            return f"{self._ctx.column_name(column[1:])} desc"
        return self._ctx.column_name(column)


def _check_exclusive(**options: bool) -> None:
    chosen = [name for name, value in options.items() if value]
    if len(chosen) > 1:
        raise ConfigurationError(f"Only one of {chosen} may be requested at a time.")
