"""Fluent query builder and explicit fetch cursor.

``Query``
    Builds a where filter step by step, including nested ``and``/``or``
    brackets.  Every call returns a new ``Query``; the bracket being built
    is addressed by a path of entry indices into an immutable tree::

        query = (
            Query("user")
            .where("status", "active")
            .begin_or()
            .where("points", {">": 100})
            .like("name", "a%")
            .end()
            .set_limit(10)
        )
        rows = query.exec(db)

``TableQuery`` / ``FetchedRows``
    An unfetched cursor description and its fetched result.  Paging methods
    return new cursors; only :meth:`TableQuery.fetch` touches the database.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Union, cast

from brickdb.errors import CompilationError, ConfigurationError
from brickdb.schema.literals import Identifier
from brickdb.schema.where import LogicalOp, WhereGroup, parse_where

if TYPE_CHECKING:
    from brickdb.drivers.base import Database


# ---------------------------------------------------------------------------
# Builder tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _ColumnEntry:
    column: str
    value: Any


@dataclass(frozen=True)
class _Bracket:
    op: LogicalOp = LogicalOp.AND
    entries: tuple[_Entry, ...] = ()


_Entry = Union[_ColumnEntry, _Bracket]


def _rebuild(node: _Bracket, path: tuple[int, ...], fn: Callable[[_Bracket], _Bracket]) -> _Bracket:
    if not path:
        return fn(node)
    i, rest = path[0], path[1:]
    # The path only ever indexes brackets.
    child = cast(_Bracket, node.entries[i])
    entries = node.entries[:i] + (_rebuild(child, rest, fn),) + node.entries[i + 1 :]
    return replace(node, entries=entries)


def _as_operator_map(value: Any) -> dict[Any, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return {"$in": list(value)}
    return {"=": value}


# ---------------------------------------------------------------------------
# Query builder
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Query:
    """Immutable, fluent where-filter builder for a single table.

    Attributes:
        table: Table to select from.
        limit: Maximum number of rows, or ``None``.
        offset: Rows to skip, or ``None``.
        order: Order columns; ``-`` prefix sorts descending.
        columns: Columns to select; empty selects ``*``.
    """

    table: str | Identifier = ""
    limit: int | None = None
    offset: int | None = None
    order: tuple[str, ...] = ()
    columns: tuple[str, ...] = ()
    _root: _Bracket = field(default_factory=_Bracket, repr=False)
    _path: tuple[int, ...] = field(default=(), repr=False)

    # ------------------------------------------------------------------
    # Brackets
    # ------------------------------------------------------------------

    def begin_and(self) -> Query:
        """Open an ``and`` bracket; close it with :meth:`end`."""
        return self._begin(LogicalOp.AND)

    def begin_or(self) -> Query:
        """Open an ``or`` bracket; close it with :meth:`end`."""
        return self._begin(LogicalOp.OR)

    def _begin(self, op: LogicalOp) -> Query:
        position = len(self._current().entries)

        def append(node: _Bracket) -> _Bracket:
            return replace(node, entries=node.entries + (_Bracket(op),))

        return replace(
            self,
            _root=_rebuild(self._root, self._path, append),
            _path=self._path + (position,),
        )

    def end(self) -> Query:
        """Close the innermost open bracket.

        Raises:
            CompilationError: If no bracket is open.
        """
        if not self._path:
            raise CompilationError(
                "Call to Query.end() without a corresponding call to Query.begin_*().",
                clause="where",
            )
        return replace(self, _path=self._path[:-1])

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def where(self, column: str, value: Any) -> Query:
        """Add a condition on ``column`` to the current bracket.

        A second condition on the same column merges into one operator map,
        so ``where("id", 1).where("id", {"<": 5})`` filters on
        ``{"=": 1, "<": 5}``.
        """

        def add(node: _Bracket) -> _Bracket:
            for i, entry in enumerate(node.entries):
                if isinstance(entry, _ColumnEntry) and entry.column == column:
                    merged = {**_as_operator_map(entry.value), **_as_operator_map(value)}
                    entries = node.entries[:i] + (_ColumnEntry(column, merged),) + node.entries[i + 1 :]
                    return replace(node, entries=entries)
            return replace(node, entries=node.entries + (_ColumnEntry(column, value),))

        return replace(self, _root=_rebuild(self._root, self._path, add))

    def where_all(self, where: Mapping[str, Any]) -> Query:
        """Add every ``column: value`` pair of ``where``."""
        query = self
        for column, value in where.items():
            query = query.where(column, value)
        return query

    def like(self, column: str, value: str) -> Query:
        return self.where(column, {"$like": value})

    def in_(self, column: str, values: Iterable[Any]) -> Query:
        return self.where(column, {"$in": list(values)})

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def set_from(self, table: str | Identifier) -> Query:
        return replace(self, table=table)

    def set_limit(self, limit: int | None) -> Query:
        return replace(self, limit=limit)

    def set_offset(self, offset: int | None) -> Query:
        return replace(self, offset=offset)

    def set_order(self, *columns: str) -> Query:
        return replace(self, order=tuple(columns))

    def set_columns(self, *columns: str) -> Query:
        return replace(self, columns=tuple(columns))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _current(self) -> _Bracket:
        node = self._root
        for i in self._path:
            node = cast(_Bracket, node.entries[i])
        return node

    def where_dict(self) -> dict[Any, Any]:
        """Return the filter in the loose mapping form.

        Brackets appear under integer keys as ``{"$and": {...}}`` or
        ``{"$or": {...}}``.
        """
        return _bracket_dict(self._root)

    def to_where(self) -> WhereGroup:
        """Return the filter as a typed :class:`WhereGroup`."""
        return parse_where(self.where_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.table,
            "where": self.where_dict(),
            "limit": self.limit,
            "offset": self.offset,
            "order": list(self.order),
        }

    def exec(self, db: Database) -> list[dict[str, Any]]:
        """Run the query against ``db`` and return the rows."""
        return db.get(
            self.table,
            self.to_where(),
            columns=list(self.columns) or None,
            order=list(self.order) or None,
            limit=self.limit,
            offset=self.offset,
        )


def _bracket_dict(node: _Bracket) -> dict[Any, Any]:
    result: dict[Any, Any] = {}
    for i, entry in enumerate(node.entries):
        if isinstance(entry, _ColumnEntry):
            result[entry.column] = entry.value
        else:
            result[i] = {f"${entry.op.value}": _bracket_dict(entry)}
    return result


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TableQuery:
    """An unfetched select against one table.

    Obtained from :meth:`Database.query`.  ``with_*`` methods return new
    cursors; :meth:`fetch` executes.
    """

    db: Database = field(compare=False, repr=False)
    table: str | Identifier
    where: WhereGroup = field(default_factory=WhereGroup)
    limit: int | None = None
    offset: int | None = None
    order: tuple[str, ...] = ()
    columns: tuple[str, ...] = ()

    def with_limit(self, limit: int | None) -> TableQuery:
        return replace(self, limit=limit)

    def with_offset(self, offset: int | None) -> TableQuery:
        return replace(self, offset=offset)

    def with_page(self, page: int) -> TableQuery:
        """Set the offset to ``(page - 1) * limit``; ``page`` is 1-based."""
        if self.limit is None:
            raise ConfigurationError("A page needs a limit.")
        if page < 1:
            raise ConfigurationError(f"Invalid page {page}; pages start at 1.")
        return replace(self, offset=(page - 1) * self.limit)

    def with_order(self, *columns: str) -> TableQuery:
        return replace(self, order=tuple(columns))

    def with_columns(self, *columns: str) -> TableQuery:
        return replace(self, columns=tuple(columns))

    @property
    def page(self) -> int | None:
        if not self.limit:
            return None
        return (self.offset or 0) // self.limit + 1

    def fetch(self) -> FetchedRows:
        """Execute the select and return the fetched rows."""
        rows = self.db.get(
            self.table,
            self.where,
            columns=list(self.columns) or None,
            order=list(self.order) or None,
            limit=self.limit,
            offset=self.offset,
        )
        return FetchedRows(query=self, rows=tuple(rows))


@dataclass(frozen=True)
class FetchedRows:
    """The rows returned by :meth:`TableQuery.fetch`."""

    query: TableQuery
    rows: tuple[dict[str, Any], ...]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None
