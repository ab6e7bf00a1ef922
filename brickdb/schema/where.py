"""Typed where-expression tree and the parser for the loose mapping form.

Callers pass where filters as nested mappings::

    {"id": 3}                                   # id = 3
    {"id": None}                                # id is null
    {"id": [3, 4, 5]}                           # id in (3, 4, 5)
    {"id": {">": 3, "<": 5}}                    # id > 3 and id < 5
    {"id": {"$and": {">": 3, "<": 5}}}          # (id > 3 and id < 5)
    {"$or": {"id": {"<": 3}, "id2": 5}}         # (id < 3 or id2 = 5)
    {"$or": [{"id": 1}, {"id2": 2}]}            # ((id = 1) or (id2 = 2))

The mapping is parsed once, at the API boundary, into frozen
:class:`WhereGroup` / :class:`Condition` nodes; the compiler only ever sees
the typed tree.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from brickdb.errors import CompilationError

# ---------------------------------------------------------------------------
# Operator enums
# ---------------------------------------------------------------------------


class LogicalOp(str, Enum):
    """Connectives joining the members of a group."""

    AND = "and"
    OR = "or"


class ComparisonOp(str, Enum):
    """Operators applied to a single column."""

    EQ = "="
    NE = "<>"
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "in"
    LIKE = "like"


_LOGICAL: dict[str, LogicalOp] = {
    "$and": LogicalOp.AND,
    "and": LogicalOp.AND,
    "$or": LogicalOp.OR,
    "or": LogicalOp.OR,
}

_COMPARISONS: dict[str, ComparisonOp] = {
    "=": ComparisonOp.EQ,
    "$eq": ComparisonOp.EQ,
    "<>": ComparisonOp.NE,
    "!=": ComparisonOp.NE,
    "$ne": ComparisonOp.NE,
    ">": ComparisonOp.GT,
    ">=": ComparisonOp.GTE,
    "<": ComparisonOp.LT,
    "<=": ComparisonOp.LTE,
    "$in": ComparisonOp.IN,
    "in": ComparisonOp.IN,
    "$like": ComparisonOp.LIKE,
    "like": ComparisonOp.LIKE,
}

_LIST_TYPES = (list, tuple, set, frozenset)


# ---------------------------------------------------------------------------
# Tree nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Condition:
    """``column <op> value``.

    ``value`` is a tuple for ``IN``, and may be a tuple for ``EQ``/``NE``
    (rendered as ``in``/``not in``).
    """

    column: str
    op: ComparisonOp
    value: Any


@dataclass(frozen=True)
class WhereGroup:
    """Children joined by ``op``.  Nested groups render in brackets."""

    op: LogicalOp = LogicalOp.AND
    children: tuple[WhereNode, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.children)

    @property
    def is_empty(self) -> bool:
        """Whether the group holds no condition at any depth."""
        return all(isinstance(c, WhereGroup) and c.is_empty for c in self.children)


WhereNode = Union[Condition, WhereGroup]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def parse_where(where: Any, op: LogicalOp | str = LogicalOp.AND) -> WhereGroup:
    """Parse a loose where mapping into a :class:`WhereGroup`.

    Args:
        where: A mapping, a list of bracket groups, a Query, an existing
            :class:`WhereGroup`, or ``None`` for no filter.
        op: Operator joining the top-level entries.

    Raises:
        CompilationError: On unknown operators or malformed entries.
    """
    if isinstance(where, WhereGroup):
        return where
    if hasattr(where, "to_where"):
        # A Query builder.
        return where.to_where()
    op = _logical_op(op)
    if where is None:
        return WhereGroup(op)
    if isinstance(where, Condition):
        return WhereGroup(op, (where,))
    return WhereGroup(op, tuple(_parse_entries(where, op)))


def _logical_op(op: LogicalOp | str) -> LogicalOp:
    if isinstance(op, LogicalOp):
        return op
    found = _LOGICAL.get(str(op).lower())
    if found is None:
        raise CompilationError(f"Unknown logical operator '{op}'.", clause="where")
    return found


def _parse_entries(where: Any, op: LogicalOp) -> Iterator[WhereNode]:
    if isinstance(where, _LIST_TYPES):
        # Sequential items are bracket groups joined by the parent operator.
        for item in where:
            yield WhereGroup(op, tuple(_parse_entries(item, op)))
        return
    if not isinstance(where, Mapping):
        raise CompilationError(f"Invalid where shape: {where!r}", clause="where")

    for key, value in where.items():
        if isinstance(key, int):
            children = tuple(_parse_entries(value, op))
            if len(children) == 1 and isinstance(children[0], WhereGroup):
                yield children[0]
            else:
                yield WhereGroup(op, children)
        elif isinstance(key, str) and key.lower() in _LOGICAL:
            inner = _LOGICAL[key.lower()]
            yield WhereGroup(inner, tuple(_parse_entries(value, inner)))
        else:
            yield from _parse_column(str(key), value, op)


def _parse_column(column: str, value: Any, op: LogicalOp) -> Iterator[WhereNode]:
    if isinstance(value, Mapping):
        for raw_op, rval in value.items():
            yield _parse_operator(column, raw_op, rval)
    elif isinstance(value, _LIST_TYPES):
        yield Condition(column, ComparisonOp.IN, tuple(value))
    else:
        yield Condition(column, ComparisonOp.EQ, value)


def _parse_operator(column: str, raw_op: Any, rval: Any) -> WhereNode:
    key = str(raw_op).lower()

    logical = _LOGICAL.get(key)
    if logical is not None:
        # The column applies to every operator inside the bracket.
        return WhereGroup(logical, tuple(_parse_column(column, rval, logical)))

    cmp = _COMPARISONS.get(key)
    if cmp is None:
        raise CompilationError(
            f"Unknown operator '{raw_op}' on column '{column}'.", clause="where"
        )
    if cmp is ComparisonOp.IN:
        rval = tuple(rval) if isinstance(rval, _LIST_TYPES) else (rval,)
    elif isinstance(rval, _LIST_TYPES):
        if cmp not in (ComparisonOp.EQ, ComparisonOp.NE):
            raise CompilationError(
                f"Operator '{raw_op}' on column '{column}' needs a scalar value.",
                clause="where",
            )
        rval = tuple(rval)
    return Condition(column, cmp, rval)
