"""Where-expression compiler.

``WhereCompiler`` receives a :class:`~brickdb.compile.context.CompilationContext`
(static config) and a :class:`RuntimeContext` (per-statement parameter
state).  It renders a typed :class:`~brickdb.schema.where.WhereGroup` to a
predicate; every value is bound through the runtime context, never inlined.

Layout of the generated predicate::

    `a` = :param_0
      and (
      `b` > :param_1
      or `b` is null
      )
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from brickdb.compile.context import CompilationContext
from brickdb.errors import CompilationError
from brickdb.schema.literals import Literal
from brickdb.schema.where import (
    ComparisonOp,
    Condition,
    LogicalOp,
    WhereGroup,
    WhereNode,
    parse_where,
)

# ---------------------------------------------------------------------------
# Runtime parameter accumulator (shared across one statement)
# ---------------------------------------------------------------------------


@dataclass
class RuntimeContext:
    """Accumulates named parameters during a single compilation run.

    A single instance is threaded through the set list and the where
    clause of a statement so that placeholder names are unique.
    """

    params: dict[str, Any] = field(default_factory=dict)
    _counter: int = 0

    def add_value(self, value: Any) -> str:
        """Store a literal value and return its placeholder name."""
        name = f"param_{self._counter}"
        self._counter += 1
        self.params[name] = value
        return name


# ---------------------------------------------------------------------------
# Where compiler
# ---------------------------------------------------------------------------

_COMPARE_SQL: dict[ComparisonOp, str] = {
    ComparisonOp.EQ: "=",
    ComparisonOp.NE: "<>",
    ComparisonOp.GT: ">",
    ComparisonOp.GTE: ">=",
    ComparisonOp.LT: "<",
    ComparisonOp.LTE: "<=",
}


class WhereCompiler:
    """Compiles where filters to SQL predicates.

    Args:
        ctx: Static compilation context.
        runtime: Shared parameter accumulator.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, where: Any, op: LogicalOp | str = LogicalOp.AND) -> str:
        """Compile ``where`` to a predicate; ``''`` when there is no filter.

        Args:
            where: A loose where mapping or a parsed :class:`WhereGroup`.
            op: Operator joining the top-level entries of a mapping.
        """
        return self.build(parse_where(where, op))

    def build(self, group: WhereGroup) -> str:
        """Compile a parsed group without surrounding brackets."""
        joiner = f"\n  {group.op.value} "
        parts = [
            self._node(child)
            for child in group.children
            if not (isinstance(child, WhereGroup) and child.is_empty)
        ]
        return joiner.join(parts)

    def bind(self, value: Any, column_sql: str | None = None) -> str:
        """Return a placeholder for ``value``, or its raw SQL for literals."""
        if isinstance(value, Literal):
            args = (column_sql,) if column_sql is not None else ()
            return value.get_value(self._ctx.dialect.dialect_name, *args)
        name = self._runtime.add_value(self._ctx.dialect.bind_value(value))
        return self._ctx.dialect.param_placeholder(name)

    # ------------------------------------------------------------------
    # Node compilers
    # ------------------------------------------------------------------

    def _node(self, node: WhereNode) -> str:
        if isinstance(node, WhereGroup):
            return f"(\n  {self.build(node)}\n  )"
        if isinstance(node, Condition):
            return self._condition(node)
        raise CompilationError(f"Unknown where node: {node!r}", clause="where")

    def _condition(self, cond: Condition) -> str:
        column = self._ctx.column_name(cond.column)
        value = cond.value

        if cond.op is ComparisonOp.EQ:
            if value is None:
                return f"{column} is null"
            if isinstance(value, tuple):
                return self._in_list(column, value)
        elif cond.op is ComparisonOp.NE:
            if value is None:
                return f"{column} is not null"
            if isinstance(value, tuple):
                return self._in_list(column, value, negate=True)
        elif cond.op is ComparisonOp.IN:
            return self._in_list(column, value)
        elif cond.op is ComparisonOp.LIKE:
            return self._ctx.dialect.like_clause(column, self.bind(value))

        return f"{column} {_COMPARE_SQL[cond.op]} {self.bind(value)}"

    def _in_list(self, column: str, values: tuple[Any, ...], negate: bool = False) -> str:
        if not values:
            # Nothing is in an empty list.
            return "1 = 1" if negate else "1 = 0"
        keyword = "not in" if negate else "in"
        placeholders = ", ".join(self.bind(v) for v in values)
        return f"{column} {keyword} ({placeholders})"
