"""Schema differ: normalize a desired table and diff it against the live one.

Pipeline used by :meth:`~brickdb.drivers.base.Database.define_table`::

    desired = normalize_table(desired, current, prefix)
    plan = compute_alter_plan(desired, current, dialect, drop=drop)
    if plan.is_empty:
        return plan            # nothing to do, no DDL issued

Index identity is ``(kind, sorted columns)``; only the primary key compares
its columns in order.  Without ``drop`` the plan is additive: no column is
dropped and only a replaced primary key is removed.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from brickdb.compile.base import Dialect
from brickdb.errors import ConfigurationError, PrimaryKeyMismatchError
from brickdb.schema.literals import Literal
from brickdb.schema.table import (
    ColumnDescriptor,
    IndexDescriptor,
    IndexKind,
    TableDefinition,
    build_index_name,
)
from brickdb.schema.types import coerce_default

# ---------------------------------------------------------------------------
# Alter plan
# ---------------------------------------------------------------------------


@dataclass
class AlterPlan:
    """The changes needed to turn ``current`` into ``desired``.

    Attributes:
        table: Table name without prefix.
        desired: The normalized desired definition.
        current: The live definition.
        add_columns: Desired columns missing from the live table.
        alter_columns: Columns whose native type, nullability or default
            differ.
        drop_columns: Live columns to drop (only with ``drop``).
        add_indexes: Desired indexes with no live match.
        drop_indexes: Live indexes to drop.
        drop: Whether destructive changes were allowed.
    """

    table: str
    desired: TableDefinition
    current: TableDefinition
    add_columns: dict[str, ColumnDescriptor] = field(default_factory=dict)
    alter_columns: dict[str, ColumnDescriptor] = field(default_factory=dict)
    drop_columns: list[str] = field(default_factory=list)
    add_indexes: list[IndexDescriptor] = field(default_factory=list)
    drop_indexes: list[IndexDescriptor] = field(default_factory=list)
    drop: bool = False

    @property
    def is_empty(self) -> bool:
        return not (
            self.add_columns
            or self.alter_columns
            or self.drop_columns
            or self.add_indexes
            or self.drop_indexes
        )

    @property
    def merged(self) -> TableDefinition:
        """The definition the table has once the plan is applied.

        With ``drop`` this is ``desired``.  Otherwise live columns and
        indexes that are not being dropped are kept alongside the desired
        ones.
        """
        if self.drop:
            return self.desired

        columns = dict(self.desired.columns)
        for name, column in self.current.columns.items():
            if name not in columns and name not in self.drop_columns:
                columns[name] = column

        dropped = {i.key for i in self.drop_indexes}
        indexes = [i for i in self.current.indexes if i.key not in dropped]
        indexes += self.add_indexes

        pk = next((i for i in indexes if i.type is IndexKind.PRIMARY), None)
        pk_columns = set(pk.columns) if pk else set()
        columns = {
            name: column
            if column.primary == (name in pk_columns)
            else column.model_copy(update={"primary": name in pk_columns})
            for name, column in columns.items()
        }
        return TableDefinition(name=self.desired.name, columns=columns, indexes=tuple(indexes))


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_table(
    definition: TableDefinition,
    current: TableDefinition | None = None,
    prefix: str = "",
) -> TableDefinition:
    """Return ``definition`` with a consistent primary key and named indexes.

    * A primary index is derived from columns flagged ``primary``, or the
      flags are propagated from an explicit primary index.
    * Primary key columns are made not-null.
    * Unnamed indexes adopt the name of a matching live index, or get
      ``primary`` / ``ix_<table>_<cols>`` / ``ux_<table>_<cols>``.

    Raises:
        PrimaryKeyMismatchError: If flagged columns and the primary index
            disagree.
        ConfigurationError: On more than one primary index, or an index
            over an undefined column.
    """
    columns = dict(definition.columns)
    flagged = definition.primary_columns
    primaries = [i for i in definition.indexes if i.type is IndexKind.PRIMARY]
    if len(primaries) > 1:
        raise ConfigurationError(f"Table '{definition.name}' has more than one primary key index.")

    indexes = list(definition.indexes)
    if primaries:
        pk = primaries[0]
        if flagged and set(flagged) != set(pk.columns):
            raise PrimaryKeyMismatchError(definition.name, list(pk.columns), flagged)
    elif flagged:
        pk = IndexDescriptor(type=IndexKind.PRIMARY, columns=tuple(flagged))
        indexes.append(pk)
    else:
        pk = None

    for index in indexes:
        missing = [c for c in index.columns if c not in columns]
        if missing:
            raise ConfigurationError(
                f"Index on table '{definition.name}' references undefined columns {missing}."
            )

    if pk is not None:
        for name in pk.columns:
            columns[name] = columns[name].model_copy(update={"primary": True, "allow_null": False})

    live_names = {i.key: i.name for i in current.indexes if i.name} if current else {}
    named = []
    for index in indexes:
        if index.type is IndexKind.PRIMARY:
            name = "primary"
        else:
            name = live_names.get(index.key) or index.name or build_index_name(prefix + definition.name, index)
        named.append(index if index.name == name else index.model_copy(update={"name": name}))

    return TableDefinition(name=definition.name, columns=columns, indexes=tuple(named))


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------


def column_changed(new: ColumnDescriptor, current: ColumnDescriptor, dialect: Dialect) -> bool:
    """Whether ``new`` differs from ``current`` in native type, nullability or default."""
    return (
        dialect.native_type(new) != dialect.native_type(current)
        or new.allow_null != current.allow_null
        or _default_changed(new, current, dialect)
    )


def _default_changed(new: ColumnDescriptor, current: ColumnDescriptor, dialect: Dialect) -> bool:
    if isinstance(new.default, Literal) or isinstance(current.default, Literal):
        return _sql_text(new.default, dialect) != _sql_text(current.default, dialect)
    return coerce_default(new.default, new) != coerce_default(current.default, current)


def _sql_text(default: object, dialect: Dialect) -> str | None:
    # MariaDB reports current_timestamp() where MySQL says CURRENT_TIMESTAMP.
    if default is None:
        return None
    if isinstance(default, Literal):
        default = default.get_value(dialect.dialect_name)
    return re.sub(r"\(\)$", "", str(default).strip().lower())


def compute_alter_plan(
    desired: TableDefinition,
    current: TableDefinition,
    dialect: Dialect,
    drop: bool = False,
) -> AlterPlan:
    """Diff a normalized ``desired`` definition against ``current``.

    Args:
        desired: Output of :func:`normalize_table`.
        current: The live definition.
        dialect: Dialect whose native type names are compared.
        drop: Allow dropping columns and non-primary indexes.
    """
    plan = AlterPlan(table=desired.name, desired=desired, current=current, drop=drop)

    for name, column in desired.columns.items():
        live = current.columns.get(name)
        if live is None:
            plan.add_columns[name] = column
        elif column_changed(column, live, dialect):
            plan.alter_columns[name] = column

    desired_keys = {i.key for i in desired.indexes}
    current_keys = {i.key for i in current.indexes}
    plan.add_indexes = [i for i in desired.indexes if i.key not in current_keys]
    droppable = [i for i in current.indexes if i.key not in desired_keys]

    if drop:
        plan.drop_columns = [n for n in current.columns if n not in desired.columns]
        plan.drop_indexes = droppable
    elif desired.primary_index is not None:
        # A replaced primary key has to go even in additive mode.
        plan.drop_indexes = [i for i in droppable if i.type is IndexKind.PRIMARY]

    return plan
