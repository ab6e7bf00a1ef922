"""Fluent builder for :class:`~brickdb.schema.table.TableDefinition`.

Always obtained via :meth:`TableDefinition.builder`::

    definition = (
        TableDefinition.builder("user")
        .primary_key("user_id")
        .column("name", "varchar(50)")
        .column("email", "varchar(255)", index="unique")
        .column("bio", "text", null_default=None)
        .column("points", "int", null_default=0, index="index.points")
        .build()
    )
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from brickdb.errors import ConfigurationError
from brickdb.schema.table import (
    ColumnDescriptor,
    IndexDescriptor,
    IndexKind,
    TableDefinition,
)
from brickdb.schema.types import resolve

if TYPE_CHECKING:
    from brickdb.drivers.base import Database
    from brickdb.migrate.differ import AlterPlan


class TableDefBuilder:
    """Collects columns and indexes for one table.

    Args:
        name: Table name (without the connection prefix).
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._columns: dict[str, ColumnDescriptor] = {}
        self._indexes: list[IndexDescriptor] = []

    def table(self, name: str) -> TableDefBuilder:
        """Rename the table being built."""
        self._name = name
        return self

    def column(
        self,
        name: str,
        type_string: str,
        null_default: Any = False,
        index: str | list[str] | None = None,
    ) -> TableDefBuilder:
        """Add or replace a column.

        Args:
            name: Column name.
            type_string: Type string understood by the type registry.
            null_default: ``False`` for a required column, ``None`` or
                ``True`` for a nullable one, anything else is a default
                value for a required column.
            index: Index type(s) to put the column in.  ``'unique.slug'``
                names a suffix so several columns can share one index.
        """
        self._columns[name] = _column_def(type_string, null_default)

        specs = [index] if isinstance(index, str) else list(index or [])
        for spec in specs:
            kind, _, suffix = spec.partition(".")
            self.index(name, kind, suffix)
        return self

    def primary_key(self, name: str, type_string: str = "int") -> TableDefBuilder:
        """Add an auto-increment primary key column."""
        column = _column_def(type_string, False)
        self._columns[name] = column.model_copy(update={"auto_increment": True, "primary": True})
        return self.index(name, IndexKind.PRIMARY)

    def index(
        self,
        columns: str | list[str],
        type: IndexKind | str = IndexKind.INDEX,
        suffix: str = "",
    ) -> TableDefBuilder:
        """Add columns to an index, merging into a matching existing one.

        Primary keys always merge; unique indexes merge on equal suffixes;
        plain indexes merge on equal non-empty suffixes, or when the
        existing index's columns are all among ``columns``.
        """
        try:
            kind = IndexKind(type.lower() if isinstance(type, str) else type)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown index type '{type}'.") from exc
        cols = [columns] if isinstance(columns, str) else list(columns)
        suffix = suffix.lower()

        for i, existing in enumerate(self._indexes):
            if existing.type is not kind:
                continue
            if (
                kind is IndexKind.PRIMARY
                or (kind is IndexKind.UNIQUE and suffix == existing.suffix)
                or (kind is IndexKind.INDEX and suffix and suffix == existing.suffix)
                or (kind is IndexKind.INDEX and not suffix and set(existing.columns) <= set(cols))
            ):
                merged = list(existing.columns) + [c for c in cols if c not in existing.columns]
                self._indexes[i] = existing.model_copy(update={"columns": tuple(merged)})
                return self

        self._indexes.append(IndexDescriptor(type=kind, columns=tuple(cols), suffix=suffix))
        return self

    def build(self) -> TableDefinition:
        """Return the immutable :class:`TableDefinition`."""
        if not self._name:
            raise ConfigurationError("A table definition needs a name.")
        return TableDefinition(
            name=self._name,
            columns=dict(self._columns),
            indexes=tuple(self._indexes),
        )

    def exec(self, db: Database, drop: bool = False) -> AlterPlan | None:
        """Build the definition and pass it to ``db.define_table``."""
        return db.define_table(self.build(), drop=drop)


def _column_def(type_string: str, null_default: Any) -> ColumnDescriptor:
    column = resolve(type_string)
    if null_default is None or null_default is True:
        return column.model_copy(update={"allow_null": True})
    if null_default is False:
        return column
    return column.model_copy(update={"default": null_default})
