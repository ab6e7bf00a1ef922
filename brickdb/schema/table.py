"""Pydantic models for column, index and table descriptors.

Descriptors are the common comparison unit for diffing: a desired
definition built in code and a live definition read back from the engine
are normalized into the same shapes, so the differ can compare them
structurally.  ``model_dump(mode="json")`` is the schema-dump format.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from brickdb.schema.builder import TableDefBuilder

#: Storage kinds a canonical type belongs to.
StorageKind = Literal["integer", "number", "boolean", "string", "binary", "datetime", "json"]

_FROZEN = ConfigDict(extra="forbid", frozen=True)


class IndexKind(str, Enum):
    """Index types understood by both engines."""

    PRIMARY = "primary"
    UNIQUE = "unique"
    INDEX = "index"


class ColumnDescriptor(BaseModel):
    """Normalized metadata for a single column.

    Attributes:
        type: Storage kind (``'integer'``, ``'string'``, ...).
        db_type: Canonical type name (``'int'``, ``'varchar'``, ``'enum'``, ...).
        allow_null: Whether the column accepts NULL.
        default: Default value, or ``None`` for no default.
        auto_increment: Whether the engine generates values for the column.
        primary: Whether the column is part of the primary key.
        max_length: Length for character and binary types.
        precision: Total digits for ``decimal``.
        scale: Fractional digits for ``decimal``.
        enum: Allowed values for ``enum``.
        unsigned: Unsigned integer flag.
        minimum: Smallest value of an integer type.
        maximum: Largest value of an integer type.
    """

    model_config = _FROZEN

    type: StorageKind
    db_type: str
    allow_null: bool = False
    default: Any = None
    auto_increment: bool = False
    primary: bool = False
    max_length: int | None = None
    precision: int | None = None
    scale: int | None = None
    enum: tuple[str, ...] | None = None
    unsigned: bool = False
    minimum: int | None = None
    maximum: int | None = None


class IndexDescriptor(BaseModel):
    """An index over one or more columns.

    Attributes:
        type: Primary, unique or plain index.
        columns: Indexed columns in index order.
        name: Index name; assigned during normalization when omitted.
        suffix: Naming hint used in place of the column list.
    """

    model_config = _FROZEN

    type: IndexKind = IndexKind.INDEX
    columns: tuple[str, ...]
    name: str | None = None
    suffix: str = ""

    @property
    def key(self) -> tuple[str, tuple[str, ...]]:
        """Identity used when diffing: kind plus column set.

        Column order only matters for the primary key.
        """
        if self.type is IndexKind.PRIMARY:
            return self.type.value, self.columns
        return self.type.value, tuple(sorted(self.columns))


def build_index_name(table: str, index: IndexDescriptor) -> str:
    """Return the default name for ``index`` on ``table``.

    ``primary`` for the primary key, otherwise ``ix_`` or ``ux_`` followed by
    the table name and the suffix (or the concatenated column names).
    """
    if index.type is IndexKind.PRIMARY:
        return "primary"
    prefix = "ux_" if index.type is IndexKind.UNIQUE else "ix_"
    return f"{prefix}{table}_{index.suffix or ''.join(index.columns)}"


class TableDefinition(BaseModel):
    """A table: ordered columns plus indexes.

    Column values may be given as type strings (``{"id": "int"}``); they are
    resolved through the type registry.

    Attributes:
        name: Table name without the connection prefix.
        columns: Columns in declaration order.
        indexes: Primary, unique and plain indexes.
    """

    model_config = _FROZEN

    name: str
    columns: dict[str, ColumnDescriptor]
    indexes: tuple[IndexDescriptor, ...] = Field(default_factory=tuple)

    @field_validator("columns", mode="before")
    @classmethod
    def _resolve_type_strings(cls, value: Any) -> Any:
        from brickdb.schema.types import resolve

        if not isinstance(value, dict):
            return value
        return {
            name: resolve(column) if isinstance(column, str) else column
            for name, column in value.items()
        }

    @classmethod
    def builder(cls, name: str) -> TableDefBuilder:
        """Return a fluent :class:`~brickdb.schema.builder.TableDefBuilder`."""
        from brickdb.schema.builder import TableDefBuilder

        return TableDefBuilder(name)

    @property
    def primary_index(self) -> IndexDescriptor | None:
        """Return the primary index, if any."""
        for index in self.indexes:
            if index.type is IndexKind.PRIMARY:
                return index
        return None

    @property
    def primary_columns(self) -> list[str]:
        """Return the columns flagged ``primary`` in declaration order."""
        return [name for name, column in self.columns.items() if column.primary]
