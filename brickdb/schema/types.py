"""Type registry: canonical type strings <-> :class:`ColumnDescriptor`.

``resolve`` parses strings such as ``'varchar(50)'``, ``'uint'``,
``'int(11) unsigned'``, ``'decimal(10,2)'`` or ``"enum('a','b')"`` into a
descriptor; ``render`` produces the canonical string back.  Engine-native
spellings (``tinyint(1)``, ``bigint``) are a dialect concern and live in
:mod:`brickdb.compile`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from brickdb.errors import UnknownTypeError
from brickdb.schema.literals import Literal
from brickdb.schema.table import ColumnDescriptor, StorageKind


@dataclass(frozen=True)
class _TypeEntry:
    kind: StorageKind
    has_length: bool = False
    default_length: int | None = None


#: Signed bit widths of the integer types.
INTEGER_BITS: dict[str, int] = {
    "byte": 8,
    "short": 16,
    "mediumint": 24,
    "int": 32,
    "long": 64,
}

TYPES: dict[str, _TypeEntry] = {
    "bool": _TypeEntry("boolean"),
    **{name: _TypeEntry("integer") for name in INTEGER_BITS},
    "float": _TypeEntry("number"),
    "double": _TypeEntry("number"),
    "decimal": _TypeEntry("number"),
    "char": _TypeEntry("string", has_length=True, default_length=1),
    "varchar": _TypeEntry("string", has_length=True, default_length=255),
    "tinytext": _TypeEntry("string"),
    "text": _TypeEntry("string"),
    "mediumtext": _TypeEntry("string"),
    "longtext": _TypeEntry("string"),
    "enum": _TypeEntry("string"),
    "binary": _TypeEntry("binary", has_length=True, default_length=1),
    "varbinary": _TypeEntry("binary", has_length=True, default_length=255),
    "tinyblob": _TypeEntry("binary"),
    "blob": _TypeEntry("binary"),
    "mediumblob": _TypeEntry("binary"),
    "longblob": _TypeEntry("binary"),
    "json": _TypeEntry("json"),
    "date": _TypeEntry("datetime"),
    "datetime": _TypeEntry("datetime"),
    "timestamp": _TypeEntry("datetime"),
    "time": _TypeEntry("datetime"),
}

ALIASES: dict[str, str] = {
    "boolean": "bool",
    "tinyint": "byte",
    "int8": "byte",
    "smallint": "short",
    "int16": "short",
    "integer": "int",
    "int32": "int",
    "bigint": "long",
    "int64": "long",
    "string": "varchar",
    "real": "double",
    "numeric": "decimal",
    "dec": "decimal",
}

_TYPE_RE = re.compile(
    r"^\s*(?P<base>[a-z_][a-z0-9_]*)\s*"
    r"(?:\((?P<args>.*)\))?\s*"
    r"(?P<unsigned>unsigned)?\s*$",
    re.IGNORECASE | re.DOTALL,
)
_QUOTED_RE = re.compile(r"'((?:[^']|'')*)'")


def resolve(type_string: str) -> ColumnDescriptor:
    """Parse a type string into a :class:`ColumnDescriptor`.

    Args:
        type_string: A canonical, aliased or engine-native type string.

    Returns:
        A descriptor with ``allow_null`` and ``default`` left at their
        defaults; callers set those separately.

    Raises:
        UnknownTypeError: If the base type is not registered or the
            bracketed arguments do not fit it.
    """
    match = _TYPE_RE.match(type_string)
    if match is None:
        raise UnknownTypeError(type_string)

    base = match["base"].lower()
    args = match["args"]
    unsigned = match["unsigned"] is not None
    base = ALIASES.get(base, base)

    if base not in TYPES and base.startswith("u"):
        inner = ALIASES.get(base[1:], base[1:])
        if inner in INTEGER_BITS:
            base = inner
            unsigned = True

    entry = TYPES.get(base)
    if entry is None:
        raise UnknownTypeError(type_string)

    fields: dict[str, Any] = {"type": entry.kind, "db_type": base}
    try:
        if base == "enum":
            fields["enum"] = _parse_enum(args, type_string)
        elif base == "decimal":
            # Engines store a bare decimal as decimal(10,0).
            parts = [int(p) for p in args.split(",")] if args else [10]
            fields["precision"] = parts[0]
            fields["scale"] = parts[1] if len(parts) > 1 else 0
        elif entry.has_length:
            fields["max_length"] = int(args) if args else entry.default_length
    except ValueError as exc:
        raise UnknownTypeError(type_string) from exc

    if base in INTEGER_BITS:
        bits = INTEGER_BITS[base]
        maximum = 2 ** (bits - 1) - 1
        if unsigned:
            fields.update(unsigned=True, minimum=0, maximum=maximum * 2 + 1)
        else:
            fields.update(minimum=-maximum - 1, maximum=maximum)

    return ColumnDescriptor(**fields)


def _parse_enum(args: str | None, type_string: str) -> tuple[str, ...]:
    if not args or not args.strip():
        raise UnknownTypeError(type_string)
    if "'" in args:
        return tuple(v.replace("''", "'") for v in _QUOTED_RE.findall(args))
    return tuple(v.strip(" \t\n'\"") for v in args.split(","))


def render(column: ColumnDescriptor) -> str:
    """Return the canonical type string for ``column``.

    Exactly one rendering mode applies, checked in this order: enum list,
    precision/scale, length, unsigned prefix.
    """
    if column.enum is not None:
        values = ",".join("'" + v.replace("'", "''") + "'" for v in column.enum)
        return f"enum({values})"
    if column.precision is not None:
        if column.scale is not None:
            return f"{column.db_type}({column.precision},{column.scale})"
        return f"{column.db_type}({column.precision})"
    if column.max_length is not None:
        return f"{column.db_type}({column.max_length})"
    if column.unsigned:
        return f"u{column.db_type}"
    return column.db_type


_TRUE_STRINGS = frozenset({"1", "true", "yes", "on", "b'1'"})


def coerce_default(value: Any, column: ColumnDescriptor) -> Any:
    """Normalize a default value by the column's storage kind.

    Engines report defaults as SQL text (``'0'``, ``"'abc'"``); definitions
    built in code carry Python values.  Both sides are passed through here
    before they are compared.
    """
    if value is None:
        return None
    if isinstance(value, Literal):
        # Raw SQL; compared as text by the differ.
        return value
    if isinstance(value, str) and len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1].replace("''", "'")

    try:
        if column.type == "boolean":
            if isinstance(value, str):
                return value.strip().lower() in _TRUE_STRINGS
            return bool(value)
        if column.type == "integer" and not isinstance(value, bool):
            return int(value)
        if column.type == "number":
            return float(value)
    except (TypeError, ValueError):
        return value

    if column.type in ("string", "datetime", "json") and not isinstance(value, str):
        return str(value)
    return value
