"""Test fixtures: sample table definitions and seed rows."""

from __future__ import annotations

from typing import Any

from brickdb.schema.table import TableDefinition


def user_table(name: str = "user") -> TableDefinition:
    """The canonical ``user`` table used across the unit and integration tests."""
    return (
        TableDefinition.builder(name)
        .primary_key("user_id")
        .column("name", "varchar(50)")
        .column("email", "varchar(100)", index="unique")
        .column("points", "int", null_default=0, index="index")
        .column("bio", "text", null_default=None)
        .build()
    )


def pair_table(order: tuple[str, str] = ("col1", "col2"), name: str = "pair") -> TableDefinition:
    """A table whose primary key is the composite ``order``."""
    return (
        TableDefinition.builder(name)
        .column("col1", "int")
        .column("col2", "int")
        .column("label", "varchar(20)", null_default=None)
        .index(list(order), "primary")
        .build()
    )


def number_table(name: str = "number") -> TableDefinition:
    """A keyless table holding ``id`` values for where-expression checks."""
    return (
        TableDefinition.builder(name)
        .column("id", "int", null_default=None)
        .column("id2", "int", null_default=None)
        .build()
    )


#: ``id`` in {null, 1..5}; ``id2`` mirrors ``id`` with 5 and 1 swapped.
NUMBER_ROWS: list[dict[str, Any]] = [
    {"id": None, "id2": None},
    {"id": 1, "id2": 5},
    {"id": 2, "id2": 2},
    {"id": 3, "id2": 3},
    {"id": 4, "id2": 4},
    {"id": 5, "id2": 1},
]

USER_ROWS: list[dict[str, Any]] = [
    {"name": "alice", "email": "alice@example.com", "points": 120, "bio": None},
    {"name": "bob", "email": "bob@example.com", "points": 45, "bio": None},
    {"name": "carol", "email": "carol@example.com", "points": 300, "bio": "50% off_topic"},
]
