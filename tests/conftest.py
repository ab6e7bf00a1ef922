"""Shared pytest fixtures for brickdb unit and integration tests."""
from __future__ import annotations

import pytest

from brickdb.compile.builder import StatementBuilder
from brickdb.compile.mysql import MySQLDialect
from brickdb.compile.sqlite import SQLiteDialect


@pytest.fixture(scope="session")
def mysql_dialect() -> MySQLDialect:
    return MySQLDialect()


@pytest.fixture(scope="session")
def sqlite_dialect() -> SQLiteDialect:
    return SQLiteDialect()


@pytest.fixture()
def my(mysql_dialect: MySQLDialect) -> StatementBuilder:
    """MySQL statement builder without a prefix."""
    return StatementBuilder(mysql_dialect)


@pytest.fixture()
def sq(sqlite_dialect: SQLiteDialect) -> StatementBuilder:
    """SQLite statement builder without a prefix."""
    return StatementBuilder(sqlite_dialect)
