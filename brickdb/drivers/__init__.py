"""brickdb drivers: one :class:`Database` per engine plus the driver registry."""
from brickdb.drivers.base import Database
from brickdb.drivers.mysql import MySQLDatabase
from brickdb.drivers.registry import DriverFactory
from brickdb.drivers.sqlite import SQLiteDatabase

__all__ = [
    "Database",
    "DriverFactory",
    "MySQLDatabase",
    "SQLiteDatabase",
]
