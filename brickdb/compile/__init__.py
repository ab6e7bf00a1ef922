"""brickdb compilation layer: where trees and statements -> parameterized SQL."""
from brickdb.compile.base import CompiledSQL, Dialect
from brickdb.compile.builder import StatementBuilder
from brickdb.compile.expression_builder import RuntimeContext, WhereCompiler
from brickdb.compile.mysql import MySQLDDLBuilder, MySQLDialect
from brickdb.compile.sqlite import SQLiteDDLBuilder, SQLiteDialect

__all__ = [
    "CompiledSQL",
    "Dialect",
    "StatementBuilder",
    "RuntimeContext",
    "WhereCompiler",
    "MySQLDialect",
    "MySQLDDLBuilder",
    "SQLiteDialect",
    "SQLiteDDLBuilder",
]
