"""brickdb schema models: descriptors, type registry, where trees and queries."""
from brickdb.schema.builder import TableDefBuilder
from brickdb.schema.literals import Aggregate, Identifier, Increment, Literal
from brickdb.schema.query import FetchedRows, Query, TableQuery
from brickdb.schema.table import (
    ColumnDescriptor,
    IndexDescriptor,
    IndexKind,
    TableDefinition,
    build_index_name,
)
from brickdb.schema.types import coerce_default, render, resolve
from brickdb.schema.where import (
    ComparisonOp,
    Condition,
    LogicalOp,
    WhereGroup,
    parse_where,
)

__all__ = [
    "ColumnDescriptor",
    "IndexDescriptor",
    "IndexKind",
    "TableDefinition",
    "TableDefBuilder",
    "build_index_name",
    "resolve",
    "render",
    "coerce_default",
    "Identifier",
    "Literal",
    "Increment",
    "Aggregate",
    "ComparisonOp",
    "Condition",
    "LogicalOp",
    "WhereGroup",
    "parse_where",
    "Query",
    "TableQuery",
    "FetchedRows",
]
