"""brickdb schema differ: normalization and alter plans."""
from brickdb.migrate.differ import AlterPlan, column_changed, compute_alter_plan, normalize_table

__all__ = [
    "AlterPlan",
    "column_changed",
    "compute_alter_plan",
    "normalize_table",
]
