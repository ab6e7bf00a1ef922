"""Raw SQL values that bypass parameter binding.

``Identifier``
    A table name that is escaped but never prefixed
    (e.g. ``Identifier("information_schema", "COLUMNS")``).

``Literal``
    A raw SQL expression, optionally with a different spelling per dialect.

``Increment``
    ``column = column + n`` in an update.

``Aggregate``
    An aggregate call such as ``count(col) as alias`` in a select column list.
"""
from __future__ import annotations

from collections.abc import Callable

from brickdb.errors import ConfigurationError


class Identifier:
    """A dotted identifier rendered without the connection prefix.

    Args:
        *parts: One dotted string (``"schema.table"``) or the parts
            themselves.
    """

    def __init__(self, *parts: str) -> None:
        if not parts or not parts[0]:
            raise ConfigurationError("The identifier is empty.")
        if len(parts) == 1:
            parts = tuple(parts[0].split("."))
        self.parts: tuple[str, ...] = tuple(parts)

    def __str__(self) -> str:
        return ".".join(self.parts)

    def __repr__(self) -> str:
        return f"Identifier({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Identifier) and self.parts == other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def escape(self, quote: Callable[[str], str]) -> str:
        """Quote each part with ``quote`` and join them with dots."""
        return ".".join(quote(part) for part in self.parts)


class Literal:
    """Raw SQL text, keyed by dialect name with a ``'default'`` fallback.

    Templates use :meth:`str.format` positional fields; ``{0}`` is the quoted
    column name when the literal is used as an update value.

    Args:
        value: SQL text, or a mapping of dialect name to SQL text.
    """

    def __init__(self, value: str | dict[str, str]) -> None:
        if isinstance(value, str):
            self.driver_values: dict[str, str] = {"default": value}
        else:
            self.driver_values = {key.lower(): text for key, text in value.items()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.driver_values!r})"

    def get_value(self, dialect: str, *args: object) -> str:
        """Return the SQL text for ``dialect``.

        Raises:
            ConfigurationError: If neither ``dialect`` nor ``'default'`` has
                a value.
        """
        template = self.driver_values.get(dialect, self.driver_values.get("default"))
        if template is None:
            raise ConfigurationError(f"No literal for dialect '{dialect}'.")
        return template.format(*args) if args else template

    def set_value(self, value: str, dialect: str = "default") -> Literal:
        self.driver_values[dialect.lower()] = value
        return self

    @classmethod
    def timestamp(cls) -> Literal:
        """The current unix timestamp, computed by the engine."""
        return cls(
            {
                "mysql": "unix_timestamp()",
                "sqlite": "cast(strftime('%s', 'now') as integer)",
            }
        )


class Increment(Literal):
    """Add ``inc`` to a column's current value in an update.

    Args:
        inc: Amount to add; negative values decrement.
    """

    def __init__(self, inc: int = 1) -> None:
        super().__init__("{0} {1:+d}")
        self.inc = inc

    def __repr__(self) -> str:
        return f"Increment({self.inc})"

    def get_value(self, dialect: str, *args: object) -> str:
        if not args:
            raise ConfigurationError("Increment must specify the column to increment.")
        return super().get_value(dialect, args[0], self.inc)


class Aggregate(Literal):
    """An aggregate function call for the ``columns`` option of ``get``.

    Args:
        func: One of :attr:`FUNCTIONS`; ``count-distinct`` counts distinct
            values.
        column: Column to aggregate, or ``*``.
        alias: Result column name; the function name when empty.

    Raises:
        ConfigurationError: If ``func`` is not a known aggregate.
    """

    AVG = "avg"
    COUNT = "count"
    COUNT_DISTINCT = "count-distinct"
    MAX = "max"
    MIN = "min"
    SUM = "sum"

    FUNCTIONS = (AVG, COUNT, COUNT_DISTINCT, MAX, MIN, SUM)

    def __init__(self, func: str, column: str, alias: str = "") -> None:
        func = func.lower()
        if func not in self.FUNCTIONS:
            raise ConfigurationError(f"Unknown aggregate function '{func}'.")
        template = "{0}({1}) as {2}"
        if func == self.COUNT_DISTINCT:
            template = "{0}(distinct {1}) as {2}"
            func = self.COUNT
        super().__init__(template)
        self.func = func
        self.column = column
        self.alias = alias or func

    def __repr__(self) -> str:
        return f"Aggregate({self.func!r}, {self.column!r}, {self.alias!r})"

    def get_value(self, dialect: str, *args: object) -> str:
        """Render the call; ``args[0]`` is the identifier quoting function."""
        if not args or not callable(args[0]):
            raise ConfigurationError("Aggregate needs the identifier quoting function.")
        quote = args[0]
        column = "*" if self.column == "*" else quote(self.column)
        return super().get_value(dialect, self.func, column, quote(self.alias))
