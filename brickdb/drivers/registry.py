"""Driver registry.

``DriverFactory`` maps a :attr:`~brickdb.config.ConnectionConfig.target`
name to a :class:`~brickdb.drivers.base.Database` subclass.  Adding an
engine means registering its driver; :func:`brickdb.connect` picks it up
without modification.

Usage::

    from brickdb.drivers.registry import DriverFactory

    @DriverFactory.register("mariadb")
    class MariaDBDatabase(MySQLDatabase):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from brickdb.config import ConnectionConfig
from brickdb.drivers.base import Database
from brickdb.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Driver factory
# ---------------------------------------------------------------------------


class DriverFactory:
    """Registry mapping target names to :class:`Database` classes.

    Example::

        @DriverFactory.register("sqlite")
        class SQLiteDatabase(Database):
            ...

        db = DriverFactory.create(ConnectionConfig(target="sqlite"))
    """

    _drivers: ClassVar[dict[str, type[Database]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Database]], type[Database]]:
        """Decorator that registers a driver class under ``name``.

        Args:
            name: The target name (e.g. ``"mysql"``).

        Returns:
            A decorator that registers and returns the driver class.
        """

        def decorator(driver_cls: type[Database]) -> type[Database]:
            cls._drivers[name] = driver_cls
            return driver_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, driver_cls: type[Database]) -> None:
        """Register a driver class without using the decorator form."""
        cls._drivers[name] = driver_cls

    @classmethod
    def create(cls, config: ConnectionConfig) -> Database:
        """Open a connection with the driver registered for ``config.target``.

        Raises:
            ConfigurationError: If no driver is registered for the target.
        """
        driver_cls = cls._drivers.get(config.target)
        if driver_cls is None:
            registered = sorted(cls._drivers)
            raise ConfigurationError(
                f"No driver registered for target '{config.target}'. "
                f"Registered targets: {registered}"
            )
        return driver_cls.connect(config)

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return a sorted list of all registered target names."""
        return sorted(cls._drivers)
