"""
Engine adapters.

Each module exposes ``open(target, config) -> driver``; drivers satisfy the
``Driver`` protocol from ``binsql.drivers.base``. Modules are imported on
demand so a missing transport library only matters for the engine that
needs it.
"""

import importlib
from enum import Enum
from typing import Callable, Optional, Union

from ..config import Config
from ..exceptions import UnsupportedDriverError
from .base import Driver


class DriverKind(str, Enum):
    """Supported engines"""
    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MSSQL = "mssql"
    MYSQL = "mysql"

    @classmethod
    def parse(cls, kind: Union["DriverKind", str, None]) -> "DriverKind":
        """
        Resolve a driver identifier.

        Empty or None means SQLite.

        Raises:
            UnsupportedDriverError: for anything outside the closed set
        """
        if isinstance(kind, cls):
            return kind
        if not kind:
            return cls.SQLITE
        try:
            return cls(kind)
        except ValueError:
            expected = ", ".join(k.value for k in cls)
            raise UnsupportedDriverError(
                f"unsupported driver {kind!r} (expected {expected})"
            ) from None


Opener = Callable[[str, Optional[Config]], Driver]


def get_opener(kind: DriverKind) -> Opener:
    module = importlib.import_module(f"{__name__}.{kind.value}")
    return module.open


__all__ = ["Driver", "DriverKind", "get_opener"]
