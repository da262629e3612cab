"""Runtime configuration with BINSQL_* environment overrides"""

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from .exceptions import UsageError

_ENV_PREFIX = "BINSQL_"


@dataclass(frozen=True)
class Config:
    """Limits and presentation defaults. Small values suit a single-user CLI."""
    max_connections: int = 4
    max_lifetime: float = 300.0
    ping_timeout: float = 5.0
    max_column_width: int = 40
    batch_column_width: int = 60
    scrollback_limit: int = 1000
    odbc_driver: str = "ODBC Driver 18 for SQL Server"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Build a Config from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            Config with every BINSQL_<FIELD> variable applied
        """
        env = os.environ if environ is None else environ
        values = {}
        for field in fields(cls):
            raw = env.get(_ENV_PREFIX + field.name.upper())
            if raw is None or raw == "":
                continue
            try:
                values[field.name] = field.type(raw) if field.type is not str else raw
            except ValueError:
                raise UsageError(
                    f"invalid value for {_ENV_PREFIX}{field.name.upper()}: {raw!r}"
                ) from None
        return cls(**values)
