"""Interactive and one-shot entry points"""

import logging
import sys
from typing import IO, Optional, Union

from .client import Client, default_list_query
from .config import Config
from .console import Console
from .context import Context
from .drivers import DriverKind
from .exceptions import BinsqlError
from .render import write_table

logger = logging.getLogger(__name__)


def run_non_interactive(
    kind: Union[DriverKind, str, None],
    target: str,
    sql: Optional[str] = None,
    stream: Optional[IO[str]] = None,
    config: Optional[Config] = None,
    errors: Optional[IO[str]] = None
) -> bool:
    """
    Open, run one statement, print it as a table, close.

    Without ``sql`` the engine's default table listing runs instead.

    Returns:
        True on success; on failure the error is written to ``errors``
        (stderr by default) as ``error: <message>``.
    """
    config = config or Config()
    stream = stream or sys.stdout
    errors = errors or sys.stderr
    try:
        client = Client.open(kind, target, config)
    except BinsqlError as e:
        errors.write(f"error: {e}\n")
        return False

    try:
        result = client.query(sql or default_list_query(client.kind))
        write_table(stream, result, config.batch_column_width)
        return True
    except BinsqlError as e:
        logger.debug("query failed: %s", e)
        errors.write(f"error: {e}\n")
        return False
    finally:
        client.close()


def run_interactive(
    kind: Union[DriverKind, str, None],
    target: str,
    config: Optional[Config] = None
) -> None:
    """
    Run the full-screen console.

    UnsupportedDriverError and ConnectionError propagate before the screen
    is taken over. On every exit path (/q, Ctrl+C, KeyboardInterrupt) the
    console's Context is cancelled, aborting any statement still in flight,
    and the connection is closed.
    """
    from . import tui

    config = config or Config()
    client = Client.open(kind, target, config)
    ctx = Context.background()
    try:
        tui.run(Console(client, config=config, ctx=ctx))
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        ctx.cancel()
        client.close()
