"""Deadline and cancellation token threaded through driver calls"""

import threading
import time
from typing import Callable, List, Optional

from .exceptions import TimeoutError


class Context:
    """
    Execution token carrying an optional deadline and a cancellation flag.

    Drivers call ``check()`` before touching the transport and register a hook
    with ``on_cancel()`` so that ``cancel()`` from another thread (a signal
    handler, a shutdown path) can abort the statement in flight.

    Example:
        ```python
        ctx = Context.with_timeout(30)
        result = client.query("SELECT * FROM big_table", ctx=ctx)
        ```
    """

    def __init__(self, deadline: Optional[float] = None):
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._hooks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @classmethod
    def background(cls) -> "Context":
        """Context with no deadline that is only cancelled explicitly."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "Context":
        return cls(deadline=time.monotonic() + seconds)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def done(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise TimeoutError if the context is already cancelled or expired."""
        if self._cancelled.is_set():
            raise TimeoutError("context cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise TimeoutError("context deadline exceeded")

    def on_cancel(self, hook: Callable[[], None]) -> Callable[[], None]:
        """
        Register a hook fired once by cancel().

        Returns:
            A function that unregisters the hook.
        """
        with self._lock:
            self._hooks.append(hook)

        def unregister() -> None:
            with self._lock:
                if hook in self._hooks:
                    self._hooks.remove(hook)

        return unregister

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            hooks = list(self._hooks)
            self._hooks.clear()
        for hook in hooks:
            hook()

    def __repr__(self) -> str:
        return f"Context(remaining={self.remaining()}, cancelled={self.cancelled})"
