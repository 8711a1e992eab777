"""Delivery of scan notifications onto the execution context observers need."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor
from typing import Any, Protocol

logger = logging.getLogger(__name__)

Submit = Callable[[Callable[[], None]], Any]


class NotificationSink(Protocol):
    """Runs a notification callback on whatever context observers require."""

    def deliver(self, callback: Callable[..., None], *args: Any) -> None: ...


def _invoke(callback: Callable[..., None], *args: Any) -> None:
    try:
        callback(*args)
    except Exception:
        # Observers must never break the scan that notifies them.
        logger.exception("Scan listener %r failed", callback)


class ImmediateSink:
    """Deliver every notification synchronously on the calling thread."""

    def deliver(self, callback: Callable[..., None], *args: Any) -> None:
        _invoke(callback, *args)


class ContextSink:
    """Redirect notifications to a designated execution context.

    Args:
        submit: schedules a zero-argument callable on the target context
            (for example ``loop.call_soon_threadsafe`` or ``executor.submit``).
        is_context: optional check telling whether the caller already runs on the
            target context; when it returns True the callback runs inline.
    """

    def __init__(self, submit: Submit, is_context: Callable[[], bool] | None = None):
        self._submit = submit
        self._is_context = is_context

    def deliver(self, callback: Callable[..., None], *args: Any) -> None:
        if self._is_context is not None and self._is_context():
            _invoke(callback, *args)
            return
        self._submit(lambda: _invoke(callback, *args))

    @classmethod
    def for_executor(cls, executor: Executor) -> ContextSink:
        """Deliver on an executor, e.g. a single-thread pool acting as a UI thread."""
        return cls(executor.submit)

    @classmethod
    def for_event_loop(cls, loop: asyncio.AbstractEventLoop) -> ContextSink:
        """Deliver on an asyncio event loop, inline when already on the loop's thread."""
        loop_thread: list[threading.Thread] = []

        def _capture() -> None:
            loop_thread.append(threading.current_thread())

        loop.call_soon_threadsafe(_capture)

        def _on_loop() -> bool:
            return bool(loop_thread) and loop_thread[0] is threading.current_thread()

        return cls(loop.call_soon_threadsafe, is_context=_on_loop)
