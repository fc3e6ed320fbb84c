"""Schedulers used to defer a parent's render until the next tick.

A completing child never renders its parent inline; it hands the parent's
render to a scheduler so other completions from the same tick settle first
and deep trees do not grow the call stack.
"""

import asyncio
from collections import deque
from collections.abc import Callable
from typing import Any

from view_tree.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


class TaskQueue:
    """FIFO queue of deferred callbacks, drained explicitly by its owner.

    Useful outside an event loop and in tests, where the order in which
    completions are observed has to be deterministic.
    """

    def __init__(self):
        self._tasks: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue ``callback(*args)`` behind every task already queued."""
        self._tasks.append((callback, args))

    def run_once(self) -> int:
        """Run the tasks queued so far, leaving newly queued ones for later.

        Returns:
            Number of tasks run
        """
        count = len(self._tasks)
        for _ in range(count):
            callback, args = self._tasks.popleft()
            callback(*args)
        return count

    def run_pending(self) -> int:
        """Run tasks until the queue is empty, including ones queued meanwhile.

        Returns:
            Number of tasks run
        """
        total = 0
        while self._tasks:
            total += self.run_once()
        if total:
            log_with_context(
                logger,
                "debug",
                "Task queue drained",
                task_count=total,
                event_type="task_queue_drained",
            )
        return total


class EventLoopScheduler:
    """Defers callbacks to the next iteration of an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        """Initialize the scheduler.

        Args:
            loop: Event loop to use; the running loop is looked up at call time when None
        """
        self._loop = loop

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule ``callback(*args)`` with ``loop.call_soon``.

        Raises:
            RuntimeError: If no loop was given and none is running
        """
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(callback, *args)
