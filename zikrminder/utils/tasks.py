"""Tracking for fire-and-forget asyncio tasks."""

import asyncio
import logging
from typing import Coroutine, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Fire-and-forget tasks that are kept referenced and logged on failure."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, label: str) -> asyncio.Task:
        """Schedule coro on the running loop. Raises RuntimeError without one."""
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            raise

        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, label))
        return task

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)

    def _finished(self, task: asyncio.Task, label: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"{label} failed: {error}")
