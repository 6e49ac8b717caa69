import asyncio
import logging
from typing import Coroutine, Set

logger = logging.getLogger(__name__)

_running: Set[asyncio.Task] = set()


def _done(task: asyncio.Task) -> None:
    _running.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error("Background task %s crashed: %s", task.get_name(), task.exception())


def spawn(coro: Coroutine, name: str | None = None) -> asyncio.Task:
    """Fire-and-forget a coroutine on the running loop."""
    task = asyncio.create_task(coro, name=name)
    _running.add(task)
    task.add_done_callback(_done)
    return task


def running_count() -> int:
    return len(_running)
