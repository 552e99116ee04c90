"""Background execution for commands declared with ``run_async=True``.

Work is fire-and-forget: nothing is awaited, there is no ordering between
submissions, and exceptions raised by a submitted callable are logged here.
"""

import asyncio
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from utils.logger import get_logger

logger = get_logger().getChild("Scheduler")


def _log_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Background task failed: %s", exc, exc_info=exc)


class ThreadPoolScheduler:
    """Runs submitted callables on a ``ThreadPoolExecutor``."""

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "sancf-worker") -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )

    def run_async(self, fn: Callable[[], None]) -> Future:
        future = self._executor.submit(fn)
        future.add_done_callback(_log_failure)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ThreadPoolScheduler":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)


class LoopScheduler:
    """Offloads callables to ``asyncio.to_thread`` on a running event loop.

    Safe to call from any thread; the loop must be running.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self.loop = loop or asyncio.get_running_loop()

    def run_async(self, fn: Callable[[], None]) -> Future:
        future = asyncio.run_coroutine_threadsafe(asyncio.to_thread(fn), self.loop)
        future.add_done_callback(_log_failure)
        return future


class InlineScheduler:
    """Runs callables immediately on the calling thread."""

    def run_async(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            logger.exception("Inline task failed")
