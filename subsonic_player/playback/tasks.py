"""
Best-effort async calls.

Remote reporting is fire-and-forget: failures are logged and never reach
playback. Running such calls through this module makes the no-throw
contract explicit, the result is a BestEffortResult the caller may ignore.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Coroutine, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BestEffortResult:
    """Outcome of a best-effort call."""

    ok: bool
    error: Optional[Exception] = None


FailureCallback = Callable[[Exception], None]


async def best_effort(
    awaitable: Awaitable[Any],
    description: str,
    on_failure: Optional[FailureCallback] = None,
) -> BestEffortResult:
    """
    Await ``awaitable`` and convert any failure into a result.

    Args:
        awaitable: The remote call
        description: Human readable label used in logs
        on_failure: Optional hook invoked with the exception

    Returns:
        BestEffortResult, never raises (except cancellation)
    """
    try:
        await awaitable
        return BestEffortResult(ok=True)
    except Exception as e:
        logger.warning(f"{description} failed: {e}")
        if on_failure:
            try:
                on_failure(e)
            except Exception as hook_error:
                logger.error(f"Failure hook for {description} raised: {hook_error}")
        return BestEffortResult(ok=False, error=e)


class BackgroundTasks:
    """
    Keeps references to fire-and-forget tasks until they finish.

    Tasks created with ``asyncio.create_task`` and dropped can be garbage
    collected mid-flight; this set holds them and lets owners wait for
    or cancel whatever is still outstanding.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        description: str,
        on_failure: Optional[FailureCallback] = None,
    ) -> "asyncio.Task[BestEffortResult]":
        """Run ``coro`` as a best-effort background task."""
        task = asyncio.create_task(best_effort(coro, description, on_failure))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def track(self, task: asyncio.Task) -> asyncio.Task:
        """Hold a reference to an already created task."""
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every outstanding task (including ones they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel outstanding tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
