"""
Optimistic mutations.

Apply a change locally, attempt the remote call, and apply the inverse
change if the remote call fails.
"""

import logging
from typing import Any, Awaitable, Callable

from .tasks import BestEffortResult, best_effort

logger = logging.getLogger(__name__)


async def optimistic_update(
    apply: Callable[[], None],
    revert: Callable[[], None],
    remote: Callable[[], Awaitable[Any]],
    description: str,
) -> BestEffortResult:
    """
    Run an optimistic mutation.

    Args:
        apply: Local change, applied immediately
        revert: Inverse of ``apply``, used on remote failure
        remote: Factory for the remote call
        description: Label used in logs

    Returns:
        Result of the remote call; the local state is already consistent
        with it when this returns
    """
    apply()
    result = await best_effort(remote(), description)
    if not result.ok:
        logger.info(f"Reverting optimistic change: {description}")
        revert()
    return result
