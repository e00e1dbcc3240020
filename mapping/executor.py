"""Ordered fan-out of independent work units onto a thread pool."""

import concurrent.futures
from typing import Callable, List, Sequence, TypeVar

from mapper_core.logging import get_logger

logger = get_logger("mapping.executor")

T = TypeVar("T")
R = TypeVar("R")


def run_ordered(
    fn: Callable[[T], R], items: Sequence[T], workers: int = 1, label: str = "task"
) -> List[R]:
    """
    Apply *fn* to every item and return the results in input order.

    With ``workers <= 1`` (or a single item) everything runs inline.  Otherwise
    items are submitted to a ThreadPoolExecutor; the first failure cancels
    the pending futures and is re-raised, so a caller never sees a partial
    result list.
    """
    if workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]

    logger.debug("Running %d %s units on %d workers", len(items), label, workers)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(fn, item) for item in items]
        try:
            return [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            raise
