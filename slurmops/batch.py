"""Run a call many times in batches that grow while calls keep succeeding."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

SLOW_START_INITIAL_BATCH_SIZE = 1


class BatchError(Exception):
    """A batch had failures; carries the successes so far and the first error."""

    def __init__(self, successes: int, error: BaseException) -> None:
        super().__init__(str(error))
        self.successes = successes
        self.error = error


def slow_start_batch(
    count: int, initial_batch_size: int, fn: Callable[[int], Any]
) -> int:
    """Call ``fn(index)`` ``count`` times, doubling the batch size after each success.

    Calls within a batch run concurrently. If any call in a batch raises, the
    remaining batches are skipped and BatchError is raised once the batch has
    finished. Returns the number of successful calls.
    """
    remaining = count
    successes = 0
    index = 0
    batch_size = min(remaining, initial_batch_size)
    while batch_size > 0:
        indices = range(index, index + batch_size)
        index += batch_size
        with ThreadPoolExecutor(max_workers=batch_size) as pool:
            futures = [pool.submit(fn, i) for i in indices]
        errors = [exc for exc in (f.exception() for f in futures) if exc is not None]
        successes += batch_size - len(errors)
        if errors:
            raise BatchError(successes, errors[0]) from errors[0]
        remaining -= batch_size
        batch_size = min(2 * batch_size, remaining)
    return successes