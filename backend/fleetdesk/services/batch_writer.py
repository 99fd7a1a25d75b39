"""Bounded-concurrency writer: fixed-width waves with a barrier between them."""
import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def write_in_batches(
    items: Sequence[T],
    width: int,
    write_one: Callable[[T], Awaitable[R]],
    on_error: Callable[[T, BaseException], R],
) -> list[R]:
    """Run ``write_one`` over ``items``, at most ``width`` at a time.

    All items of a batch are started together and the whole batch must settle
    before the next one starts. A raised exception is handed to ``on_error``
    for that item only; siblings and later batches still run. Results are
    returned in input order.
    """
    if width < 1:
        raise ValueError("batch width must be at least 1")

    results: list[R] = []
    total_batches = (len(items) + width - 1) // width
    for batch_no, start in enumerate(range(0, len(items), width), start=1):
        batch = items[start:start + width]
        outcomes = await asyncio.gather(
            *(write_one(item) for item in batch),
            return_exceptions=True,
        )
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                results.append(on_error(item, outcome))
            else:
                results.append(outcome)
        logger.debug("Write batch %d/%d settled (%d rows)", batch_no, total_batches, len(batch))
    return results
