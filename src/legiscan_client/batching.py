import asyncio
from dataclasses import dataclass
from typing import (Any, Awaitable, Callable, Generic, List, Optional,
                    Sequence, TypeVar)

from .utils import logger_setup

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_BATCH_SIZE = 10

logger = logger_setup(logger_name="LegiScan Batching")


@dataclass
class Settled(Generic[R]):
    """Outcome of one batched call: either ``value`` or ``error`` is set."""
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def format_error(reason: Any) -> str:
    """Human-readable failure reason for an error list."""
    if isinstance(reason, BaseException):
        return str(reason) or type(reason).__name__
    return str(reason)


async def process_batched(
    items: Sequence[T],
    processor: Callable[[T], Awaitable[R]],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[Settled[R]]:
    """
    Run ``processor`` over ``items`` at most ``batch_size`` at a time.

    Items are taken in fixed windows; a window is gathered to completion
    before the next one starts. A failing item never cancels its siblings:
    its exception is captured in the matching ``Settled`` slot.

    Returns:
        One ``Settled`` per item, in the order of ``items``.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1. Got {batch_size}.")

    results: List[Settled[R]] = []
    for start in range(0, len(items), batch_size):
        window = items[start:start + batch_size]
        logger.debug(f"Processing items {start+1}-{start+len(window)} of {len(items)}")
        outcomes = await asyncio.gather(*(processor(item) for item in window), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                results.append(Settled(error=outcome))
            else:
                results.append(Settled(value=outcome))
    return results
