"""Interval polling with a deadline and an external cancel signal."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollTimeoutError(Exception):
    """The predicate did not hold before the deadline."""


class PollCancelledError(Exception):
    """The cancel event was set while polling."""


async def poll_until(
    probe: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    *,
    interval: float,
    timeout: float | None,
    cancel_event: asyncio.Event | None = None,
) -> T:
    """Call ``probe`` every ``interval`` seconds until ``predicate`` holds.

    A probe that raises counts as a miss; polling continues.

    Args:
        probe: Coroutine factory producing the observed value.
        predicate: Success test applied to each observed value.
        interval: Seconds between probes.
        timeout: Overall bound in seconds, or None to poll indefinitely.
        cancel_event: When set, polling stops with PollCancelledError.

    Returns:
        The first observed value satisfying the predicate.

    Raises:
        PollTimeoutError: The deadline passed first.
        PollCancelledError: The cancel event was set first.
    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollCancelledError("polling cancelled")

        try:
            value = await probe()
        except Exception as e:
            logger.debug("Poll probe failed: %s", e)
        else:
            if predicate(value):
                return value

        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise PollTimeoutError(f"condition not met within {timeout}s")
            wait = min(interval, remaining)
        else:
            wait = interval

        if cancel_event is None:
            await asyncio.sleep(wait)
        else:
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=wait)
            except asyncio.TimeoutError:
                pass
