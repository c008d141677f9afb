"""
Bounded Polling Policy

Time-bounded retry loop used to wait for asynchronous gateway settlement.
The policy is parameterized by interval and total budget; the number of
attempts is floor(timeout / interval); a budget shorter than one interval
means no attempt at all and an immediate timeout.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..exceptions import PollingTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-interval retry policy with a hard time budget.

    Attributes:
        interval: Seconds to wait between attempts
        timeout: Total polling budget in seconds
        sleep: Awaitable delay function (asyncio.sleep unless overridden)
    """
    interval: float
    timeout: float
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("Polling interval must be greater than 0")
        if self.timeout < 0:
            raise ValueError("Polling timeout cannot be negative")

    @property
    def max_attempts(self) -> int:
        return int(self.timeout // self.interval)


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    policy: RetryPolicy,
    description: str = "operation"
) -> T:
    """
    Call fetch() until is_done(result) or the attempt budget is spent.

    Returns:
        The first result accepted by is_done

    Raises:
        PollingTimeoutError: no accepted result within policy.max_attempts
        Any exception raised by fetch() propagates unchanged
    """
    max_attempts = policy.max_attempts

    for attempt in range(1, max_attempts + 1):
        result = await fetch()
        if is_done(result):
            return result

        logger.debug(f"{description} still pending... attempt {attempt}/{max_attempts}")

        if attempt < max_attempts:
            await policy.sleep(policy.interval)

    logger.warning(f"{description} not settled after {max_attempts} attempts")
    raise PollingTimeoutError(max_attempts)
