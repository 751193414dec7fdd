"""Backoff utilities.

Provides a generator for exponential backoff strategies.
`exponential_backoff` yields the current delay for the caller to attempt an operation,
then sleeps for that delay before the next attempt. The first delay is yielded
without sleeping.
"""
import time
from typing import Callable, Iterator


def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[float]:
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        yield delay
        if attempt < max_attempts:
            delay = min(delay * multiplier, max_delay)
            sleep(delay)
