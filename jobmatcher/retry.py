"""Retry with exponential backoff for calls to the search index and model provider."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Iterator, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delays(
    attempts: int,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
) -> Iterator[float]:
    """Waits between *attempts* tries: ``base * factor**n`` capped at *max_delay*.

    With *jitter* each wait is scaled by a random factor in [0.5, 1.5).
    """
    for n in range(attempts - 1):
        delay = min(base_delay * backoff_factor**n, max_delay)
        yield delay * (0.5 + random.random()) if jitter else delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    giveup: Callable[[BaseException], BaseException] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """Decorator: re-run the wrapped call on *retryable* errors.

    When every attempt fails, the last error is re-raised, or, if *giveup*
    is given, the exception it builds is raised from it. Errors outside
    *retryable* propagate on the first attempt.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delays = backoff_delays(max_attempts, base_delay, max_delay, backoff_factor, jitter)
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    delay = next(delays, None)
                    if delay is None:
                        logger.error("%s gave up after %d attempts: %s", fn.__qualname__, attempt, exc)
                        if giveup is not None:
                            raise giveup(exc) from exc
                        raise
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__, attempt, max_attempts, exc, delay,
                    )
                    sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
