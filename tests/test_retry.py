from __future__ import annotations

import pytest

from jobmatcher.errors import UpstreamError
from jobmatcher.retry import backoff_delays, retry


def test_retries_then_succeeds() -> None:
    delays = []
    attempts = []

    @retry(max_attempts=3, base_delay=1.0, jitter=False, retryable=(ConnectionError,), sleep=delays.append)
    def flaky() -> str:
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("down")
        return "ok"

    assert flaky() == "ok"
    assert delays == [1.0, 2.0]


def test_giveup_wraps_last_error() -> None:
    @retry(
        max_attempts=2,
        retryable=(ConnectionError,),
        giveup=lambda exc: UpstreamError("index", str(exc)),
        sleep=lambda _: None,
    )
    def broken() -> None:
        raise ConnectionError("refused")

    with pytest.raises(UpstreamError, match="index: refused") as exc:
        broken()
    assert isinstance(exc.value.__cause__, ConnectionError)


def test_other_errors_propagate_immediately() -> None:
    attempts = []

    @retry(max_attempts=5, retryable=(ConnectionError,), sleep=lambda _: None)
    def bad() -> None:
        attempts.append(1)
        raise KeyError("nope")

    with pytest.raises(KeyError):
        bad()
    assert attempts == [1]


def test_backoff_schedule_is_capped() -> None:
    assert list(backoff_delays(5, base_delay=1.0, max_delay=5.0, jitter=False)) == [1.0, 2.0, 4.0, 5.0]
    assert list(backoff_delays(1)) == []
    for delay in backoff_delays(4, base_delay=2.0):
        assert 1.0 <= delay < 12.0
