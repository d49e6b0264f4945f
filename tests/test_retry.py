import pytest

from vitabalance.utils.retry import backoff_delay, retry_async, retry_sync


def test_backoff_delay_doubles_and_caps():
    assert [backoff_delay(i, 0.5) for i in range(4)] == [0.5, 1.0, 2.0, 4.0]
    assert backoff_delay(10, 1.0) == 30.0


def test_retry_sync_sleeps_between_attempts():
    sleeps = []
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "done"

    result = retry_sync(
        flaky,
        attempts=3,
        base_delay=1.0,
        should_retry=lambda e: isinstance(e, ConnectionError),
        sleep=sleeps.append,
    )

    assert result == "done"
    assert sleeps == [1.0, 2.0]


def test_retry_sync_stops_on_permanent_error():
    calls = []

    def broken():
        calls.append(1)
        raise KeyError("missing")

    with pytest.raises(KeyError):
        retry_sync(broken, attempts=5, base_delay=0, should_retry=lambda e: False, sleep=lambda _: None)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retry_async_exhausts_budget():
    calls = []
    sleeps = []

    async def down():
        calls.append(1)
        raise TimeoutError("upstream")

    async def fake_sleep(delay):
        sleeps.append(delay)

    with pytest.raises(TimeoutError):
        await retry_async(
            down,
            attempts=3,
            base_delay=0.25,
            should_retry=lambda e: True,
            sleep=fake_sleep,
        )
    assert len(calls) == 3
    assert sleeps == [0.25, 0.5]
