import asyncio

import pytest

from dexpipe.domain.errors import DecodingFailedError, NotFoundError, RateLimitedError, ServerError
from dexpipe.domain.events.api_events import RetryScheduled
from dexpipe.infrastructure.resilience.api_retry import ApiRetryService


@pytest.fixture
def no_sleep(mocker):
    return mocker.patch("dexpipe.infrastructure.resilience.api_retry.asyncio.sleep", new=mocker.AsyncMock())


def make_flaky(failures, result="ok"):
    """Returns an async callable that raises each of `failures` in turn, then returns `result`."""
    pending = list(failures)
    calls = {"count": 0}

    async def call():
        calls["count"] += 1
        if pending:
            raise pending.pop(0)
        return result

    return call, calls


def test_retries_transient_errors_with_exponential_backoff(no_sleep):
    events = []
    service = ApiRetryService(max_retries=3, initial_backoff_s=0.5, backoff_factor=2.0, event_listener=events.append)
    call, calls = make_flaky([RateLimitedError(), ServerError(503)])

    assert asyncio.run(service.execute_with_retry(call, endpoint_name="pokemon/1")) == "ok"
    assert calls["count"] == 3
    assert [c.args[0] for c in no_sleep.await_args_list] == [0.5, 1.0]
    assert all(isinstance(e, RetryScheduled) for e in events)
    assert [e.attempt_number for e in events] == [1, 2]


def test_reraises_last_error_when_retries_exhausted(no_sleep):
    service = ApiRetryService(max_retries=2)
    last = ServerError(502)
    call, calls = make_flaky([ServerError(500), ServerError(500), last])

    with pytest.raises(ServerError) as exc_info:
        asyncio.run(service.execute_with_retry(call))
    assert exc_info.value is last
    assert calls["count"] == 3


@pytest.mark.parametrize("error", [NotFoundError(), DecodingFailedError(ValueError("bad"))])
def test_never_retries_permanent_errors(no_sleep, error):
    service = ApiRetryService(max_retries=3)
    call, calls = make_flaky([error])

    with pytest.raises(type(error)):
        asyncio.run(service.execute_with_retry(call))
    assert calls["count"] == 1
    no_sleep.assert_not_awaited()


def test_retries_disabled_by_default(no_sleep):
    service = ApiRetryService()
    call, calls = make_flaky([RateLimitedError()])

    with pytest.raises(RateLimitedError):
        asyncio.run(service.execute_with_retry(call))
    assert calls["count"] == 1
