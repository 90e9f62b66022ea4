"""Tests for the retrying transport."""

import httpx
import pytest

from prediction_client.common.metrics import MetricsCollector
from prediction_client.errors import RetriesExhausted
from prediction_client.transport import HttpxTransport, RetryingTransport
from tests.conftest import StubTransport, json_response


def make_transport(steps, sleep, max_retries=3, interval_ms=250, metrics=None):
    stub = StubTransport(steps)

    async def delay(ms):
        await sleep(ms / 1000)

    retrying = RetryingTransport(
        stub,
        max_retries=max_retries,
        interval_ms=interval_ms,
        delay=delay,
        metrics=metrics,
    )
    return retrying, stub


def request():
    return httpx.Request("GET", "https://api.test/api/models/owner/model")


@pytest.mark.asyncio
async def test_success_on_first_attempt(sleep):
    retrying, stub = make_transport([json_response({"ok": True})], sleep)

    response = await retrying.send(request())

    assert response.json() == {"ok": True}
    assert stub.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("attempts", [1, 2, 3])
async def test_recovers_within_retry_budget(sleep, attempts):
    """N-1 failures followed by a success issue exactly N calls."""
    steps = [json_response({"detail": "busy"}, 503)] * (attempts - 1) + [json_response({"ok": True})]
    retrying, stub = make_transport(steps, sleep, max_retries=3)

    response = await retrying.send(request())

    assert response.status_code == 200
    assert stub.calls == attempts
    assert sleep.delays == [0.25] * (attempts - 1)


@pytest.mark.asyncio
async def test_exhausted_after_max_retries(sleep):
    retrying, stub = make_transport([json_response({"detail": "nope"}, 500)], sleep, max_retries=4)

    with pytest.raises(RetriesExhausted) as exc_info:
        await retrying.send(request())

    assert stub.calls == 4
    assert exc_info.value.attempts == 4
    assert exc_info.value.response.status_code == 500
    # Constant delay between attempts, none after the last one.
    assert sleep.delays == [0.25, 0.25, 0.25]


@pytest.mark.asyncio
async def test_transport_errors_are_retried(sleep):
    steps = [httpx.ConnectError("connection refused"), json_response({"ok": True})]
    retrying, stub = make_transport(steps, sleep)

    response = await retrying.send(request())

    assert response.status_code == 200
    assert stub.calls == 2


@pytest.mark.asyncio
async def test_final_transport_error_is_chained(sleep):
    retrying, stub = make_transport([httpx.ReadTimeout("timed out")], sleep, max_retries=2)

    with pytest.raises(RetriesExhausted) as exc_info:
        await retrying.send(request())

    assert stub.calls == 2
    assert exc_info.value.response is None
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_unexpected_errors_propagate_immediately(sleep):
    retrying, stub = make_transport([RuntimeError("bug")], sleep)

    with pytest.raises(RuntimeError):
        await retrying.send(request())

    assert stub.calls == 1


@pytest.mark.asyncio
async def test_metrics_record_attempts_and_retries(sleep):
    metrics = MetricsCollector("test")
    steps = [json_response({}, 502), json_response({})]
    retrying, _ = make_transport(steps, sleep, metrics=metrics)

    await retrying.send(request(), operation="get")

    output = metrics.get_metrics()
    assert 'prediction_http_requests_total{method="GET",operation="get",status="502"} 1.0' in output
    assert 'prediction_http_requests_total{method="GET",operation="get",status="200"} 1.0' in output
    assert 'prediction_http_retries_total{operation="get"} 1.0' in output


def test_requires_at_least_one_attempt(sleep):
    with pytest.raises(ValueError):
        make_transport([json_response({})], sleep, max_retries=0)


@pytest.mark.asyncio
async def test_httpx_transport_close_is_idempotent():
    transport = HttpxTransport(timeout=1.0)
    await transport.aclose()
    assert transport.client is None
