"""HTTP transport and the flat retry policy wrapped around it.

A transport is any coroutine function taking an ``httpx.Request`` and
returning an ``httpx.Response``. ``HttpxTransport`` is the default, backed by
a lazily created ``httpx.AsyncClient``; tests pass plain async functions.

``RetryingTransport`` sends one request up to ``max_retries`` times, waiting a
constant ``interval_ms`` between attempts. It never grows the delay and adds
no jitter.
"""

import time
from typing import Awaitable, Callable, Optional

import httpx
import structlog

from .common.metrics import MetricsCollector
from .errors import RetriesExhausted

logger = structlog.get_logger("transport")

Transport = Callable[[httpx.Request], Awaitable[httpx.Response]]
Delay = Callable[[float], Awaitable[None]]

RETRYABLE_EXCEPTIONS = (httpx.HTTPError, OSError)


class HttpxTransport:
    """Default transport sending requests through a shared ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self.client: Optional[httpx.AsyncClient] = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout)
        return await self.client.send(request)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        if self.client is not None:
            await self.client.aclose()
            self.client = None


class RetryingTransport:
    """Bounded, constant-delay retries around a single HTTP call."""

    def __init__(
        self,
        transport: Transport,
        max_retries: int,
        interval_ms: float,
        delay: Delay,
        metrics: Optional[MetricsCollector] = None
    ):
        """Wrap ``transport``.

        Parameters
        - transport: Coroutine function performing one HTTP exchange
        - max_retries: Total attempts, including the first one (>= 1)
        - interval_ms: Wait between attempts, in milliseconds
        - delay: Coroutine function awaited with ``interval_ms`` between attempts
        - metrics: Optional collector recording attempts and retries
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.transport = transport
        self.max_retries = max_retries
        self.interval_ms = interval_ms
        self.delay = delay
        self.metrics = metrics

    async def send(self, request: httpx.Request, operation: str = "request") -> httpx.Response:
        """Send ``request`` until a 2xx response arrives or attempts run out.

        Raises ``RetriesExhausted`` carrying the last response when every
        attempt answered with a non-success status, or chained to the last
        transport error when the final attempt raised.
        """
        last_response: Optional[httpx.Response] = None

        for attempt in range(1, self.max_retries + 1):
            start_time = time.perf_counter()
            try:
                response = await self.transport(request)
            except RETRYABLE_EXCEPTIONS as exc:
                self._record(request, operation, "error", start_time)
                last_response = None
                if attempt == self.max_retries:
                    logger.error(
                        "Request failed after all retries",
                        operation=operation,
                        method=request.method,
                        url=str(request.url),
                        attempts=attempt,
                        error=str(exc)
                    )
                    raise RetriesExhausted(attempt) from exc
                logger.warning(
                    "Request raised, retrying",
                    operation=operation,
                    method=request.method,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_ms=self.interval_ms,
                    error=str(exc)
                )
            else:
                self._record(request, operation, str(response.status_code), start_time)
                if response.is_success:
                    if attempt > 1:
                        logger.info(
                            "Request succeeded after retry",
                            operation=operation,
                            attempt=attempt,
                            max_retries=self.max_retries
                        )
                    return response

                last_response = response
                if attempt == self.max_retries:
                    logger.error(
                        "Request failed after all retries",
                        operation=operation,
                        method=request.method,
                        url=str(request.url),
                        attempts=attempt,
                        status_code=response.status_code
                    )
                    raise RetriesExhausted(attempt, response=response)
                logger.warning(
                    "Request returned non-success status, retrying",
                    operation=operation,
                    method=request.method,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_ms=self.interval_ms,
                    status_code=response.status_code
                )

            if self.metrics is not None:
                self.metrics.record_retry(operation)
            await self.delay(self.interval_ms)

        # Unreachable while max_retries >= 1.
        raise RetriesExhausted(self.max_retries, response=last_response)

    def _record(self, request: httpx.Request, operation: str, status: str, start_time: float) -> None:
        if self.metrics is not None:
            self.metrics.record_http_request(
                request.method,
                operation,
                status,
                time.perf_counter() - start_time
            )
