"""Async client for the remote prediction API.

``PredictionClient`` turns an asynchronous remote job into a single awaited
result: it creates a prediction, polls its status at a fixed interval until
the status is terminal, and returns the output. Every HTTP call goes through
``RetryingTransport``.

The client holds only its construct-time configuration. Concurrent ``run``
calls on one instance share nothing but that configuration and the
transport's connection pool.

Polling has no overall deadline: a prediction that never reaches a terminal
status is polled forever. Bound it from the caller, e.g. with
``asyncio.wait_for(client.run(...), timeout)``; the remote job keeps running
either way.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Type

import httpx
import structlog

from .common.config import ClientConfig
from .common.metrics import MetricsCollector
from .errors import (
    CancelFailed,
    CreateFailed,
    FetchFailed,
    PredictionFailed,
    RequestFailed,
    RetriesExhausted,
)
from .models import ModelIdentifier, Prediction, PredictionStatus
from .transport import HttpxTransport, RetryingTransport, Transport

logger = structlog.get_logger("prediction_client")


class PredictionClient:
    """Create, poll, cancel and await predictions.

    A client built without a ``transport`` opens its own ``httpx.AsyncClient``;
    use it as ``async with PredictionClient(...) as client`` or call
    ``aclose()`` when done so the connection pool is released.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        """Build a client.

        Parameters
        - config: Immutable settings; defaults to ``ClientConfig()``
        - transport: Coroutine function ``httpx.Request -> httpx.Response``;
          defaults to an ``HttpxTransport`` owned (and closed) by the client
        - sleep: Coroutine function taking seconds; defaults to ``asyncio.sleep``
        - metrics: Optional Prometheus collector
        """
        self.config = config or ClientConfig()
        self._owns_transport = transport is None
        self._transport = transport or HttpxTransport(timeout=self.config.request_timeout_seconds)
        self._sleep = sleep or asyncio.sleep
        self.metrics = metrics
        self._http = RetryingTransport(
            self._transport,
            max_retries=self.config.max_retries,
            interval_ms=self.config.poll_interval_ms,
            delay=self.delay,
            metrics=metrics,
        )

    async def __aenter__(self) -> "PredictionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the default transport; injected transports are left alone."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    async def delay(self, ms: float) -> None:
        """Wait ``ms`` milliseconds."""
        await self._sleep(ms / 1000)

    async def create(self, model_identifier: str, inputs: Dict[str, Any]) -> Prediction:
        """Start a prediction of ``<path>:<version>`` with ``inputs``."""
        model = ModelIdentifier.parse(model_identifier)
        url = f"{self.config.normalized_base_url}/{model.path}/versions/{model.version}/predictions"

        response = await self._send("POST", url, "create", CreateFailed, json={"inputs": inputs})
        prediction = Prediction.from_api(self._json(response, CreateFailed), model=model)

        logger.info(
            "Prediction created",
            model=str(model),
            prediction_id=prediction.id,
            status=prediction.status
        )
        return prediction

    async def get(self, prediction: Prediction) -> Prediction:
        """Fetch a fresh snapshot of ``prediction``."""
        url = f"{self.config.normalized_base_url}{prediction.status_path}"
        response = await self._send("GET", url, "get", FetchFailed)
        return self._parse(response, prediction, FetchFailed)

    async def cancel_prediction(self, prediction: Prediction) -> Prediction:
        """Ask the service to cancel ``prediction``; returns its acknowledged state."""
        url = f"{self.config.normalized_base_url}{prediction.status_path}/cancel"
        response = await self._send("POST", url, "cancel", CancelFailed)
        canceled = self._parse(response, prediction, CancelFailed)

        logger.info(
            "Prediction cancel requested",
            model=prediction.model_identifier,
            prediction_id=prediction.id,
            status=canceled.status
        )
        return canceled

    async def check_status(self, prediction: Prediction) -> str:
        """Current remote status of ``prediction``."""
        return (await self.get(prediction)).status

    async def stream(self, model_identifier: str, inputs: Dict[str, Any]) -> AsyncIterator[Prediction]:
        """Yield every snapshot of a new prediction, ending with the terminal one.

        The first item is the freshly created prediction. Nothing is polled
        unless the iterator is consumed.
        """
        prediction = await self.create(model_identifier, inputs)
        yield prediction
        async for snapshot in self._poll(prediction):
            yield snapshot

    async def wait(self, prediction: Prediction) -> Prediction:
        """Poll an existing prediction until it is terminal and return that snapshot."""
        async for prediction in self._poll(prediction):
            pass
        return prediction

    async def run(self, model_identifier: str, inputs: Dict[str, Any]) -> Any:
        """Create a prediction, wait for it, and return its output.

        Raises ``PredictionFailed`` when the prediction fails. A canceled
        prediction returns whatever output it carries, possibly ``None``.
        """
        prediction = None
        async for prediction in self.stream(model_identifier, inputs):
            pass
        return self._result(prediction)

    async def list_models(self) -> Any:
        """List models exposed at the base URL."""
        response = await self._send("GET", self.config.normalized_base_url, "list_models", FetchFailed)
        return self._json(response, FetchFailed)

    async def get_model(self, model_path: str) -> Any:
        """Fetch metadata for the model at ``model_path``."""
        url = f"{self.config.normalized_base_url}/{model_path.strip('/')}"
        response = await self._send("GET", url, "get_model", FetchFailed)
        return self._json(response, FetchFailed)

    async def _poll(self, prediction: Prediction) -> AsyncIterator[Prediction]:
        model = prediction.model_identifier
        while not prediction.is_terminal:
            await self.delay(self.config.poll_interval_ms)
            if self.metrics is not None:
                self.metrics.record_poll(model)
            prediction = await self.get(prediction)
            logger.debug(
                "Prediction polled",
                model=model,
                prediction_id=prediction.id,
                status=prediction.status
            )
            yield prediction

        if self.metrics is not None:
            self.metrics.record_prediction(model, prediction.status)

    def _result(self, prediction: Prediction) -> Any:
        if prediction.status == PredictionStatus.FAILED.value:
            logger.error(
                "Prediction failed",
                model=prediction.model_identifier,
                prediction_id=prediction.id,
                error=prediction.error
            )
            raise PredictionFailed(prediction.error, prediction)

        if prediction.status == PredictionStatus.CANCELED.value and prediction.output is None:
            logger.warning(
                "Prediction was canceled without output",
                model=prediction.model_identifier,
                prediction_id=prediction.id
            )
        return prediction.output

    def _parse(
        self,
        response: httpx.Response,
        previous: Prediction,
        failure: Type[RequestFailed]
    ) -> Prediction:
        model = ModelIdentifier(path=previous.model_path, version=previous.model_version)
        refreshed = Prediction.from_api(self._json(response, failure), model=model)
        if refreshed.id is None or refreshed.model_url is None:
            # Some endpoints omit identifying fields; keep the ones already known.
            refreshed = Prediction(
                id=refreshed.id or previous.id,
                model_path=refreshed.model_path,
                model_version=refreshed.model_version,
                status=refreshed.status,
                input=refreshed.input or previous.input,
                output=refreshed.output,
                error=refreshed.error,
                model_url=refreshed.model_url or previous.model_url,
                raw=refreshed.raw,
            )
        return refreshed

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        operation: str,
        failure: Type[RequestFailed],
        json: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        # httpx sets Content-Type: application/json when ``json`` is given.
        request = httpx.Request(method, url, headers=self._headers(), json=json)
        try:
            return await self._http.send(request, operation=operation)
        except RetriesExhausted as exc:
            if exc.response is None:
                raise
            raise failure(exc.response.status_code, exc.response.text) from exc

    def _json(self, response: httpx.Response, failure: Type[RequestFailed]) -> Any:
        """Decode a success body; an empty or non-JSON body raises ``failure``."""
        try:
            return response.json()
        except ValueError as exc:
            logger.error(
                "Response body is not valid JSON",
                operation=failure.operation,
                status_code=response.status_code,
                body=response.text[:200]
            )
            raise failure(response.status_code, response.text) from exc
