"""Shared fixtures: a scripted transport stub and a recording sleep."""

from typing import Any, Callable, List, Optional, Union

import httpx
import pytest
import structlog

from prediction_client.client import PredictionClient
from prediction_client.common.config import ClientConfig

MODEL_PATH = "owner/model"
MODEL_VERSION = "v1"
MODEL_ID = f"{MODEL_PATH}:{MODEL_VERSION}"
BASE_URL = "https://api.test/api/models"


def prediction_payload(
    status: str,
    output: Any = None,
    error: Any = None,
    uuid: str = "pred-1",
    wrap: bool = False
) -> dict:
    """Build an API body describing a prediction."""
    data = {
        "uuid": uuid,
        "status": status,
        "output": output,
        "error": error,
        "version_id": MODEL_VERSION,
        "inputs": {"prompt": "hello"},
        "version": {"id": MODEL_VERSION, "model": {"absolute_url": f"/{MODEL_PATH}"}},
    }
    return {"prediction": data} if wrap else data


Step = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class StubTransport:
    """Replays scripted responses and records every request it receives.

    Each step is a response, an exception to raise, or a callable producing a
    response. The last step repeats once the script runs out.
    """

    def __init__(self, steps: List[Step]):
        self.steps = list(steps)
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.steps) - 1)
        step = self.steps[index]
        if isinstance(step, Exception):
            raise step
        if callable(step) and not isinstance(step, httpx.Response):
            return step(request)
        return step

    @property
    def calls(self) -> int:
        return len(self.requests)


class RecordingSleep:
    """Stands in for ``asyncio.sleep`` and remembers each requested delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(sleep):
    """Factory building a client around a ``StubTransport``."""
    def factory(steps: List[Step], config: Optional[ClientConfig] = None, **kwargs):
        transport = StubTransport(steps)
        client = PredictionClient(
            config or ClientConfig(base_url=BASE_URL),
            transport=transport,
            sleep=sleep,
            **kwargs
        )
        return client, transport
    return factory


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo ``configure_logging`` so loggers stay uncached between tests."""
    yield
    structlog.reset_defaults()
