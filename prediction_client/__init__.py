"""Async client for a remote machine-learning prediction API.

Subpackages and modules:
- ``prediction_client.client``: ``PredictionClient`` (create, get, run, stream, cancel).
- ``prediction_client.transport``: default httpx transport and the flat retry policy.
- ``prediction_client.models``: ``Prediction`` snapshots and model identifiers.
- ``prediction_client.errors``: exception hierarchy.
- ``prediction_client.common``: configuration, logging, and metrics.

Usage:
    async with PredictionClient(ClientConfig(api_token=token)) as client:
        output = await client.run("owner/model:version", {"prompt": "..."})
"""

from .client import PredictionClient
from .common.config import ClientConfig, ClientSettings
from .errors import (
    CancelFailed,
    CreateFailed,
    FetchFailed,
    MalformedIdentifier,
    PredictionClientError,
    PredictionFailed,
    RequestFailed,
    RetriesExhausted,
)
from .models import ModelIdentifier, Prediction, PredictionStatus, TERMINAL_STATUSES

__version__ = "0.1.0"

__all__ = [
    "PredictionClient",
    "ClientConfig",
    "ClientSettings",
    "Prediction",
    "PredictionStatus",
    "ModelIdentifier",
    "TERMINAL_STATUSES",
    "PredictionClientError",
    "MalformedIdentifier",
    "RequestFailed",
    "CreateFailed",
    "FetchFailed",
    "CancelFailed",
    "RetriesExhausted",
    "PredictionFailed",
]
