"""Exceptions raised by the prediction client."""

from typing import Any, Optional

import httpx


class PredictionClientError(Exception):
    """Base class for every error raised by the client."""
    pass


class MalformedIdentifier(PredictionClientError, ValueError):
    """Model identifier is not of the form ``<path>:<version>``."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"Malformed model identifier {identifier!r}: expected '<path>:<version>'"
        )


class RequestFailed(PredictionClientError):
    """The remote API kept answering with a non-success status."""

    operation = "request"

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{self.operation} failed with HTTP {status_code}: {body}")


class CreateFailed(RequestFailed):
    operation = "create"


class FetchFailed(RequestFailed):
    operation = "fetch"


class CancelFailed(RequestFailed):
    operation = "cancel"


class RetriesExhausted(PredictionClientError):
    """Every attempt of a single HTTP call failed.

    ``response`` is the last non-success response, or ``None`` when the final
    attempt raised a transport error (chained as ``__cause__``).
    """

    def __init__(self, attempts: int, response: Optional[httpx.Response] = None):
        self.attempts = attempts
        self.response = response
        if response is not None:
            detail = f"last status {response.status_code}"
        else:
            detail = "no response received"
        super().__init__(f"Request failed after {attempts} attempts ({detail})")


class PredictionFailed(PredictionClientError):
    """The remote prediction finished with status ``failed``."""

    def __init__(self, error: Any, prediction: Optional[Any] = None):
        self.error = error
        self.prediction = prediction
        super().__init__(str(error) if error is not None else "Prediction failed")
