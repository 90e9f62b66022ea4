"""Value types exchanged with the prediction API.

``Prediction`` mirrors one remote inference job. Instances are frozen: a
refreshed view of the job is always a new ``Prediction`` parsed from the
latest API response, never an in-place update.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import MalformedIdentifier, PredictionClientError


class PredictionStatus(Enum):
    """Statuses reported by the remote service."""
    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


TERMINAL_STATUSES = frozenset({
    PredictionStatus.SUCCEEDED.value,
    PredictionStatus.FAILED.value,
    PredictionStatus.CANCELED.value,
})


def is_terminal(status: Optional[str]) -> bool:
    """Whether polling stops at ``status``; unknown statuses count as pending."""
    return status in TERMINAL_STATUSES


@dataclass(frozen=True)
class ModelIdentifier:
    """A ``<path>:<version>`` reference to one version of a model."""
    path: str
    version: str

    @classmethod
    def parse(cls, identifier: str) -> "ModelIdentifier":
        """Split on the first ``:``; both halves must be non-empty."""
        if not isinstance(identifier, str) or ":" not in identifier:
            raise MalformedIdentifier(str(identifier))
        path, version = identifier.split(":", 1)
        path = path.strip("/")
        if not path or not version:
            raise MalformedIdentifier(identifier)
        return cls(path=path, version=version)

    def __str__(self) -> str:
        return f"{self.path}:{self.version}"


@dataclass(frozen=True)
class Prediction:
    """Snapshot of a remote prediction."""
    id: Optional[str]
    model_path: str
    model_version: str
    status: str
    input: Dict[str, Any] = field(default_factory=dict)
    output: Any = None
    error: Any = None
    model_url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(
        cls,
        payload: Dict[str, Any],
        model: Optional[ModelIdentifier] = None
    ) -> "Prediction":
        """Build a snapshot from an API response body.

        Bodies of the form ``{"prediction": {...}}`` are unwrapped. ``model``
        fills in path/version when the payload does not carry them.
        """
        if not isinstance(payload, dict):
            raise PredictionClientError(
                f"Unexpected prediction payload of type {type(payload).__name__}"
            )
        data = payload.get("prediction")
        if not isinstance(data, dict):
            data = payload

        version = data.get("version") if isinstance(data.get("version"), dict) else {}
        model_info = version.get("model") if isinstance(version.get("model"), dict) else {}
        model_url = model_info.get("absolute_url")

        if model_url:
            model_path = model_url.strip("/")
        elif model is not None:
            model_path = model.path
        else:
            model_path = ""

        model_version = (
            data.get("version_id")
            or version.get("id")
            or (model.version if model is not None else "")
        )

        inputs = data.get("inputs", data.get("input"))

        return cls(
            id=data.get("uuid") or data.get("id"),
            model_path=model_path,
            model_version=model_version,
            status=data.get("status") or PredictionStatus.STARTING.value,
            input=inputs if isinstance(inputs, dict) else {},
            output=data.get("output"),
            error=data.get("error"),
            model_url=model_url,
            raw=data,
        )

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def model_identifier(self) -> str:
        return f"{self.model_path}:{self.model_version}"

    @property
    def status_path(self) -> str:
        """Path of the status endpoint, relative to the API base URL."""
        if not self.id or not self.model_version or not (self.model_url or self.model_path):
            raise PredictionClientError(
                "Prediction lacks the id, model path or version needed to locate it"
            )
        model_url = self.model_url or f"/{self.model_path}"
        if not model_url.startswith("/"):
            model_url = f"/{model_url}"
        return f"{model_url.rstrip('/')}/versions/{self.model_version}/predictions/{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary, without the raw payload."""
        data = asdict(self)
        data.pop("raw")
        return data
