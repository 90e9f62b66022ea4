"""Configuration for the prediction client.

Two layers live here. ``ClientConfig`` is the immutable value the client is
built from: every field is explicit and nothing is read from the process
environment. ``ClientSettings`` builds on ``pydantic_settings.BaseSettings``
so the same values (plus logging knobs for the CLI) can be supplied through
environment variables or a ``.env`` file.

Usage
- Library code: ``PredictionClient(ClientConfig(api_token="..."))``
- Entry points: ``settings = ClientSettings()`` then
  ``PredictionClient(settings.to_client_config())``
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://replicate.com/api/models"
DEFAULT_POLL_INTERVAL_MS = 250
DEFAULT_MAX_RETRIES = 3
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


class ClientConfig(BaseModel):
    """Construct-time configuration for ``PredictionClient``.

    Parameters
    - base_url: Root of the models API; create/status URLs are derived from it
    - poll_interval_ms: Fixed delay between status polls and between retries
    - max_retries: Attempts per HTTP call, including the first one
    - api_token: Optional bearer credential
    - request_timeout_seconds: Per-request timeout of the default transport
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    poll_interval_ms: int = Field(default=DEFAULT_POLL_INTERVAL_MS, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    api_token: Optional[str] = None
    request_timeout_seconds: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)

    @property
    def normalized_base_url(self) -> str:
        return self.base_url.rstrip("/")


class ClientSettings(BaseSettings):
    """Environment-driven settings for scripts and services embedding the client.

    Every field maps to ``PREDICTION_<FIELD>`` (case-insensitive), e.g.
    ``PREDICTION_API_TOKEN`` or ``PREDICTION_POLL_INTERVAL_MS``.
    """

    model_config = SettingsConfigDict(
        env_prefix="PREDICTION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    base_url: str = DEFAULT_BASE_URL
    api_token: Optional[str] = None

    # Polling / retries
    poll_interval_ms: int = Field(default=DEFAULT_POLL_INTERVAL_MS, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    request_timeout_seconds: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    def to_client_config(self) -> ClientConfig:
        """Freeze the client-relevant subset into a ``ClientConfig``."""
        return ClientConfig(
            base_url=self.base_url,
            poll_interval_ms=self.poll_interval_ms,
            max_retries=self.max_retries,
            api_token=self.api_token,
            request_timeout_seconds=self.request_timeout_seconds,
        )
