"""Ambient utilities shared by the client and its scripts.

Includes:
- ``config``: immutable client configuration and env-driven settings.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus counters for HTTP attempts and prediction outcomes.

Import pattern:
- from prediction_client.common.config import ClientConfig
- from prediction_client.common.logging import configure_logging
"""
