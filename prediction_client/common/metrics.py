"""Prometheus metrics for the prediction client.

A thin wrapper around ``prometheus_client`` so the client records HTTP
attempts, retries and prediction outcomes with consistent label sets.
Each collector owns its own ``CollectorRegistry``; attach one to a client
and expose ``get_metrics()`` from whatever process scrapes it.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Metrics for prediction API traffic.

    Parameters
    - service_name: Logical name of the process embedding the client
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'prediction_http_requests_total',
            'HTTP requests sent to the prediction API',
            ['method', 'operation', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'prediction_http_request_duration_seconds',
            'Duration of a single HTTP attempt',
            ['method', 'operation'],
            registry=self.registry
        )

        self.retries = Counter(
            'prediction_http_retries_total',
            'HTTP attempts that were retried',
            ['operation'],
            registry=self.registry
        )

        self.predictions = Counter(
            'prediction_terminal_total',
            'Predictions observed in a terminal status',
            ['model', 'status'],
            registry=self.registry
        )

        self.polls = Counter(
            'prediction_polls_total',
            'Status polls issued while waiting for a prediction',
            ['model'],
            registry=self.registry
        )

    def record_http_request(
        self,
        method: str,
        operation: str,
        status: str,
        duration: float
    ) -> None:
        """Record one HTTP attempt.

        ``status`` is the response code, or ``error`` when the transport
        raised. ``duration`` is in seconds to match Prometheus histogram units.
        """
        self.request_count.labels(method=method, operation=operation, status=status).inc()
        self.request_duration.labels(method=method, operation=operation).observe(duration)

    def record_retry(self, operation: str) -> None:
        self.retries.labels(operation=operation).inc()

    def record_poll(self, model: str) -> None:
        self.polls.labels(model=model).inc()

    def record_prediction(self, model: str, status: str) -> None:
        """Record a prediction reaching a terminal status."""
        self.predictions.labels(model=model, status=status).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')
