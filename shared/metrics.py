"""
Prometheus metrics for the bank token service.
"""

import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest

# Signing is sub-millisecond for EC/Ed25519 and a few ms for RSA-2048
SIGNING_BUCKETS = (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25)


class MetricsCollector:
    """Metrics for one service process, held in their own registry."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None, version: str = "1.0.0"):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()

        self.service_info = Info("service", "Service information", registry=self.registry)
        self.service_info.info({"service": service_name, "version": version})

        self.http_requests = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )
        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )
        self.health_checks = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )
        self.errors = Counter(
            "errors_total",
            "Total errors by code",
            ["error_type", "service"],
            registry=self.registry
        )

        self.tokens_issued = Counter(
            "tokens_issued_total",
            "Total tokens issued",
            ["algorithm"],
            registry=self.registry
        )
        self.token_verifications = Counter(
            "token_verifications_total",
            "Total token verifications by outcome",
            ["result"],
            registry=self.registry
        )
        self.token_signing_duration = Histogram(
            "token_signing_duration_seconds",
            "Token signing duration in seconds",
            ["algorithm"],
            buckets=SIGNING_BUCKETS,
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self.http_requests.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        self.http_request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_health_check(self, status: str):
        self.health_checks.labels(status=status).inc()

    def record_error(self, error_type: str):
        self.errors.labels(error_type=error_type, service=self.service_name).inc()

    def record_token_issued(self, algorithm: str):
        self.tokens_issued.labels(algorithm=algorithm).inc()

    def record_token_verification(self, result: str):
        """Count a verification; ``result`` is "valid" or a failure kind."""
        self.token_verifications.labels(result=result).inc()

    @contextmanager
    def time_signing(self, algorithm: str) -> Iterator[None]:
        """Observe signing duration, whether or not signing succeeds."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            self.token_signing_duration.labels(algorithm=algorithm).observe(time.perf_counter() - start_time)

    def render(self) -> bytes:
        """Registry contents in Prometheus text exposition format."""
        return generate_latest(self.registry)


def get_metrics_collector(
    service_name: str,
    registry: Optional[CollectorRegistry] = None,
    version: str = "1.0.0",
) -> MetricsCollector:
    return MetricsCollector(service_name, registry, version)
