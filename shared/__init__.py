"""
Shared utilities for the bank token service.

This package aggregates common building blocks consumed by the service:

- config: Base configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffold (health, metrics, handlers)

Do not import from service_* packages into shared/.
"""
