"""
Shared utilities for subgraph services.

This package aggregates common building blocks consumed by every service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application shell (health, metrics, error handlers)
- test_helpers: Fakes and factories for tests

Do not import from service packages into shared/.
"""
