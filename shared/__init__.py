"""
Shared utilities for the http.cat image cache.

This package aggregates common building blocks consumed by the service,
its scripts and mocks:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and plain-text responses
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
