"""
Shared utilities for the Scraper Access Service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and responses
- responses: Standard API response envelope
- retry: Bounded retry loop with outcome classification
- base_service: FastAPI service skeleton

Do not import from service_* packages into shared/.
"""
