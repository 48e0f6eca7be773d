"""
Shared utilities for the Secrets Manager caching proxy.

This package aggregates the building blocks the service is assembled from:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Error hierarchy and the Secrets Manager error shape
- base_service: FastAPI app, middleware, health and metrics routes

Cross-service logic lives here. Do not import from service packages into
shared/.
"""
