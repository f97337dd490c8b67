"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable across different parts of the application
- Easier to test in isolation

Current services:
- alerts.py: Fire-and-forget webhook alerts for unhandled faults
- events.py: Redis-backed event broker for example lifecycle events
- examples.py: Example persistence with ownership and soft delete
- metrics.py: Prometheus collectors for the request pipeline
- migration.py: Table, index and seed row bootstrap
- rate_limiter.py: Fixed-window rate limiting per client key
- security.py: Bearer token issuing, verification and refresh
- tracing.py: OpenTelemetry tracer provider construction
"""
