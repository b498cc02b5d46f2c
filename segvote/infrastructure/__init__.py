"""
Infrastructure layer - External adapters for segvote.

This layer contains:
- SQL adapters (vote store, privilege registry)
- Redis cache invalidation
- YouTube metadata lookup
- In-memory stubs for every port
- Observability (structlog) and monitoring (Prometheus)
"""
