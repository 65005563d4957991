"""
Utility modules for table discovery

Provides:
- logging: structured logging setup
- metrics: Prometheus metrics publishing
- tracing: OpenTelemetry spans
- retry: backoff for connection attempts
"""

__version__ = "1.0.0"
__all__ = ["logging", "metrics", "tracing", "retry"]
