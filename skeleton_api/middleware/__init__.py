"""
Request pipeline stages.

create_app() installs them so that, from the outside in, a request passes
CORS -> logging -> recovery -> rate limit -> tracing -> metrics before
reaching the router.
"""

from skeleton_api.middleware.logging import RequestLoggingMiddleware
from skeleton_api.middleware.metrics import MetricsMiddleware
from skeleton_api.middleware.rate_limit import RateLimitMiddleware
from skeleton_api.middleware.recovery import RecoveryMiddleware
from skeleton_api.middleware.tracing import TracingMiddleware

__all__ = [
    "MetricsMiddleware",
    "RateLimitMiddleware",
    "RecoveryMiddleware",
    "RequestLoggingMiddleware",
    "TracingMiddleware",
]
