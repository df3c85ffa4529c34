"""API middleware components."""

from heartwood.api.middleware.correlation import CorrelationMiddleware
from heartwood.api.middleware.security import RateLimitMiddleware, SecurityHeadersMiddleware

__all__ = ["CorrelationMiddleware", "RateLimitMiddleware", "SecurityHeadersMiddleware"]
