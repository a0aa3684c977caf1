"""HTTP API for transit route search."""

from .app import create_app
from .rate_limit import RateLimiter, RateLimitMiddleware

__all__ = ["create_app", "RateLimiter", "RateLimitMiddleware"]
