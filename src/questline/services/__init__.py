from questline.services.container import (
    Repositories,
    ServiceContainer,
    build_container,
    build_repositories,
)
from questline.services.rate_limiter import (
    DEFAULT_LIMITS,
    RateLimit,
    RateLimitDecision,
    RateLimiter,
)

__all__ = [
    "DEFAULT_LIMITS",
    "RateLimit",
    "RateLimitDecision",
    "RateLimiter",
    "Repositories",
    "ServiceContainer",
    "build_container",
    "build_repositories",
]
