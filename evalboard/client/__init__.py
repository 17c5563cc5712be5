"""
Client-side access to the evalboard API.

`RequestCache` is the in-memory TTL cache with in-flight de-duplication;
`DashboardClient` reads the API through it.
"""

from evalboard.client.cache import CachedResponse, RequestCache, cache_key
from evalboard.client.dashboard import ApiError, AuthenticationRequired, DashboardClient

__all__ = [
    "ApiError",
    "AuthenticationRequired",
    "CachedResponse",
    "DashboardClient",
    "RequestCache",
    "cache_key",
]
