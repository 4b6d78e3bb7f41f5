"""HTTP transport with response caching, request throttling and stale fallback."""

from treasury_dashboard.transport.cache import CacheEntry, ResponseCache
from treasury_dashboard.transport.client import CachedJSONClient
from treasury_dashboard.transport.errors import (
    MalformedResponseError,
    MissingCredentialsError,
    SourceError,
    UpstreamAPIError,
)
from treasury_dashboard.transport.throttle import RequestThrottle

__all__ = [
    "CacheEntry",
    "CachedJSONClient",
    "MalformedResponseError",
    "MissingCredentialsError",
    "RequestThrottle",
    "ResponseCache",
    "SourceError",
    "UpstreamAPIError",
]
