"""TTL cache for parsed datasets and merged results.

In-process, size-bounded storage keyed by upstream freshness tokens.
"""

from zdravniki.cache.ttl import TTLCache, is_cached_payload

__all__ = ["TTLCache", "is_cached_payload"]
