"""HTTP client layer for zdravniki.

Async clients for fetching the upstream plain-text resources:
- BaseAsyncClient: validated text fetch (status, content-type, length)
- SledilnikClient: doctors/institutions datasets and their timestamp tokens
"""

from zdravniki.clients.base import BaseAsyncClient
from zdravniki.clients.sledilnik import SledilnikClient, Timestamps, parse_timestamp

__all__ = [
    "BaseAsyncClient",
    "SledilnikClient",
    "Timestamps",
    "parse_timestamp",
]
