"""zdravniki — doctor and institution data service.

Fetches the sledilnik doctor and institution datasets, merges them into
normalized records, caches the merge keyed by upstream freshness and
serves fuzzy search over it.
"""

__version__ = "0.3.0"
