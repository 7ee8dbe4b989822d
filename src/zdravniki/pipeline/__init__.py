"""Data pipeline orchestration — Upstream → Cache → Parse → Merge → Results.

The pipeline coordinates the entire data flow:
1. Fetch the two freshness timestamps
2. Serve the merged result from cache when both versions are known
3. Otherwise fetch + parse both datasets (each cached by its own version)
4. Merge doctors with institutions
5. Cache and return the merged result

Components:
- Orchestrator: Main coordinator
- Fetcher: Upstream CSV → parsed rows, with per-dataset cache
"""

from zdravniki.pipeline.orchestrator import MergedDataset, Orchestrator, SearchResponse

__all__ = ["MergedDataset", "Orchestrator", "SearchResponse"]
