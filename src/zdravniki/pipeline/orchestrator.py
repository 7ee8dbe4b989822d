"""Orchestrator — Main pipeline coordinator.

Per request:
    FetchTimestamps → CheckMergedCache ─HIT→ respond (cacheHit=True)
                                       └MISS→ FetchAndParseBoth → Merge
                                              → StoreCache → respond (cacheHit=False)

Any failure aborts with a Failure carrying the elapsed time and whatever
timestamps are known. A response is either the complete new dataset or
an explicit failure, never a partial merge.

Usage:
    orchestrator = Orchestrator()
    result = await orchestrator.get_merged()
    if not result.is_error:
        print(result.value.meta)
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from zdravniki.cache import TTLCache, is_cached_payload
from zdravniki.clients import SledilnikClient, Timestamps
from zdravniki.config import settings
from zdravniki.merge import MergedRecord, merge_records
from zdravniki.parsing import ParseResult, parse_data_file
from zdravniki.pipeline.fetcher import Fetcher
from zdravniki.results import Failure, Ok
from zdravniki.search import SearchMatch, search_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergedDataset:
    """Merged records plus response metadata; the cached unit."""

    data: list[MergedRecord]
    timestamps: Timestamps
    doctors_count: int
    institutions_count: int
    execution_time_ms: float
    cache_hit: bool = False
    doctors_all_valid: bool = True
    institutions_all_valid: bool = True

    @property
    def merged_count(self) -> int:
        return len(self.data)

    @property
    def meta(self) -> dict[str, Any]:
        return {
            "cacheHit": self.cache_hit,
            "doctorsCount": self.doctors_count,
            "institutionsCount": self.institutions_count,
            "mergedCount": self.merged_count,
            "allValid": {
                "doctors": self.doctors_all_valid,
                "institutions": self.institutions_all_valid,
            },
            "timestamps": self.timestamps.to_dict(),
            "executionTimeMs": self.execution_time_ms,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "data": [record.to_dict() for record in self.data],
            "meta": self.meta,
        }


@dataclass(frozen=True)
class SearchResponse:
    """Ranked search matches over a merged dataset."""

    matches: list[SearchMatch]
    dataset: MergedDataset
    query: str
    practice_type: str | None
    execution_time_ms: float

    @property
    def meta(self) -> dict[str, Any]:
        return {
            **self.dataset.meta,
            "query": self.query,
            "type": self.practice_type,
            "matchCount": len(self.matches),
            "executionTimeMs": self.execution_time_ms,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [match.to_dict() for match in self.matches],
            "meta": self.meta,
        }


@dataclass(frozen=True)
class DataFileResponse:
    """Parsed rows of a local data file."""

    file_id: str
    result: ParseResult
    execution_time_ms: float

    @property
    def meta(self) -> dict[str, Any]:
        return {
            **self.result.meta,
            "fileId": self.file_id,
            "executionTimeMs": self.execution_time_ms,
        }

    def to_dict(self) -> dict[str, Any]:
        return {**self.result.to_dict(), "meta": self.meta}


def _is_merged_dataset(value: object) -> bool:
    return isinstance(value, MergedDataset) and is_cached_payload(value)


class Orchestrator:
    """Main pipeline orchestrator for zdravniki.

    Caches are explicit instances so tests can build isolated pipelines
    with their own clocks.

    Args:
        client_factory: Builds an upstream client per request
            (default: SledilnikClient)
        dataset_cache: Cache for parsed datasets keyed by "{name}:{ts}"
        merged_cache: Cache for merged datasets keyed by "{doctorsTs}-{institutionsTs}"
        clock: Wall-clock source for execution times, in seconds
    """

    def __init__(
        self,
        client_factory: Callable[[], SledilnikClient] = SledilnikClient,
        dataset_cache: TTLCache | None = None,
        merged_cache: TTLCache | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if merged_cache is None:
            merged_cache = TTLCache(
                ttl_seconds=settings.cache_ttl_seconds,
                max_size=settings.cache_max_size,
                name="merged",
            )
        self.client_factory = client_factory
        self.fetcher = Fetcher(cache=dataset_cache)
        self.merged_cache = merged_cache
        self._clock = clock

    @property
    def dataset_cache(self) -> TTLCache:
        return self.fetcher.cache

    def _elapsed_ms(self, start: float) -> float:
        return round((self._clock() - start) * 1000, 2)

    async def get_merged(self) -> Ok[MergedDataset] | Failure:
        """Run the fetch-parse-merge-cache pipeline.

        Returns:
            Ok with a MergedDataset, or a Failure whose meta carries
            executionTimeMs and the known timestamps
        """
        start = self._clock()

        async with self.client_factory() as client:
            ts_result = await client.fetch_timestamps()
            if ts_result.is_error:
                return ts_result.with_meta(
                    cacheHit=False,
                    timestamps={},
                    executionTimeMs=self._elapsed_ms(start),
                )
            timestamps = ts_result.value

            cached = self.merged_cache.get(timestamps.cache_key, guard=_is_merged_dataset)
            if cached is not None:
                hit = replace(cached, cache_hit=True, execution_time_ms=self._elapsed_ms(start))
                logger.info(
                    "Serving merged data from cache (key=%s, merged=%d, %.2fms)",
                    timestamps.cache_key, hit.merged_count, hit.execution_time_ms,
                )
                return Ok(hit)

            datasets = await self.fetcher.fetch_both(client, timestamps)
            if datasets.is_error:
                return datasets.with_meta(
                    cacheHit=False,
                    timestamps=timestamps.to_dict(),
                    executionTimeMs=self._elapsed_ms(start),
                )

        doctors, institutions = datasets.value
        merged = merge_records(doctors.data, institutions.data)

        dataset = MergedDataset(
            data=merged,
            timestamps=timestamps,
            doctors_count=doctors.valid_rows,
            institutions_count=institutions.valid_rows,
            execution_time_ms=self._elapsed_ms(start),
            cache_hit=False,
            doctors_all_valid=doctors.all_valid,
            institutions_all_valid=institutions.all_valid,
        )
        self.merged_cache.set(timestamps.cache_key, dataset)

        logger.info(
            "Merged and cached new data (key=%s, doctors=%d, institutions=%d, merged=%d, %.2fms)",
            timestamps.cache_key, dataset.doctors_count, dataset.institutions_count,
            dataset.merged_count, dataset.execution_time_ms,
        )
        return Ok(dataset)

    async def search(
        self,
        query: str,
        practice_type: str | None = None,
        limit: int | None = None,
    ) -> Ok[SearchResponse] | Failure:
        """Search the merged dataset.

        Args:
            query: Free-text query
            practice_type: Restrict to one practiceType (e.g. "gp")
            limit: Max matches (default: settings.search_limit)

        Returns:
            Ok with a SearchResponse, or the pipeline Failure
        """
        start = self._clock()

        merged = await self.get_merged()
        if merged.is_error:
            return merged.with_meta(query=query, type=practice_type)

        matches = search_records(
            merged.value.data,
            query,
            practice_type=practice_type,
            threshold=settings.search_threshold,
            limit=settings.search_limit if limit is None else limit,
        )
        response = SearchResponse(
            matches=matches,
            dataset=merged.value,
            query=query,
            practice_type=practice_type,
            execution_time_ms=self._elapsed_ms(start),
        )
        logger.info(
            "Search %r (type=%s): %d matches", query, practice_type, len(matches),
        )
        return Ok(response)

    async def get_data_file(
        self,
        file_id: str,
        base_dir: str | None = None,
    ) -> Ok[DataFileResponse] | Failure:
        """Parse a registered local compressed file.

        Args:
            file_id: Registry id (e.g. "users")
            base_dir: Directory holding the files (default: settings.data_dir)
        """
        start = self._clock()
        result = await parse_data_file(file_id, base_dir=base_dir)
        if result.is_error:
            return result.with_meta(executionTimeMs=self._elapsed_ms(start))
        return Ok(DataFileResponse(
            file_id=file_id,
            result=result.value,
            execution_time_ms=self._elapsed_ms(start),
        ))
