"""Fetcher — upstream CSV → parsed rows, cached per dataset version.

Resolves each dataset through the TTL cache keyed by its own timestamp
token; on a miss the CSV is fetched, parsed and stored back. The doctors
and institutions datasets are resolved concurrently.
"""

import asyncio
import logging

from pydantic import BaseModel

from zdravniki.cache import TTLCache
from zdravniki.clients import SledilnikClient, Timestamps
from zdravniki.config import settings
from zdravniki.parsing import DELIMITERS, DoctorRow, InstitutionRow, ParseResult, parse_delimited
from zdravniki.results import Failure, FailureKind, Ok

logger = logging.getLogger(__name__)


def _is_parse_result(value: object) -> bool:
    return isinstance(value, ParseResult)


class Fetcher:
    """Fetches and parses the upstream datasets with per-dataset caching.

    Usage:
        fetcher = Fetcher()

        async with SledilnikClient() as client:
            result = await fetcher.fetch_both(client, timestamps)
            if not result.is_error:
                doctors, institutions = result.value
    """

    def __init__(self, cache: TTLCache | None = None) -> None:
        """Initialize fetcher with its dataset cache.

        Args:
            cache: Cache for parsed datasets (default: new cache sized from settings)
        """
        if cache is None:
            cache = TTLCache(
                ttl_seconds=settings.cache_ttl_seconds,
                max_size=settings.cache_max_size,
                name="datasets",
            )
        self.cache = cache

    async def fetch_dataset(
        self,
        client: SledilnikClient,
        name: str,
        url: str,
        schema: type[BaseModel],
        timestamp: int | float,
    ) -> Ok[ParseResult] | Failure:
        """Resolve one dataset: cache by timestamp → fetch → parse → cache.

        Args:
            client: Active upstream client (already in async context)
            name: Dataset name, part of the cache key
            url: Dataset URL
            schema: Row schema
            timestamp: Upstream version token of this dataset

        Returns:
            Ok with the ParseResult, or the fetch/parse Failure
        """
        key = f"{name}:{timestamp}"
        cached = self.cache.get(key, guard=_is_parse_result)
        if cached is not None:
            logger.info("%s: serving parsed data from cache (ts=%s)", name, timestamp)
            return Ok(cached)

        raw = await client.fetch_text(url)
        if raw.is_error:
            logger.error("%s: fetch FAILED — %s", name, raw.message)
            return Failure(raw.kind, raw.message, {**raw.details, "dataset": name})

        if not raw.value.strip():
            logger.error("%s: upstream returned an empty file (%s)", name, url)
            return Failure(
                FailureKind.EMPTY_CONTENT,
                "Empty file",
                {"dataset": name, "url": url},
            )

        parsed = await parse_delimited(raw.value, DELIMITERS["csv"], schema)
        if parsed.is_error:
            logger.error("%s: failed to parse raw content — %s", name, parsed.message)
            return Failure(
                parsed.kind,
                parsed.message,
                {**parsed.details, "dataset": name, "url": url},
            )

        result = parsed.value
        if not result.all_valid:
            logger.warning(
                "%s: %d of %d rows failed validation and were dropped",
                name, result.invalid_rows, result.total_rows,
            )

        self.cache.set(key, result)
        logger.info("%s: %d records (ts=%s)", name, result.valid_rows, timestamp)
        return Ok(result)

    async def fetch_both(
        self,
        client: SledilnikClient,
        timestamps: Timestamps,
    ) -> Ok[tuple[ParseResult[DoctorRow], ParseResult[InstitutionRow]]] | Failure:
        """Resolve doctors and institutions concurrently.

        Both legs run to completion; the doctors failure is reported when
        both fail.

        Returns:
            Ok with (doctors, institutions), or the first Failure
        """
        doctors, institutions = await asyncio.gather(
            self.fetch_dataset(
                client, "doctors", client.doctors_url, DoctorRow, timestamps.doctors_ts,
            ),
            self.fetch_dataset(
                client, "institutions", client.institutions_url, InstitutionRow,
                timestamps.institutions_ts,
            ),
        )

        if doctors.is_error:
            return doctors
        if institutions.is_error:
            return institutions
        return Ok((doctors.value, institutions.value))
