"""Sledilnik zdravniki-data client.

Provides async access to the published doctor and institution datasets
and to the two timestamp tokens that version them:
- doctors.csv / institutions.csv: comma-delimited UTF-8 datasets
- *.csv.timestamp: a single number, changed on every republish

Repository: https://github.com/sledilnik/zdravniki-data

Usage:
    from zdravniki.clients.sledilnik import SledilnikClient

    async with SledilnikClient() as client:
        result = await client.fetch_timestamps()
        if not result.is_error:
            print(result.value.cache_key)
"""

import asyncio
import logging
import math
from dataclasses import dataclass

from zdravniki.clients.base import BaseAsyncClient
from zdravniki.config import settings
from zdravniki.results import Failure, FailureKind, Ok

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Timestamps:
    """Upstream freshness tokens for the two datasets."""

    doctors_ts: int | float
    institutions_ts: int | float

    @property
    def cache_key(self) -> str:
        """Key of the merged result built from these dataset versions."""
        return f"{self.doctors_ts}-{self.institutions_ts}"

    def to_dict(self) -> dict[str, int | float]:
        return {"doctorsTs": self.doctors_ts, "institutionsTs": self.institutions_ts}


def parse_timestamp(raw: str) -> int | float | None:
    """Parse a timestamp token.

    Returns:
        The numeric value, or None when the token is empty or not a
        finite number.
    """
    token = raw.strip()
    if not token:
        return None
    try:
        return int(token)
    except ValueError:
        pass
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class SledilnikClient(BaseAsyncClient):
    """Async client for the zdravniki-data upstream.

    Args:
        doctors_url: Doctors CSV (default: from settings)
        institutions_url: Institutions CSV (default: from settings)
        doctors_ts_url: Doctors timestamp token (default: from settings)
        institutions_ts_url: Institutions timestamp token (default: from settings)
        timeout: Request timeout in seconds (default: from settings)
    """

    def __init__(
        self,
        doctors_url: str | None = None,
        institutions_url: str | None = None,
        doctors_ts_url: str | None = None,
        institutions_ts_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout=timeout or settings.http_timeout)
        self.doctors_url = doctors_url or settings.doctors_url
        self.institutions_url = institutions_url or settings.institutions_url
        self.doctors_ts_url = doctors_ts_url or settings.doctors_ts_url
        self.institutions_ts_url = institutions_ts_url or settings.institutions_ts_url

    async def fetch_timestamps(self) -> Ok[Timestamps] | Failure:
        """Fetch both freshness tokens concurrently.

        Both requests are awaited even when one of them fails. The
        failure names which leg broke (doctors, institutions or both)
        so logs can tell the cases apart; callers treat them alike.

        Returns:
            Ok with Timestamps, or a TIMESTAMP Failure
        """
        doctors_result, institutions_result = await asyncio.gather(
            self.fetch_text(self.doctors_ts_url),
            self.fetch_text(self.institutions_ts_url),
        )

        reasons: dict[str, str] = {}
        values: dict[str, int | float] = {}
        for name, result in (
            ("doctors", doctors_result),
            ("institutions", institutions_result),
        ):
            if result.is_error:
                reasons[name] = result.message
                continue
            value = parse_timestamp(result.value)
            if value is None:
                reasons[name] = f"Invalid timestamp format: {result.value.strip()!r}"
                continue
            values[name] = value

        if reasons:
            cause = "both" if len(reasons) == 2 else next(iter(reasons))
            logger.error(
                "Failed to fetch timestamps (%s): %s", cause, reasons,
            )
            return Failure(
                FailureKind.TIMESTAMP,
                "Failed to fetch timestamps",
                {
                    "cause": cause,
                    "reasons": reasons,
                    "urls": {
                        "doctorsTsUrl": self.doctors_ts_url,
                        "institutionsTsUrl": self.institutions_ts_url,
                    },
                },
            )

        timestamps = Timestamps(
            doctors_ts=values["doctors"],
            institutions_ts=values["institutions"],
        )
        logger.info(
            "Fetched timestamps: doctors=%s institutions=%s",
            timestamps.doctors_ts, timestamps.institutions_ts,
        )
        return Ok(timestamps)
