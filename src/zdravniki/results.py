"""Result values passed between pipeline components.

Components report expected failures (bad upstream responses, malformed
files, missing timestamps) as ``Failure`` values instead of raising, so
the orchestrator is the single place deciding the response shape.
Exceptions are left for programmer errors.

Usage:
    result = await client.fetch_text(url)
    if result.is_error:
        return result
    text = result.value
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class FailureKind(Enum):
    """Failure categories surfaced by the pipeline."""

    FETCH = "fetch"  # Non-2xx, wrong content-type, missing length, transport error
    EMPTY_CONTENT = "empty_content"  # Upstream returned an empty body
    TIMESTAMP = "timestamp"  # Freshness token missing or not numeric
    PARSE_STRUCTURE = "parse_structure"  # Column count mismatch, unterminated quote
    PARSE_TRUNCATED = "parse_truncated"  # Source closed before the parse completed
    FILE_READ = "file_read"  # Local file missing or unreadable
    NOT_FOUND = "not_found"  # Unknown local data file id

    @property
    def status_code(self) -> int:
        """HTTP status a routing layer should answer with."""
        if self is FailureKind.NOT_FOUND:
            return 404
        return 500


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result wrapping a value."""

    value: T

    @property
    def is_error(self) -> bool:
        return False


@dataclass(frozen=True)
class Failure:
    """Failed result.

    Attributes:
        kind: Failure category
        message: Human-readable description
        details: Diagnostic context (urls, row numbers, causes)
        meta: Response metadata available at the time of failure
            (execution time, timestamps)
    """

    kind: FailureKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return True

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def with_meta(self, **meta: Any) -> "Failure":
        """Return a copy with additional response metadata."""
        return Failure(
            kind=self.kind,
            message=self.message,
            details=dict(self.details),
            meta={**self.meta, **meta},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            **self.details,
            "meta": self.meta,
        }


Result = Ok[T] | Failure
