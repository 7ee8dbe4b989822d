"""Streaming CSV/TSV parser with schema validation.

Turns raw delimited text into validated pydantic records while counting
how many rows were accepted. Input is consumed chunk by chunk, so a large
upstream body or a gzip stream never has to be split into lines up front.

Two kinds of problems are kept apart:
    - Row validation failure (soft): the row is dropped and counted in
      ``invalid_rows``; parsing continues.
    - Structural failure (hard): a row whose column count differs from
      the header, an unterminated quoted field, invalid UTF-8, or a source
      that closes early. The whole parse fails and no data is returned.

Usage:
    result = await parse_delimited(text, DELIMITERS["csv"], DoctorRow)
    if not result.is_error:
        print(result.value.meta)
"""

import codecs
import csv
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from zdravniki.results import Failure, FailureKind, Ok

logger = logging.getLogger(__name__)

DELIMITERS: dict[str, str] = {
    "csv": ",",
    "tsv": "\t",
}

R = TypeVar("R", bound=BaseModel)

Source = str | bytes | AsyncIterable[str | bytes]


class PrematureEndError(Exception):
    """Raised by a chunk source that closed before reaching its end."""


class StructuralError(Exception):
    """Malformed input shape; aborts the parse.

    Args:
        message: Description of the problem
        record: 1-based record number (header is record 1)
        line: 1-based physical line where the record starts
        expected: Expected column count, when relevant
        actual: Actual column count, when relevant
    """

    def __init__(
        self,
        message: str,
        record: int | None = None,
        expected: int | None = None,
        actual: int | None = None,
        line: int | None = None,
    ) -> None:
        super().__init__(message)
        self.record = record
        self.line = line
        self.expected = expected
        self.actual = actual

    def details(self) -> dict[str, Any]:
        return {
            k: v
            for k, v in {
                "record": self.record,
                "line": self.line,
                "expectedColumns": self.expected,
                "actualColumns": self.actual,
            }.items()
            if v is not None
        }


@dataclass
class ParseResult(Generic[R]):
    """Validated rows plus row accounting."""

    data: list[R] = field(default_factory=list)
    total_rows: int = 0
    invalid_rows: int = 0

    @property
    def valid_rows(self) -> int:
        return len(self.data)

    @property
    def all_valid(self) -> bool:
        return self.invalid_rows == 0

    @property
    def meta(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
            "allValid": self.all_valid,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "data": [row.model_dump(mode="json") for row in self.data],
            "meta": self.meta,
        }


async def _iter_text(source: Source) -> AsyncIterator[str]:
    """Yield decoded text chunks from any supported source."""
    if isinstance(source, str):
        yield source
        return

    decoder = codecs.getincrementaldecoder("utf-8-sig")()
    if isinstance(source, bytes):
        yield decoder.decode(source, final=True)
        return

    async for chunk in source:
        if isinstance(chunk, bytes):
            text = decoder.decode(chunk)
        else:
            text = chunk
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


async def _iter_raw_records(source: Source) -> AsyncIterator[str]:
    """Yield one raw record at a time.

    A record spans several physical lines while it has an odd number of
    quote characters (a quoted field containing newlines).
    """
    buffer = ""
    pending: str | None = None
    first = True
    line_number = 0
    start_line = 0

    async for text in _iter_text(source):
        if first:
            text = text.removeprefix("\ufeff")
            first = False
        buffer += text
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            line_number += 1
            if pending is None:
                pending, start_line = line, line_number
            else:
                pending = f"{pending}\n{line}"
            if pending.count('"') % 2 == 0:
                yield pending.removesuffix("\r")
                pending = None

    if pending is None and not buffer:
        return
    if pending is None:
        start_line = line_number + 1
    last = buffer if pending is None else f"{pending}\n{buffer}"
    if last.count('"') % 2:
        raise StructuralError(
            f"Unterminated quoted field starting on line {start_line}",
            line=start_line,
        )
    yield last.removesuffix("\r")


async def iter_records(source: Source, delimiter: str) -> AsyncIterator[dict[str, str]]:
    """Yield header-keyed rows from delimited text.

    The first non-blank record is the header. Blank records are skipped.
    Finite and not restartable; ends at end of input or with the first
    structural error.

    Args:
        source: Text, bytes, or an async iterable of text/bytes chunks
        delimiter: Single-character field delimiter

    Yields:
        Row dictionaries mapping header name -> raw cell text

    Raises:
        StructuralError: On a column count mismatch or malformed quoting
        PrematureEndError: If the source closed early
    """
    if len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single character, got {delimiter!r}")

    header: list[str] | None = None
    record_number = 0

    async for raw in _iter_raw_records(source):
        if not raw.strip():
            continue
        record_number += 1
        try:
            fields = next(csv.reader([raw], delimiter=delimiter, strict=True))
        except csv.Error as e:
            raise StructuralError(f"Malformed record: {e}", record=record_number) from e

        if header is None:
            header = [name.strip() for name in fields]
            continue

        if len(fields) != len(header):
            raise StructuralError(
                f"Invalid record length: expected {len(header)} columns, "
                f"got {len(fields)} on record {record_number}",
                record=record_number,
                expected=len(header),
                actual=len(fields),
            )

        yield dict(zip(header, fields))


async def parse_delimited(
    source: Source,
    delimiter: str,
    schema: type[R],
) -> Ok[ParseResult[R]] | Failure:
    """Parse delimited text and validate every row against a schema.

    Args:
        source: Text, bytes, or an async iterable of text/bytes chunks
        delimiter: Single-character field delimiter (see DELIMITERS)
        schema: Pydantic model class validating one row

    Returns:
        Ok with a ParseResult, or a PARSE_STRUCTURE / PARSE_TRUNCATED Failure
    """
    result: ParseResult[R] = ParseResult()

    try:
        async for row in iter_records(source, delimiter):
            result.total_rows += 1
            try:
                result.data.append(schema.model_validate(row))
            except ValidationError as e:
                result.invalid_rows += 1
                first_error = e.errors()[0]
                logger.debug(
                    "%s: row %d invalid — %s: %s",
                    schema.__name__, result.total_rows,
                    ".".join(str(p) for p in first_error["loc"]), first_error["msg"],
                )
    except StructuralError as e:
        logger.error("%s: structural parse failure — %s", schema.__name__, e)
        return Failure(FailureKind.PARSE_STRUCTURE, str(e), e.details())
    except UnicodeDecodeError as e:
        logger.error("%s: input is not valid UTF-8 — %s", schema.__name__, e)
        return Failure(FailureKind.PARSE_STRUCTURE, f"Invalid UTF-8 input: {e}")
    except (PrematureEndError, EOFError, httpx.StreamError, httpx.RemoteProtocolError) as e:
        logger.error("%s: premature stream closure — %s", schema.__name__, e)
        return Failure(
            FailureKind.PARSE_TRUNCATED,
            f"Premature stream closure or unexpected end: {e}",
        )

    logger.info(
        "%s: parsed %d rows (%d valid, %d invalid)",
        schema.__name__, result.total_rows, result.valid_rows, result.invalid_rows,
    )
    return Ok(result)
