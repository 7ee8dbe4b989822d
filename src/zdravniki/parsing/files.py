"""Local compressed data files — .tsv.gz / .csv.gz → validated rows.

Files are looked up by id in a small registry, decompressed off the event
loop and streamed into the delimited parser chunk by chunk.

Storage structure:
    {data_dir}/users.tsv.gz
    {data_dir}/products.csv.gz
"""

import asyncio
import gzip
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

from zdravniki.config import settings
from zdravniki.parsing.delimited import DELIMITERS, ParseResult, parse_delimited
from zdravniki.parsing.schemas import ProductRow, UserRow
from zdravniki.results import Failure, FailureKind, Ok

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class DataFile:
    """A registered local data file."""

    id: str
    filename: str
    format: str  # key of DELIMITERS
    schema: type[BaseModel]


DATA_FILES: tuple[DataFile, ...] = (
    DataFile(id="users", filename="users.tsv.gz", format="tsv", schema=UserRow),
    DataFile(id="products", filename="products.csv.gz", format="csv", schema=ProductRow),
)


async def iter_gzip_chunks(path: Path, chunk_size: int = _CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield decompressed chunks of a gzip file.

    Blocking reads run in a worker thread. A truncated archive raises
    EOFError from the read that hits the missing end-of-stream marker.
    """
    handle = await asyncio.to_thread(gzip.open, path, "rb")
    try:
        while True:
            chunk = await asyncio.to_thread(handle.read, chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        await asyncio.to_thread(handle.close)


def find_data_file(file_id: str, files: tuple[DataFile, ...] = DATA_FILES) -> DataFile | None:
    """Look up a registered file by id."""
    for data_file in files:
        if data_file.id == file_id:
            return data_file
    return None


async def parse_data_file(
    file_id: str,
    files: tuple[DataFile, ...] = DATA_FILES,
    base_dir: str | Path | None = None,
) -> Ok[ParseResult] | Failure:
    """Decompress and parse a registered local file.

    Args:
        file_id: Registry id (e.g. "users")
        files: File registry (default: DATA_FILES)
        base_dir: Directory holding the files (default: settings.data_dir)

    Returns:
        Ok with a ParseResult, NOT_FOUND for an unknown id, FILE_READ when
        the file cannot be read, or the parser's Failure
    """
    data_file = find_data_file(file_id, files)
    if data_file is None:
        logger.warning("Unknown data file id: %s", file_id)
        return Failure(FailureKind.NOT_FOUND, "File not found", {"fileId": file_id})

    path = Path(base_dir or settings.data_dir) / data_file.filename
    logger.info("Parsing %s (%s)", path, data_file.format)

    try:
        async with aclosing(iter_gzip_chunks(path)) as chunks:
            result = await parse_delimited(
                chunks,
                DELIMITERS[data_file.format],
                data_file.schema,
            )
    except OSError as e:
        logger.error("Failed to read %s: %s", path, e)
        return Failure(
            FailureKind.FILE_READ,
            f"Failed to read file: {e}",
            {"fileId": file_id, "path": str(path)},
        )

    if result.is_error:
        logger.error("Failed to parse %s: %s", path, result.message)
        return Failure(
            result.kind,
            result.message,
            {**result.details, "fileId": file_id},
        )
    return result
