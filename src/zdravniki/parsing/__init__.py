"""Delimited text parsing for zdravniki.

Streaming CSV/TSV parsing with per-row schema validation, the dataset row
schemas, and the local compressed-file reader.
"""

from zdravniki.parsing.delimited import (
    DELIMITERS,
    ParseResult,
    PrematureEndError,
    StructuralError,
    iter_records,
    parse_delimited,
)
from zdravniki.parsing.files import DATA_FILES, DataFile, parse_data_file
from zdravniki.parsing.schemas import DoctorRow, InstitutionRow, ProductRow, UserRow

__all__ = [
    "DELIMITERS",
    "ParseResult",
    "PrematureEndError",
    "StructuralError",
    "iter_records",
    "parse_delimited",
    "DATA_FILES",
    "DataFile",
    "parse_data_file",
    "DoctorRow",
    "InstitutionRow",
    "ProductRow",
    "UserRow",
]
