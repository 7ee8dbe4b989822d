"""Doctor/institution merge for zdravniki."""

from zdravniki.merge.engine import (
    LOAD_PERCENTAGE_PREFIXES,
    MERGE_VERSION,
    UNKNOWN_INSTITUTION,
    build_institution_index,
    classify_load_format,
    generate_id,
    merge_records,
    split_list,
    split_postal,
)
from zdravniki.merge.models import MergedRecord

__all__ = [
    "LOAD_PERCENTAGE_PREFIXES",
    "MERGE_VERSION",
    "UNKNOWN_INSTITUTION",
    "MergedRecord",
    "build_institution_index",
    "classify_load_format",
    "generate_id",
    "merge_records",
    "split_list",
    "split_postal",
]
