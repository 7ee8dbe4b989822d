"""Merge engine — doctors ⋈ institutions → MergedRecord.

Left-outer join of doctor rows to institution rows on the institution id,
followed by normalization:

    Location   doctor's lat/lon when both are present, else institution's
    Address    field-by-field: doctor's value wins when non-empty
    Postal     "1000 Ljubljana" → postalCode "1000", postalName "Ljubljana"
    Contacts   comma-separated lists, trimmed; empty → None
    Overrides  acceptsOverride / availabilityOverride replace base values
    id         SHA-256 of (practiceType, institutionId, fullName)
    loadFormat "percentage" for dental and gynecology practices

Pure function of its inputs: no network, no cache, never raises on data.
Output order and length equal the doctor input.
"""

import hashlib
import logging
import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from zdravniki.merge.models import (
    Address,
    Contact,
    DoctorData,
    InstitutionInfo,
    LoadFormat,
    Location,
    MergedRecord,
    RecordMeta,
)
from zdravniki.parsing.schemas import DoctorRow, InstitutionRow

logger = logging.getLogger(__name__)

MERGE_VERSION = "1"

# practiceType prefixes whose load is shown as a percentage
# ("den", "den-y", "den-s" dental; "gyn" gynecology)
LOAD_PERCENTAGE_PREFIXES: tuple[str, ...] = ("den", "gyn")

UNKNOWN_INSTITUTION = InstitutionRow(
    institution_id="",
    status_code="",
    name="",
    unit="",
    address="",
    post="",
    city="",
    municipality="",
    municipality_part="",
    phone="",
    website="",
)

_ID_SEPARATOR = "\x00"
_MAX_LOGGED_SAMPLES = 5


def generate_id(practice_type: str, institution_id: str, full_name: str) -> str:
    """Derive the stable record id.

    Deterministic across calls and processes. Components are joined with
    NUL so ("ab", "c") and ("a", "bc") never collide.
    """
    payload = _ID_SEPARATOR.join((practice_type, institution_id, full_name))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def classify_load_format(practice_type: str) -> LoadFormat:
    """Display hint for ``load``; no unit conversion is applied."""
    if practice_type.strip().lower().startswith(LOAD_PERCENTAGE_PREFIXES):
        return "percentage"
    return "decimal"


def split_list(value: str | None) -> list[str] | None:
    """Split a comma-separated cell into trimmed items.

    Returns None (never an empty list) when nothing remains.
    """
    if not value:
        return None
    items = [item.strip() for item in value.split(",")]
    items = [item for item in items if item]
    return items or None


def split_postal(post: str) -> tuple[str, str]:
    """Split "1000 Ljubljana" into ("1000", "Ljubljana").

    A postal string without a leading numeric token is kept whole as the
    postal name with an empty code.
    """
    parts = post.split(maxsplit=1)
    if not parts:
        return "", ""
    if parts[0].isdigit():
        return parts[0], parts[1] if len(parts) > 1 else ""
    return "", post.strip()


def _pick(doctor_value: str | None, institution_value: str | None) -> str:
    if doctor_value:
        return doctor_value
    return institution_value or ""


def _coordinate(value: str | None) -> float | None:
    if not value:
        return None
    try:
        number = float(value.replace(",", "."))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _resolve_location(doctor: DoctorRow, institution: InstitutionRow) -> Location:
    if doctor.lat and doctor.lon:
        lat, lon = doctor.lat, doctor.lon
    else:
        lat, lon = institution.lat, institution.lon
    return Location(lat=_coordinate(lat), lon=_coordinate(lon))


def build_institution_index(
    institutions: Iterable[InstitutionRow],
) -> dict[str, InstitutionRow]:
    """Map institution id → row. Duplicate ids: last one wins."""
    index: dict[str, InstitutionRow] = {}
    duplicates: list[str] = []
    for institution in institutions:
        if institution.institution_id in index:
            duplicates.append(institution.institution_id)
        index[institution.institution_id] = institution

    if duplicates:
        logger.warning(
            "Institution snapshot has %d duplicate ids (last wins), e.g. %s",
            len(duplicates), duplicates[:_MAX_LOGGED_SAMPLES],
        )
    return index


def merge_doctor(
    doctor: DoctorRow,
    institution: InstitutionRow,
    processed_at: str,
) -> MergedRecord:
    """Merge one doctor with its (possibly placeholder) institution."""
    postal_code, postal_name = split_postal(_pick(doctor.post, institution.post))

    accepts = doctor.accepts_override or doctor.accepts_new_patients
    availability = (
        doctor.availability_override
        if doctor.availability_override is not None
        else doctor.availability
    )

    return MergedRecord(
        id=generate_id(doctor.practice_type, doctor.institution_id, doctor.full_name),
        full_name=doctor.full_name,
        practice_type=doctor.practice_type,
        institution=InstitutionInfo(
            id=institution.institution_id,
            name=institution.name,
            unit=institution.unit,
            status_code=institution.status_code,
        ),
        data=DoctorData(
            accepts_new_patients=accepts,
            availability=availability,
            load=doctor.load,
            note=doctor.note_override,
            load_format=classify_load_format(doctor.practice_type),
        ),
        location=_resolve_location(doctor, institution),
        address=Address(
            street=_pick(doctor.address, institution.address),
            city=_pick(doctor.city, institution.city),
            municipality=_pick(doctor.municipality, institution.municipality),
            municipality_part=_pick(doctor.municipality_part, institution.municipality_part),
            postal_code=postal_code,
            postal_name=postal_name,
        ),
        contact=Contact(
            phone=split_list(doctor.phone),
            email=split_list(doctor.email),
            website=split_list(doctor.website),
        ),
        meta=RecordMeta(
            date_override=doctor.date_override,
            processed_at=processed_at,
            version=MERGE_VERSION,
        ),
    )


def merge_records(
    doctors: Sequence[DoctorRow],
    institutions: Iterable[InstitutionRow],
    processed_at: datetime | None = None,
) -> list[MergedRecord]:
    """Join doctors to institutions and normalize every record.

    Args:
        doctors: Parsed doctor rows
        institutions: Parsed institution rows
        processed_at: Merge instant stamped on every record
            (default: now, UTC)

    Returns:
        One MergedRecord per doctor, in input order
    """
    stamp = (processed_at or datetime.now(timezone.utc)).isoformat()
    index = build_institution_index(institutions)

    merged: list[MergedRecord] = []
    unmatched: list[str] = []
    bad_postal: list[str] = []

    for doctor in doctors:
        institution = index.get(doctor.institution_id)
        if institution is None:
            unmatched.append(doctor.institution_id)
            institution = UNKNOWN_INSTITUTION

        record = merge_doctor(doctor, institution, stamp)
        if record.address.postal_name and not record.address.postal_code:
            bad_postal.append(record.address.postal_name)
        merged.append(record)

    if unmatched:
        logger.warning(
            "%d doctors reference unknown institutions, e.g. %s",
            len(unmatched), sorted(set(unmatched))[:_MAX_LOGGED_SAMPLES],
        )
    if bad_postal:
        logger.warning(
            "%d postal strings lack a leading numeric code, e.g. %s",
            len(bad_postal), sorted(set(bad_postal))[:_MAX_LOGGED_SAMPLES],
        )

    logger.info(
        "Merged %d doctors with %d institutions",
        len(merged), len(index),
    )
    return merged
