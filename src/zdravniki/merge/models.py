"""Merged doctor records.

Output shape of the merge engine. Models are immutable and serialize to
camelCase keys (``model_dump(by_alias=True)`` / ``to_dict()``).
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

LoadFormat = Literal["percentage", "decimal"]


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class InstitutionInfo(_Model):
    id: str
    name: str
    unit: str
    status_code: str


class DoctorData(_Model):
    accepts_new_patients: str
    availability: float
    load: float
    note: str | None
    load_format: LoadFormat


class Location(_Model):
    lat: float | None
    lon: float | None


class Address(_Model):
    street: str
    city: str
    municipality: str
    municipality_part: str
    postal_code: str
    postal_name: str


class Contact(_Model):
    phone: list[str] | None
    email: list[str] | None
    website: list[str] | None


class RecordMeta(_Model):
    date_override: str | None
    processed_at: str
    version: str


class MergedRecord(_Model):
    """One doctor joined with its institution."""

    id: str
    full_name: str
    practice_type: str
    institution: InstitutionInfo
    data: DoctorData
    location: Location
    address: Address
    contact: Contact
    meta: RecordMeta

    def to_dict(self) -> dict[str, Any]:
        """Convert to camelCase dictionary for serialization."""
        return self.model_dump(by_alias=True)
