"""Row schemas for the delimited datasets.

Each schema validates one header-keyed row produced by the parser.
Cells arrive as raw strings; the annotated cell types below coerce them:

    Text            stripped string, empty allowed
    NonEmptyText    stripped string, must not be empty
    OptionalText    stripped string, empty -> None
    Number          finite numeric string -> float, empty is invalid
    OptionalNumber  finite numeric string -> float, empty -> None

Field names are snake_case; validation aliases carry the upstream column
names. Unknown columns are ignored.
"""

import re
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

# Slovenian exports write decimals as "0,85"
_DECIMAL_COMMA = re.compile(r"^-?\d+,\d+$")


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value: Any) -> Any:
    value = _strip(value)
    return None if value == "" else value


def _decimal(value: Any) -> Any:
    value = _strip(value)
    if isinstance(value, str) and _DECIMAL_COMMA.match(value):
        return value.replace(",", ".")
    return value


def _optional_decimal(value: Any) -> Any:
    value = _decimal(value)
    return None if value == "" else value


Text = Annotated[str, BeforeValidator(_strip)]
NonEmptyText = Annotated[str, BeforeValidator(_strip), Field(min_length=1)]
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
# "nan" and "inf" parse as floats but are not valid cell values
FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]
Number = Annotated[FiniteFloat, BeforeValidator(_decimal)]
OptionalNumber = Annotated[FiniteFloat | None, BeforeValidator(_optional_decimal)]

class CsvRow(BaseModel):
    """Base for immutable row models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class DoctorRow(CsvRow):
    """One row of doctors.csv."""

    full_name: Text = Field(validation_alias="doctor")
    practice_type: Text = Field(validation_alias="type")
    institution_id: Text = Field(validation_alias="id_inst")
    accepts_new_patients: Text = Field(validation_alias="accepts")
    availability: Number
    load: Number

    # Overrides (upstream historically spells them "*_overide")
    accepts_override: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("accepts_override", "accepts_overide"),
    )
    availability_override: OptionalNumber = Field(
        default=None,
        validation_alias=AliasChoices("availability_override", "availability_overide"),
    )
    date_override: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("date_override", "date_overide"),
    )
    note_override: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("note_override", "note_overide"),
    )

    # Contacts (comma-separated lists)
    email: OptionalText = None
    phone: OptionalText = None
    website: OptionalText = None

    # Address / location
    address: OptionalText = None
    city: OptionalText = None
    municipality: OptionalText = None
    municipality_part: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("municipalityPart", "municipality_part"),
    )
    post: OptionalText = None
    lat: OptionalText = None
    lon: OptionalText = None


class InstitutionRow(CsvRow):
    """One row of institutions.csv."""

    institution_id: Text = Field(validation_alias="id_inst")
    status_code: Text = Field(validation_alias="zzzsSt")
    name: Text
    unit: Text
    address: Text
    post: Text
    city: Text
    municipality: Text
    municipality_part: Text = Field(
        validation_alias=AliasChoices("municipalityPart", "municipality_part"),
    )
    phone: Text
    website: Text
    email: OptionalText = None
    lat: OptionalText = None
    lon: OptionalText = None


class UserRow(CsvRow):
    """One row of the local users.tsv.gz file."""

    id: NonEmptyText
    name: NonEmptyText
    email: Annotated[str, BeforeValidator(_strip), Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]


class ProductRow(CsvRow):
    """One row of the local products.csv.gz file."""

    id: NonEmptyText
    name: NonEmptyText
    price: Number
