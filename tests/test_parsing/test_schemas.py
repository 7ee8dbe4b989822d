"""Tests for dataset row schemas."""

import pytest
from pydantic import ValidationError

from zdravniki.parsing.schemas import DoctorRow, InstitutionRow, ProductRow, UserRow


def doctor_cells(**overrides) -> dict[str, str]:
    cells = {
        "doctor": "Dr. Ana Novak",
        "type": "gp",
        "id_inst": "100",
        "accepts": "y",
        "availability": "1",
        "load": "0.85",
        "email": "",
        "phone": "",
        "website": "",
        "address": "",
        "city": "",
        "municipality": "",
        "municipalityPart": "",
        "post": "",
        "lat": "",
        "lon": "",
    }
    cells.update(overrides)
    return cells


class TestDoctorRow:
    """Tests for doctors.csv rows."""

    def test_maps_upstream_columns(self):
        row = DoctorRow.model_validate(doctor_cells())

        assert row.full_name == "Dr. Ana Novak"
        assert row.practice_type == "gp"
        assert row.institution_id == "100"
        assert row.accepts_new_patients == "y"
        assert row.availability == 1.0
        assert row.load == 0.85

    def test_blank_optionals_become_none(self):
        row = DoctorRow.model_validate(doctor_cells())

        assert row.email is None
        assert row.lat is None
        assert row.municipality_part is None
        assert row.accepts_override is None
        assert row.availability_override is None

    def test_missing_override_columns_default_to_none(self):
        """Override columns are optional in the upstream file."""
        row = DoctorRow.model_validate(doctor_cells())
        assert row.date_override is None
        assert row.note_override is None

    def test_accepts_misspelled_override_columns(self):
        row = DoctorRow.model_validate(
            doctor_cells(accepts_overide="n", availability_overide="0,5", note_overide=" full ")
        )

        assert row.accepts_override == "n"
        assert row.availability_override == 0.5
        assert row.note_override == "full"

    def test_decimal_comma(self):
        row = DoctorRow.model_validate(doctor_cells(load="1,25"))
        assert row.load == 1.25

    def test_non_numeric_load_is_invalid(self):
        with pytest.raises(ValidationError):
            DoctorRow.model_validate(doctor_cells(load="a lot"))

    @pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-inf"])
    def test_non_finite_load_is_invalid(self, value):
        with pytest.raises(ValidationError):
            DoctorRow.model_validate(doctor_cells(load=value))

    def test_non_finite_override_is_invalid(self):
        with pytest.raises(ValidationError):
            DoctorRow.model_validate(doctor_cells(availability_override="nan"))

    def test_empty_availability_is_invalid(self):
        with pytest.raises(ValidationError):
            DoctorRow.model_validate(doctor_cells(availability=""))

    def test_ignores_unknown_columns(self):
        row = DoctorRow.model_validate(doctor_cells(extra_column="x"))
        assert not hasattr(row, "extra_column")

    def test_is_frozen(self):
        row = DoctorRow.model_validate(doctor_cells())
        with pytest.raises(ValidationError):
            row.load = 2.0


class TestInstitutionRow:
    """Tests for institutions.csv rows."""

    def test_maps_upstream_columns(self):
        row = InstitutionRow.model_validate({
            "id_inst": "100",
            "zzzsSt": "01234",
            "name": "ZD Ljubljana",
            "unit": "Enota Center",
            "address": "Metelkova 9",
            "post": "1000 Ljubljana",
            "city": "Ljubljana",
            "municipality": "Ljubljana",
            "municipalityPart": "Center",
            "phone": "01 123 45 67",
            "website": "",
            "lat": "46.05",
            "lon": "14.5",
        })

        assert row.institution_id == "100"
        assert row.status_code == "01234"
        assert row.municipality_part == "Center"
        assert row.website == ""
        assert row.email is None
        assert row.lat == "46.05"

    def test_missing_required_column_is_invalid(self):
        with pytest.raises(ValidationError):
            InstitutionRow.model_validate({"id_inst": "100", "name": "ZD"})


class TestLocalFileRows:
    """Tests for the local file schemas."""

    def test_user_row(self):
        row = UserRow.model_validate({"id": "1", "name": "Ana", "email": "ana@example.com"})
        assert row.email == "ana@example.com"

    def test_user_row_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            UserRow.model_validate({"id": "1", "name": "Ana", "email": "not-an-email"})

    def test_product_row(self):
        row = ProductRow.model_validate({"id": "p1", "name": "Gauze", "price": "2,50"})
        assert row.price == 2.5

    def test_product_row_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            ProductRow.model_validate({"id": "p1", "name": "  ", "price": "1"})
