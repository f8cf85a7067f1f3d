"""
Tests for booking form validation and normalization.
"""

from __future__ import annotations

from careconnect.application.utils.booking_request_builder import (
    SelectionError,
    ValidationError,
    build_booking_request,
    normalize_time_slot,
    resolve_selection,
)
from careconnect.domain.entities.booking import BookingKind, BookingRequest
from careconnect.domain.entities.catalog import Catalog, CatalogEntry

CATALOG = Catalog(
    hospitals=(CatalogEntry(id=3, name="City Hospital"), CatalogEntry(id=4, name="5")),
    doctors=(
        CatalogEntry(id=7, name="Dr. Rao", specialty="Cardiology"),
        CatalogEntry(id=8, name="Dr. Iyer", specialty="Neurology"),
    ),
)


def _form(**overrides: str) -> dict[str, str]:
    form = {
        "patient_name": "Asha Rao",
        "phone": "9876543210",
        "date": "2024-05-01",
        "time": "14:30",
        "specialty": "",
        "doctor": "7",
        "hospital": "3",
        "notes": "",
    }
    form.update(overrides)
    return form


def test_appointment_request_resolves_ids_and_drops_specialty():
    result = build_booking_request(BookingKind.appointment, _form(specialty="Cardiology"), CATALOG)

    assert isinstance(result, BookingRequest)
    assert result.doctor_id == 7
    assert result.hospital_id == 3
    assert result.time_slot == "14:30"
    assert result.specialty is None
    assert result.to_payload() == {"doctor_id": 7, "date": "2024-05-01", "time_slot": "14:30"}


def test_operation_requires_specialty():
    result = build_booking_request(BookingKind.operation, _form(), CATALOG)

    assert isinstance(result, ValidationError)
    assert "specialty" in result.field_errors


def test_operation_payload_shape():
    result = build_booking_request(
        BookingKind.operation,
        _form(specialty="Cardiology", notes="Knee replacement"),
        CATALOG,
    )

    assert isinstance(result, BookingRequest)
    assert result.to_payload() == {
        "hospital_id": 3,
        "doctor_id": 7,
        "date": "2024-05-01",
        "specialty": "Cardiology",
        "notes": "Knee replacement",
    }


def test_selection_falls_back_to_exact_name():
    result = build_booking_request(BookingKind.appointment, _form(doctor="Dr. Iyer", hospital="City Hospital"), CATALOG)

    assert isinstance(result, BookingRequest)
    assert result.doctor_id == 8
    assert result.hospital_id == 3


def test_selection_prefers_id_over_name():
    # Hospital 4 is literally named "5"; the value "4" must still resolve by id.
    assert resolve_selection("4", CATALOG.hospitals).id == 4
    assert resolve_selection("5", CATALOG.hospitals).id == 4
    assert resolve_selection("city hospital", CATALOG.hospitals) is None


def test_unknown_doctor_is_selection_error():
    result = build_booking_request(BookingKind.appointment, _form(doctor="Dr. Nobody"), CATALOG)

    assert isinstance(result, SelectionError)
    assert set(result.field_errors) == {"doctor"}


def test_required_fields_reported_together():
    result = build_booking_request(BookingKind.appointment, _form(patient_name=" A ", phone="123"), CATALOG)

    assert isinstance(result, ValidationError)
    assert not isinstance(result, SelectionError)
    assert result.field_errors["patient_name"] == "Name is required"
    assert result.field_errors["phone"] == "Valid phone number is required"


def test_bad_date_and_time_rejected():
    result = build_booking_request(BookingKind.appointment, _form(date="01/05/2024", time="half past two"), CATALOG)

    assert isinstance(result, ValidationError)
    assert set(result.field_errors) == {"date", "time"}


def test_time_normalization():
    assert normalize_time_slot("14:30") == "14:30"
    assert normalize_time_slot("14:30:59") == "14:30"
    assert normalize_time_slot("14:30:00+05:30") == "14:30"
    assert normalize_time_slot("14:30:00.000Z") == "14:30"
    assert normalize_time_slot("9:05") == "09:05"
    assert normalize_time_slot("24:00") is None
    assert normalize_time_slot("") is None
