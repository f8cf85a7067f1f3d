from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Union

from pydantic import ValidationError as SchemaError

from careconnect.application.dto.booking_form import FIELD_MESSAGES, BookingFormDTO
from careconnect.domain.entities.booking import BookingKind, BookingRequest
from careconnect.domain.entities.catalog import Catalog, CatalogEntry

_TIME_RE = re.compile(
    r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})"
    r"(?::\d{2}(?:\.\d+)?)?"  # seconds
    r"\s*(?:Z|[+-]\d{2}(?::?\d{2})?)?$",  # timezone suffix
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ValidationError:
    """Form-level failure. Shown inline, never reaches the network."""

    field_errors: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return "; ".join(self.field_errors.values())


@dataclass(frozen=True)
class SelectionError(ValidationError):
    """Doctor or hospital selection did not match the loaded catalog."""
    pass


BuildResult = Union[BookingRequest, ValidationError]


def normalize_time_slot(value: str) -> str | None:
    """Normalize '9:05', '14:30:00' or '14:30:00+05:30' to 'HH:MM'. None if unparseable."""
    match = _TIME_RE.match((value or "").strip())
    if not match:
        return None
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def resolve_selection(value: str, entries: tuple[CatalogEntry, ...]) -> CatalogEntry | None:
    """Match a selection against catalog ids first, then exact display names."""
    wanted = (value or "").strip()
    if not wanted:
        return None
    for entry in entries:
        if str(entry.id) == wanted:
            return entry
    for entry in entries:
        if entry.name == wanted:
            return entry
    return None


def build_booking_request(kind: BookingKind, form: Mapping[str, Any], catalog: Catalog) -> BuildResult:
    """
    Validate and normalize a booking form into a backend-shaped request.

    Returns a BookingRequest, or a ValidationError (SelectionError when the
    doctor/hospital cannot be resolved). Expected failures never raise.
    """
    errors: dict[str, str] = {}
    try:
        parsed = BookingFormDTO.model_validate(dict(form))
    except SchemaError as e:
        for err in e.errors():
            name = str(err["loc"][0]) if err.get("loc") else "form"
            errors.setdefault(name, FIELD_MESSAGES.get(name, str(err.get("msg", "Invalid value"))))
        return ValidationError(field_errors=errors)

    try:
        date.fromisoformat(parsed.date)
    except ValueError:
        errors["date"] = "Date must be in YYYY-MM-DD format"

    time_slot = normalize_time_slot(parsed.time)
    if time_slot is None:
        errors["time"] = "Time must be in HH:MM format"

    if kind == BookingKind.operation and not parsed.specialty:
        errors["specialty"] = FIELD_MESSAGES["specialty"]

    if errors:
        return ValidationError(field_errors=errors)

    hospital = resolve_selection(parsed.hospital, catalog.hospitals)
    doctor = resolve_selection(parsed.doctor, catalog.doctors)
    if hospital is None:
        errors["hospital"] = "Please select a valid hospital"
    if doctor is None:
        errors["doctor"] = "Please select a valid doctor"
    if hospital is None or doctor is None:
        return SelectionError(field_errors=errors)

    return BookingRequest(
        kind=kind,
        doctor_id=doctor.id,
        hospital_id=hospital.id,
        date=parsed.date,
        time_slot=time_slot,
        patient_name=parsed.patient_name,
        phone=parsed.phone,
        specialty=parsed.specialty if kind == BookingKind.operation else None,
        notes=parsed.notes or None,
    )
