from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

FIELD_MESSAGES: dict[str, str] = {
    "patient_name": "Name is required",
    "phone": "Valid phone number is required",
    "date": "Date is required",
    "time": "Time is required",
    "specialty": "Specialty is required",
    "doctor": "Doctor is required",
    "hospital": "Hospital is required",
}


class BookingFormDTO(BaseModel):
    """Raw booking form as typed by the user. Every value is a string."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    patient_name: str = Field(min_length=2)
    phone: str = Field(min_length=10)
    date: str = Field(min_length=1)
    time: str = Field(min_length=1)
    specialty: str = ""
    doctor: str = Field(min_length=1)
    hospital: str = Field(min_length=1)
    notes: str | None = None
