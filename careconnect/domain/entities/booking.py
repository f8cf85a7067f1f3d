from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class BookingKind(str, Enum):
    appointment = "appointment"
    operation = "operation"


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"

    @staticmethod
    def from_backend(value: str | None) -> "BookingStatus":
        normalized = str(value or "pending").strip().lower()
        if normalized == "visited":
            return BookingStatus.completed
        try:
            return BookingStatus(normalized)
        except ValueError:
            return BookingStatus.pending


@dataclass(frozen=True)
class BookingRecord:
    id: int
    kind: BookingKind
    status: BookingStatus = BookingStatus.pending  # backend-owned, read only
    date: str | None = None
    time_slot: str | None = None


@dataclass(frozen=True)
class BookingRequest:
    kind: BookingKind
    doctor_id: int
    hospital_id: int
    date: str  # YYYY-MM-DD
    time_slot: str  # HH:MM
    patient_name: str
    phone: str
    specialty: str | None = None  # operations only
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        if self.kind == BookingKind.operation:
            payload: dict[str, Any] = {
                "hospital_id": self.hospital_id,
                "doctor_id": self.doctor_id,
                "date": self.date,
                "specialty": self.specialty,
            }
            if self.notes:
                payload["notes"] = self.notes
            return payload

        payload = {
            "doctor_id": self.doctor_id,
            "date": self.date,
            "time_slot": self.time_slot,
        }
        if self.notes:
            payload["reason"] = self.notes
        return payload
