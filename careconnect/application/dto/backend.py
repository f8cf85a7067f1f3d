from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from careconnect.domain.entities.booking import BookingKind, BookingRecord, BookingStatus
from careconnect.domain.entities.catalog import CatalogEntry


class BookingResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    status: str | None = None
    date: str | None = Field(default=None, validation_alias=AliasChoices("date", "operation_date"))
    time_slot: str | None = Field(default=None, validation_alias=AliasChoices("time_slot", "timeSlot"))

    def to_record(self, kind: BookingKind) -> BookingRecord:
        return BookingRecord(
            id=self.id,
            kind=kind,
            status=BookingStatus.from_backend(self.status),
            date=self.date,
            time_slot=self.time_slot,
        )


class PaymentOrderResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment_id: int | None = Field(default=None, validation_alias=AliasChoices("paymentId", "payment_id"))
    payment_session_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("paymentSessionId", "payment_session_id"),
    )


class PaymentStatusResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str


class CatalogEntryDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    specialty: str | None = None

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(id=self.id, name=self.name, specialty=self.specialty)


class LoginResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    user: dict[str, Any] | None = None
