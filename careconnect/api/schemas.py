from __future__ import annotations

from pydantic import BaseModel, Field

from careconnect.core.config import settings
from careconnect.domain.entities.booking import BookingKind, BookingRecord
from careconnect.domain.entities.catalog import CatalogEntry
from careconnect.domain.entities.payment_state import PaymentSnapshot, PaymentStatus


class LoginRequestSchema(BaseModel):
    mobile: str
    password: str


class BookingRequestSchema(BaseModel):
    kind: BookingKind = BookingKind.appointment
    patient_name: str = ""
    phone: str = ""
    date: str = ""
    time: str = ""
    specialty: str = ""
    doctor: str = ""
    hospital: str = ""
    notes: str | None = None

    def form(self) -> dict[str, str | None]:
        return self.model_dump(exclude={"kind"})


class CatalogEntrySchema(BaseModel):
    id: int
    name: str
    specialty: str | None = None

    @staticmethod
    def from_entry(entry: CatalogEntry) -> "CatalogEntrySchema":
        return CatalogEntrySchema(id=entry.id, name=entry.name, specialty=entry.specialty)


class CatalogResponseSchema(BaseModel):
    hospitals: list[CatalogEntrySchema] = Field(default_factory=list)
    doctors: list[CatalogEntrySchema] = Field(default_factory=list)


class BookingSchema(BaseModel):
    id: int
    kind: BookingKind
    status: str
    date: str | None = None
    time_slot: str | None = None

    @staticmethod
    def from_record(record: BookingRecord) -> "BookingSchema":
        return BookingSchema(
            id=record.id,
            kind=record.kind,
            status=record.status.value,
            date=record.date,
            time_slot=record.time_slot,
        )


class PaymentStateSchema(BaseModel):
    status: PaymentStatus
    booking_id: int | None = None
    booking_kind: BookingKind | None = None
    payment_id: int | None = None
    message: str | None = None
    reason: str | None = None
    can_retry: bool = False
    can_submit: bool = True
    polling: bool = False
    next: str | None = None

    @staticmethod
    def from_snapshot(
        snapshot: PaymentSnapshot,
        polling: bool = False,
        can_submit: bool | None = None,
    ) -> "PaymentStateSchema":
        pending = snapshot.pending
        return PaymentStateSchema(
            status=snapshot.status,
            booking_id=pending.booking_id if pending else None,
            booking_kind=pending.booking_kind if pending else None,
            payment_id=pending.payment_id if pending else None,
            message=snapshot.message,
            reason=snapshot.reason.value if snapshot.reason else None,
            can_retry=snapshot.can_retry,
            can_submit=snapshot.can_submit if can_submit is None else can_submit,
            polling=polling,
            next=settings.APPOINTMENTS_VIEW_PATH if snapshot.status == PaymentStatus.success else None,
        )


class BookingResponseSchema(BaseModel):
    action: str
    booking: BookingSchema | None = None
    payment: PaymentStateSchema | None = None
    checkout_url: str | None = None
