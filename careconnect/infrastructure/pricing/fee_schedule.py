from __future__ import annotations

from careconnect.application.ports.pricing import PricingPort, Quote
from careconnect.core.config import settings
from careconnect.domain.entities.booking import BookingKind, BookingRequest


class FeeSchedulePricing(PricingPort):
    """Flat fee per booking kind, with optional per-hospital overrides."""

    def __init__(
        self,
        appointment_fee: int | None = None,
        operation_fee: int | None = None,
        currency: str | None = None,
        hospital_fees: dict[int, int] | None = None,
    ) -> None:
        self._fees = {
            BookingKind.appointment: appointment_fee if appointment_fee is not None else settings.APPOINTMENT_FEE,
            BookingKind.operation: operation_fee if operation_fee is not None else settings.OPERATION_FEE,
        }
        self._currency = currency or settings.CURRENCY
        self._hospital_fees = hospital_fees if hospital_fees is not None else dict(settings.HOSPITAL_FEES)

    def quote(self, request: BookingRequest) -> Quote:
        amount = self._hospital_fees.get(request.hospital_id, self._fees[request.kind])
        return Quote(amount=amount, currency=self._currency)
