from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from careconnect.application.exceptions import (
    AuthenticationRequired,
    BackendError,
    OrderCreationFailed,
    PaymentInProgress,
    ValidationRejected,
)
from careconnect.application.ports.booking_client import BookingClientPort
from careconnect.application.ports.catalog import CatalogPort
from careconnect.application.ports.payment_orders import PaymentOrderPort
from careconnect.application.ports.pricing import PricingPort
from careconnect.application.use_cases.payment_reconciler import PaymentReconciler
from careconnect.application.utils.booking_request_builder import ValidationError, build_booking_request
from careconnect.domain.entities.booking import BookingKind, BookingRecord
from careconnect.domain.entities.catalog import Catalog
from careconnect.domain.entities.payment_state import PaymentSnapshot, PaymentStatus


@dataclass(frozen=True)
class BookingOutcome:
    # "busy", "invalid", "login_required", "rejected", "unavailable",
    # "order_failed", "checkout_opened", "checkout_failed"
    action: str
    message: str | None = None
    field_errors: dict[str, str] | None = None
    booking: BookingRecord | None = None
    payment: PaymentSnapshot | None = None


class BookAppointmentUseCase:
    """
    Booking form submission: build request -> create booking -> create payment
    order -> hand over to the reconciler, which persists and opens checkout.

    Booking creation is never retried here. A retry would create a second
    booking, so every failure goes back to the user.
    """

    def __init__(
        self,
        bookings: BookingClientPort,
        payments: PaymentOrderPort,
        catalog: CatalogPort,
        pricing: PricingPort,
        reconciler: PaymentReconciler,
        is_authenticated: Callable[[], bool],
    ) -> None:
        self._bookings = bookings
        self._payments = payments
        self._catalog = catalog
        self._pricing = pricing
        self._reconciler = reconciler
        self._is_authenticated = is_authenticated
        self._loaded_catalog: Catalog | None = None
        self._logger = logging.getLogger(__name__)

    async def load_catalog(self, refresh: bool = False) -> Catalog:
        """Hospitals and doctors for the form, loaded once like the page does on mount."""
        if refresh or self._loaded_catalog is None or self._loaded_catalog.is_empty:
            self._loaded_catalog = await self._catalog.load()
        return self._loaded_catalog

    async def execute(
        self,
        kind: BookingKind,
        form: Mapping[str, Any],
        catalog: Catalog | None = None,
    ) -> BookingOutcome:
        # Reserved until _submit returns; an overlapping submission gets "busy".
        if not self._reconciler.reserve():
            return BookingOutcome(
                action="busy",
                message="A payment is still being confirmed. Please wait or check its status.",
                payment=self._reconciler.snapshot,
            )
        try:
            return await self._submit(kind, form, catalog)
        finally:
            self._reconciler.release()

    async def _submit(self, kind: BookingKind, form: Mapping[str, Any], catalog: Catalog | None) -> BookingOutcome:
        if catalog is None:
            catalog = await self.load_catalog()

        built = build_booking_request(kind, form, catalog)
        if isinstance(built, ValidationError):
            return BookingOutcome(action="invalid", message=built.message, field_errors=built.field_errors)

        if not self._is_authenticated():
            return BookingOutcome(action="login_required", message="Please login to book an appointment.")

        try:
            booking = await self._bookings.create(kind, built)
        except AuthenticationRequired:
            return BookingOutcome(action="login_required", message="Please login to book an appointment.")
        except ValidationRejected as e:
            return BookingOutcome(action="rejected", message=e.detail)
        except BackendError as e:
            self._logger.error("Booking failed", extra={"booking_kind": kind.value, "error": str(e)})
            return BookingOutcome(action="unavailable", message=e.detail)

        quote = self._pricing.quote(built)
        try:
            order = await self._payments.create_order(booking.id, booking.kind, quote.amount, quote.currency)
        except AuthenticationRequired:
            return BookingOutcome(
                action="login_required",
                message="Please login again to pay for your booking.",
                booking=booking,
            )
        except OrderCreationFailed as e:
            # The booking stays pending server-side; the user starts over.
            self._logger.error(
                "Payment order failed",
                extra={"booking_id": booking.id, "error": str(e)},
            )
            return BookingOutcome(
                action="order_failed",
                message=f"{e} Please try booking again.",
                booking=booking,
            )

        try:
            snapshot = await self._reconciler.begin(booking, order)
        except PaymentInProgress as e:
            return BookingOutcome(action="busy", message=str(e), booking=booking, payment=self._reconciler.snapshot)

        if snapshot.status == PaymentStatus.failed:
            return BookingOutcome(action="checkout_failed", message=snapshot.message, booking=booking, payment=snapshot)
        return BookingOutcome(action="checkout_opened", booking=booking, payment=snapshot)
