from __future__ import annotations

import logging

from pydantic import ValidationError as SchemaError

from careconnect.application.dto.backend import PaymentOrderResponseDTO, PaymentStatusResponseDTO
from careconnect.application.exceptions import (
    AuthenticationRequired,
    BackendError,
    OrderCreationFailed,
    TransientQueryError,
)
from careconnect.application.ports.payment_orders import PaymentOrderPort
from careconnect.domain.entities.booking import BookingKind
from careconnect.domain.entities.payment_state import GatewayStatus, PaymentOrder
from careconnect.infrastructure.backend.api_client import BackendApiClient


class HttpPaymentOrderClient(PaymentOrderPort):
    def __init__(self, api: BackendApiClient) -> None:
        self._api = api
        self._logger = logging.getLogger(__name__)

    async def create_order(
        self,
        booking_id: int,
        booking_kind: BookingKind,
        amount: int,
        currency: str,
    ) -> PaymentOrder:
        payload = {
            "bookingId": booking_id,
            "bookingKind": booking_kind.value,
            "amount": amount,
            "currency": currency,
        }
        try:
            data = await self._api.post("/payments/orders", payload)
        except AuthenticationRequired:
            raise
        except BackendError as e:
            raise OrderCreationFailed(f"Failed to create payment order: {e.detail}") from e

        try:
            parsed = PaymentOrderResponseDTO.model_validate(data or {})
        except SchemaError as e:
            raise OrderCreationFailed(f"Invalid payment order response: {e}") from e

        if not parsed.payment_session_id:
            raise OrderCreationFailed("Invalid payment order response. Missing payment_session_id.")
        if parsed.payment_id is None:
            raise OrderCreationFailed("Invalid payment order response. Missing payment_id.")

        self._logger.info(
            "Payment order created",
            extra={"booking_id": booking_id, "payment_id": parsed.payment_id, "amount": amount},
        )
        return PaymentOrder(payment_id=parsed.payment_id, payment_session_id=parsed.payment_session_id)

    async def fetch_status(self, payment_id: int) -> GatewayStatus:
        try:
            data = await self._api.get(f"/payments/{payment_id}/status")
        except AuthenticationRequired:
            raise
        except BackendError as e:
            raise TransientQueryError(e.detail, e.status_code) from e

        try:
            parsed = PaymentStatusResponseDTO.model_validate(data or {})
        except SchemaError as e:
            raise TransientQueryError(f"Invalid payment status response: {e}") from e

        return GatewayStatus.from_backend(parsed.status)
