from __future__ import annotations

from abc import ABC, abstractmethod

from careconnect.domain.entities.booking import BookingKind
from careconnect.domain.entities.payment_state import GatewayStatus, PaymentOrder


class PaymentOrderPort(ABC):
    @abstractmethod
    async def create_order(
        self,
        booking_id: int,
        booking_kind: BookingKind,
        amount: int,
        currency: str,
    ) -> PaymentOrder:
        """
        Create a new server-side payment order for one pending booking.

        Every call creates a new order. Raises OrderCreationFailed when the
        backend answers without a checkout session token.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_status(self, payment_id: int) -> GatewayStatus:
        """
        Read the backend's view of a payment. Read only, safe to repeat.

        Raises TransientQueryError for failures the next poll may not hit,
        AuthenticationRequired on 401.
        """
        raise NotImplementedError
