from __future__ import annotations

from abc import ABC, abstractmethod

from careconnect.domain.entities.booking import BookingKind, BookingRecord, BookingRequest


class BookingClientPort(ABC):
    @abstractmethod
    async def create(self, kind: BookingKind, request: BookingRequest) -> BookingRecord:
        """
        Submit a booking. One backend write; callers must not retry it.

        Raises:
            AuthenticationRequired: no valid session
            ValidationRejected: backend refused the payload (e.g. slot taken)
            BackendUnavailable: network failure or 5xx
        """
        raise NotImplementedError

    @abstractmethod
    async def list_mine(self, kind: BookingKind) -> list[BookingRecord]:
        """List the current user's bookings of one kind."""
        raise NotImplementedError
