from __future__ import annotations

from abc import ABC, abstractmethod

from careconnect.domain.entities.payment_state import PendingPaymentState


class PaymentStateStorePort(ABC):
    @abstractmethod
    def get(self) -> PendingPaymentState | None:
        """Return the in-flight record, or None when idle or unreadable."""
        raise NotImplementedError

    @abstractmethod
    def set(self, state: PendingPaymentState) -> None:
        """Persist the record, replacing whatever was there. Survives process restart."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError
