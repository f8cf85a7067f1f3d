from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from careconnect.domain.entities.booking import BookingRequest


@dataclass(frozen=True)
class Quote:
    amount: int
    currency: str


class PricingPort(ABC):
    @abstractmethod
    def quote(self, request: BookingRequest) -> Quote:
        """Amount to collect for a booking."""
        raise NotImplementedError
