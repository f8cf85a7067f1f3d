from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from careconnect.domain.entities.booking import BookingKind

STALE_AFTER_MS = 24 * 60 * 60 * 1000


class PaymentStatus(str, Enum):
    idle = "idle"
    pending = "pending"
    verifying = "verifying"
    success = "success"
    failed = "failed"


class GatewayStatus(str, Enum):
    """Payment status as reported by the backend. The only trusted source."""

    pending = "PENDING"
    completed = "COMPLETED"
    failed = "FAILED"

    @staticmethod
    def from_backend(value: str | None) -> "GatewayStatus":
        # Anything the backend has not settled yet keeps us polling.
        normalized = str(value or "").strip().upper()
        if normalized == "COMPLETED":
            return GatewayStatus.completed
        if normalized == "FAILED":
            return GatewayStatus.failed
        return GatewayStatus.pending


class FailureReason(str, Enum):
    declined = "declined"
    timeout = "timeout"
    query_error = "query_error"
    login_required = "login_required"
    launcher_unavailable = "launcher_unavailable"


@dataclass(frozen=True)
class PaymentOrder:
    payment_id: int
    payment_session_id: str


@dataclass(frozen=True)
class PendingPaymentState:
    booking_id: int
    booking_kind: BookingKind
    payment_id: int  # reconciliation key for status queries
    payment_session_id: str  # single use, opens checkout only
    created_at_ms: int

    def is_stale(self, now_ms: int, stale_after_ms: int = STALE_AFTER_MS) -> bool:
        return now_ms - self.created_at_ms > stale_after_ms


@dataclass(frozen=True)
class PaymentSnapshot:
    status: PaymentStatus = PaymentStatus.idle
    pending: PendingPaymentState | None = None
    message: str | None = None
    reason: FailureReason | None = None

    @property
    def can_retry(self) -> bool:
        return self.pending is not None and self.status in (PaymentStatus.pending, PaymentStatus.failed)

    @property
    def can_submit(self) -> bool:
        return self.pending is None and self.status not in (PaymentStatus.pending, PaymentStatus.verifying)
