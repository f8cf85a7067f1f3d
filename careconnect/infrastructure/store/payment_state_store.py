from __future__ import annotations

import json
import logging
from typing import Any

from careconnect.application.ports.key_value_storage import KeyValueStoragePort
from careconnect.application.ports.payment_state_store import PaymentStateStorePort
from careconnect.domain.entities.booking import BookingKind
from careconnect.domain.entities.payment_state import PendingPaymentState

PAYMENT_STATE_KEY = "pending_payment_state"


class LocalPaymentStateStore(PaymentStateStorePort):
    """Single-slot store: one pending payment record under a fixed key."""

    def __init__(self, storage: KeyValueStoragePort, key: str = PAYMENT_STATE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._logger = logging.getLogger(__name__)

    def get(self) -> PendingPaymentState | None:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None

        try:
            return self._deserialize(json.loads(raw))
        except (ValueError, TypeError, KeyError) as e:
            # Unreadable records cannot be reconciled; drop them.
            self._logger.warning("Discarding invalid payment state", extra={"error": str(e)})
            self._storage.remove_item(self._key)
            return None

    def set(self, state: PendingPaymentState) -> None:
        self._storage.set_item(self._key, json.dumps(self._serialize(state)))

    def clear(self) -> None:
        self._storage.remove_item(self._key)

    def _serialize(self, state: PendingPaymentState) -> dict[str, Any]:
        return {
            "bookingId": state.booking_id,
            "bookingKind": state.booking_kind.value,
            "paymentId": state.payment_id,
            "paymentSessionId": state.payment_session_id,
            "timestamp": state.created_at_ms,
        }

    def _deserialize(self, data: dict[str, Any]) -> PendingPaymentState:
        if not isinstance(data, dict):
            raise TypeError("payment state must be an object")
        session_id = data["paymentSessionId"]
        if not isinstance(session_id, str) or not session_id:
            raise ValueError("paymentSessionId must be a non-empty string")
        return PendingPaymentState(
            booking_id=int(data["bookingId"]),
            booking_kind=BookingKind(data["bookingKind"]),
            payment_id=int(data["paymentId"]),
            payment_session_id=session_id,
            created_at_ms=int(data["timestamp"]),
        )
