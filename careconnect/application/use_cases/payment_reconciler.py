from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Mapping

from careconnect.application.exceptions import (
    AuthenticationRequired,
    LauncherUnavailable,
    PaymentInProgress,
    TransientQueryError,
)
from careconnect.application.ports.checkout import CheckoutLauncherPort
from careconnect.application.ports.payment_orders import PaymentOrderPort
from careconnect.application.ports.payment_state_store import PaymentStateStorePort
from careconnect.application.utils.poll_scheduler import PollScheduler
from careconnect.domain.entities.booking import BookingRecord
from careconnect.domain.entities.payment_state import (
    STALE_AFTER_MS,
    FailureReason,
    GatewayStatus,
    PaymentOrder,
    PaymentSnapshot,
    PaymentStatus,
    PendingPaymentState,
)

DECLINED_MESSAGE = "Payment failed. Please try again."
TIMEOUT_MESSAGE = "Payment verification timed out. Please check your booking status manually."
LOGIN_MESSAGE = "Your session expired. Please log in again to check your payment."
SUCCESS_MESSAGE = "Payment successful. Your booking has been confirmed!"

Listener = Callable[[PaymentSnapshot], None]


class PaymentReconciler:
    """
    Payment confirmation state machine: Idle -> Pending -> Verifying -> Success | Failed.

    Success is only ever derived from the backend status query. Redirect
    parameters and SDK callbacks are advisory and always followed by a query.

    The pending record lives in the store so reconciliation survives the
    checkout redirect and process restarts. It is removed on Success, on an
    explicit FAILED answer, when checkout cannot be opened, or when it is
    older than the stale window. Query errors, timeouts and 401s keep it so
    the user can check again.
    """

    def __init__(
        self,
        store: PaymentStateStorePort,
        payments: PaymentOrderPort,
        launcher: CheckoutLauncherPort,
        poll_interval: float = 10.0,
        max_attempts: int = 30,
        stale_after_ms: int = STALE_AFTER_MS,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._payments = payments
        self._launcher = launcher
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._stale_after_ms = stale_after_ms
        self._clock = clock
        self._sleep = sleep
        self._scheduler = PollScheduler(name="payment-status-poller")
        self._snapshot = PaymentSnapshot()
        self._reserved = False
        self._listeners: list[Listener] = []
        self._logger = logging.getLogger(__name__)

    @property
    def snapshot(self) -> PaymentSnapshot:
        return self._snapshot

    @property
    def polling(self) -> bool:
        return self._scheduler.active

    def can_submit(self) -> bool:
        """False while a payment is unresolved or a submission is in flight; the booking form stays disabled."""
        return not self._reserved and self._accepts_payment()

    def reserve(self) -> bool:
        """
        Claim the single submission slot before the first backend write.

        Returns False when another submission holds it or a payment is unresolved.
        The holder calls begin() and then release().
        """
        if not self.can_submit():
            return False
        self._reserved = True
        return True

    def release(self) -> None:
        self._reserved = False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def begin(self, booking: BookingRecord, order: PaymentOrder) -> PaymentSnapshot:
        """Idle -> Pending: persist the record, open checkout, start polling."""
        if not self._accepts_payment():
            raise PaymentInProgress("Another payment is still being confirmed.")

        record = PendingPaymentState(
            booking_id=booking.id,
            booking_kind=booking.kind,
            payment_id=order.payment_id,
            payment_session_id=order.payment_session_id,
            created_at_ms=self._now_ms(),
        )
        self._store.set(record)
        self._transition(PaymentStatus.pending, record)

        try:
            await self._launcher.open(record.payment_session_id)
        except LauncherUnavailable as e:
            self._store.clear()
            self._transition(
                PaymentStatus.failed,
                None,
                message=str(e) or "Failed to initialize payment. Please try again.",
                reason=FailureReason.launcher_unavailable,
            )
            return self._snapshot

        self._scheduler.start(lambda: self._poll(record))
        return self._snapshot

    async def resume(self) -> PaymentSnapshot:
        """On mount: pick up a persisted record and ask the backend where it stands."""
        record = self._load_fresh()
        if record is None:
            if self._snapshot.status in (PaymentStatus.pending, PaymentStatus.verifying):
                self._transition(PaymentStatus.idle, None)
            return self._snapshot

        self._scheduler.cancel()
        settled = await self._verify(record)
        if not settled:
            # The immediate query above counts as attempt 1.
            self._scheduler.start(lambda: self._poll(record, first_attempt=2))
        return self._snapshot

    async def retry(self) -> PaymentSnapshot:
        """Manual 'check again': reuses the stored payment id, never creates an order."""
        return await self.resume()

    async def acknowledge_redirect(self, params: Mapping[str, str]) -> PaymentSnapshot:
        """Gateway redirect landed. Its parameters are logged, never trusted."""
        self._logger.info(
            "Checkout redirect received",
            extra={"advisory_status": params.get("status") or params.get("order_status")},
        )
        return await self.resume()

    def stop(self) -> None:
        """On unmount: stop polling, keep the record for the next mount."""
        self._scheduler.cancel()

    async def join(self) -> None:
        await self._scheduler.join()

    async def _poll(self, record: PendingPaymentState, first_attempt: int = 1) -> None:
        for attempt in range(first_attempt, self._max_attempts + 1):
            await self._sleep(self._poll_interval)
            if await self._verify(record, attempt=attempt):
                return

        self._logger.warning(
            "Payment verification timed out",
            extra={"payment_id": record.payment_id, "attempt": self._max_attempts},
        )
        self._transition(
            PaymentStatus.failed,
            record,
            message=TIMEOUT_MESSAGE,
            reason=FailureReason.timeout,
        )

    async def _verify(self, record: PendingPaymentState, attempt: int | None = None) -> bool:
        """One status query. Returns True once nothing further should be polled."""
        self._transition(PaymentStatus.verifying, record)

        try:
            status = await self._payments.fetch_status(record.payment_id)
        except AuthenticationRequired:
            self._transition(
                PaymentStatus.failed,
                record,
                message=LOGIN_MESSAGE,
                reason=FailureReason.login_required,
            )
            return True
        except TransientQueryError as e:
            self._logger.warning(
                "Payment status query failed",
                extra={"payment_id": record.payment_id, "attempt": attempt, "error": str(e)},
            )
            self._transition(
                PaymentStatus.failed,
                record,
                message=e.detail or "Failed to verify payment status",
                reason=FailureReason.query_error,
            )
            return False

        self._logger.info(
            "Payment status",
            extra={"payment_id": record.payment_id, "status": status.value, "attempt": attempt},
        )

        if status == GatewayStatus.completed:
            self._store.clear()
            self._transition(PaymentStatus.success, None, message=SUCCESS_MESSAGE)
            return True

        if status == GatewayStatus.failed:
            self._store.clear()
            self._transition(
                PaymentStatus.failed,
                None,
                message=DECLINED_MESSAGE,
                reason=FailureReason.declined,
            )
            return True

        self._transition(PaymentStatus.pending, record)
        return False

    def _accepts_payment(self) -> bool:
        return self._snapshot.can_submit and self._store.get() is None

    def _load_fresh(self) -> PendingPaymentState | None:
        record = self._store.get()
        if record is None:
            return None
        if record.is_stale(self._now_ms(), self._stale_after_ms):
            self._logger.info(
                "Discarding stale payment state",
                extra={"payment_id": record.payment_id, "booking_id": record.booking_id},
            )
            self._store.clear()
            return None
        return record

    def _transition(
        self,
        status: PaymentStatus,
        record: PendingPaymentState | None,
        message: str | None = None,
        reason: FailureReason | None = None,
    ) -> None:
        previous = self._snapshot
        self._snapshot = PaymentSnapshot(status=status, pending=record, message=message, reason=reason)
        if previous.status != status:
            self._logger.info(
                "Payment state changed",
                extra={
                    "status": status.value,
                    "payment_id": record.payment_id if record else None,
                    "reason": reason.value if reason else None,
                },
            )
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                self._logger.exception("Payment listener failed", extra={"status": status.value})

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
