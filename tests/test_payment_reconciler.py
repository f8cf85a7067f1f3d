"""
Tests for the payment confirmation state machine.

Polling runs against FakeSleep, so thirty ten-second waits finish instantly
while the requested intervals are still recorded.
"""

from __future__ import annotations

import pytest

from careconnect.application.exceptions import AuthenticationRequired, PaymentInProgress, TransientQueryError
from careconnect.application.use_cases.payment_reconciler import TIMEOUT_MESSAGE
from careconnect.domain.entities.booking import BookingKind, BookingRecord
from careconnect.domain.entities.payment_state import (
    FailureReason,
    GatewayStatus,
    PaymentOrder,
    PaymentStatus,
    PendingPaymentState,
)

from conftest import NOW, FakePayments

HOUR_MS = 60 * 60 * 1000

BOOKING = BookingRecord(id=101, kind=BookingKind.appointment)
ORDER = PaymentOrder(payment_id=555, payment_session_id="sess_abc")


def _record(age_ms: int = 0) -> PendingPaymentState:
    return PendingPaymentState(
        booking_id=101,
        booking_kind=BookingKind.appointment,
        payment_id=555,
        payment_session_id="sess_abc",
        created_at_ms=int(NOW * 1000) - age_ms,
    )


@pytest.mark.asyncio
async def test_begin_persists_opens_checkout_and_polls_until_completed(make_reconciler, store, launcher, clock):
    payments = FakePayments(GatewayStatus.pending, GatewayStatus.completed)
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.begin(BOOKING, ORDER)

    assert snapshot.status == PaymentStatus.pending
    assert store.get() == _record()
    assert launcher.opened == ["sess_abc"]
    assert not reconciler.can_submit()

    await reconciler.join()

    assert reconciler.snapshot.status == PaymentStatus.success
    assert reconciler.snapshot.pending is None
    assert store.get() is None
    assert payments.status_calls == [555, 555]
    assert reconciler.can_submit()


@pytest.mark.asyncio
async def test_polling_gives_up_after_thirty_attempts_and_keeps_record(make_reconciler, store, sleep):
    payments = FakePayments(GatewayStatus.pending)
    reconciler = make_reconciler(payments)

    await reconciler.begin(BOOKING, ORDER)
    await reconciler.join()

    assert sleep.calls == [10.0] * 30
    assert len(payments.status_calls) == 30
    assert reconciler.snapshot.status == PaymentStatus.failed
    assert reconciler.snapshot.reason == FailureReason.timeout
    assert reconciler.snapshot.message == TIMEOUT_MESSAGE
    assert reconciler.snapshot.can_retry
    assert store.get() is not None
    assert not reconciler.polling


@pytest.mark.asyncio
async def test_resume_after_redirect_polls_until_declined(make_reconciler, store, sleep):
    store.set(_record(age_ms=2 * 60 * 1000))
    payments = FakePayments(GatewayStatus.pending, GatewayStatus.pending, GatewayStatus.pending, GatewayStatus.failed)
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.resume()
    assert snapshot.status == PaymentStatus.pending
    assert reconciler.polling

    await reconciler.join()

    assert len(payments.status_calls) == 4
    assert sleep.calls == [10.0] * 3
    assert reconciler.snapshot.status == PaymentStatus.failed
    assert reconciler.snapshot.reason == FailureReason.declined
    assert store.get() is None


@pytest.mark.parametrize("age_hours", [25, 30])
@pytest.mark.asyncio
async def test_stale_record_is_discarded_without_querying(make_reconciler, store, age_hours):
    store.set(_record(age_ms=age_hours * HOUR_MS))
    payments = FakePayments(GatewayStatus.completed)
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.resume()

    assert snapshot.status == PaymentStatus.idle
    assert payments.status_calls == []
    assert store.get() is None
    assert not reconciler.polling


@pytest.mark.asyncio
async def test_record_just_inside_window_is_verified(make_reconciler, store):
    store.set(_record(age_ms=24 * HOUR_MS))
    payments = FakePayments(GatewayStatus.completed)
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.resume()

    assert snapshot.status == PaymentStatus.success
    assert payments.status_calls == [555]


@pytest.mark.asyncio
async def test_resume_without_record_stays_idle(make_reconciler):
    payments = FakePayments()
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.resume()

    assert snapshot.status == PaymentStatus.idle
    assert payments.status_calls == []
    assert reconciler.can_submit()


@pytest.mark.asyncio
async def test_begin_refused_while_record_exists(make_reconciler, store, launcher):
    store.set(_record())
    reconciler = make_reconciler(FakePayments())

    assert not reconciler.can_submit()
    with pytest.raises(PaymentInProgress):
        await reconciler.begin(BookingRecord(id=102, kind=BookingKind.operation), PaymentOrder(556, "sess_def"))

    assert store.get().payment_id == 555
    assert launcher.opened == []


@pytest.mark.asyncio
async def test_launcher_failure_clears_record(make_reconciler, store, launcher):
    launcher.available = False
    payments = FakePayments()
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.begin(BOOKING, ORDER)

    assert snapshot.status == PaymentStatus.failed
    assert snapshot.reason == FailureReason.launcher_unavailable
    assert store.get() is None
    assert not reconciler.polling
    assert payments.status_calls == []
    assert reconciler.can_submit()


@pytest.mark.asyncio
async def test_query_error_keeps_record_and_polling_continues(make_reconciler, store):
    payments = FakePayments(TransientQueryError("Gateway timeout", 504), GatewayStatus.completed)
    reconciler = make_reconciler(payments)
    seen = []
    reconciler.subscribe(seen.append)

    await reconciler.begin(BOOKING, ORDER)
    await reconciler.join()

    failures = [s for s in seen if s.status == PaymentStatus.failed]
    assert len(failures) == 1
    assert failures[0].reason == FailureReason.query_error
    assert failures[0].pending is not None
    assert failures[0].can_retry
    assert reconciler.snapshot.status == PaymentStatus.success
    assert len(payments.status_calls) == 2


@pytest.mark.asyncio
async def test_unauthorized_query_stops_polling_and_keeps_record(make_reconciler, store):
    payments = FakePayments(AuthenticationRequired("Not authenticated", 401))
    reconciler = make_reconciler(payments)

    await reconciler.begin(BOOKING, ORDER)
    await reconciler.join()

    assert payments.status_calls == [555]
    assert reconciler.snapshot.status == PaymentStatus.failed
    assert reconciler.snapshot.reason == FailureReason.login_required
    assert store.get() is not None


@pytest.mark.asyncio
async def test_stop_keeps_record_for_next_resume(make_reconciler, store):
    payments = FakePayments(GatewayStatus.pending)
    reconciler = make_reconciler(payments)

    await reconciler.begin(BOOKING, ORDER)
    reconciler.stop()
    await reconciler.join()

    assert not reconciler.polling
    assert store.get() == _record()
    assert payments.status_calls == []


@pytest.mark.asyncio
async def test_retry_reuses_stored_payment_id(make_reconciler, store):
    payments = FakePayments(GatewayStatus.pending)
    reconciler = make_reconciler(payments, max_attempts=2)

    await reconciler.begin(BOOKING, ORDER)
    await reconciler.join()
    assert reconciler.snapshot.reason == FailureReason.timeout

    payments.script = [GatewayStatus.completed]
    snapshot = await reconciler.retry()

    assert snapshot.status == PaymentStatus.success
    assert payments.status_calls == [555, 555, 555]
    assert payments.orders == []
    assert store.get() is None


@pytest.mark.asyncio
async def test_resume_replaces_running_poller(make_reconciler, sleep):
    payments = FakePayments(GatewayStatus.pending)
    reconciler = make_reconciler(payments, max_attempts=3)

    await reconciler.begin(BOOKING, ORDER)
    await reconciler.resume()
    await reconciler.join()

    # The immediate check is attempt 1; the surviving poller runs attempts 2 and 3.
    assert len(payments.status_calls) == 3
    assert len(sleep.calls) == 2


@pytest.mark.asyncio
async def test_redirect_parameters_never_decide_success(make_reconciler, store):
    store.set(_record())
    payments = FakePayments(GatewayStatus.pending)
    reconciler = make_reconciler(payments)

    snapshot = await reconciler.acknowledge_redirect({"order_status": "PAID", "status": "success"})

    assert snapshot.status == PaymentStatus.pending
    assert payments.status_calls == [555]
    assert store.get() is not None
    reconciler.stop()


@pytest.mark.asyncio
async def test_listeners_can_unsubscribe(make_reconciler, store):
    store.set(_record())
    reconciler = make_reconciler(FakePayments(GatewayStatus.completed))
    seen = []
    unsubscribe = reconciler.subscribe(seen.append)
    unsubscribe()

    await reconciler.resume()

    assert seen == []
    assert reconciler.snapshot.status == PaymentStatus.success


@pytest.mark.asyncio
async def test_resumed_payment_also_stops_at_thirty_queries(make_reconciler, store, sleep):
    store.set(_record(age_ms=5 * 60 * 1000))
    payments = FakePayments(GatewayStatus.pending)
    reconciler = make_reconciler(payments)

    await reconciler.resume()
    await reconciler.join()

    assert len(payments.status_calls) == 30
    assert sleep.calls == [10.0] * 29
    assert reconciler.snapshot.reason == FailureReason.timeout
    assert store.get() is not None


@pytest.mark.asyncio
async def test_failing_listener_does_not_stall_polling(make_reconciler, store):
    payments = FakePayments(GatewayStatus.pending, GatewayStatus.completed)
    reconciler = make_reconciler(payments)
    seen = []

    def broken(snapshot):
        raise RuntimeError("render failed")

    reconciler.subscribe(broken)
    reconciler.subscribe(seen.append)

    await reconciler.begin(BOOKING, ORDER)
    await reconciler.join()

    assert reconciler.snapshot.status == PaymentStatus.success
    assert seen[-1].status == PaymentStatus.success
    assert store.get() is None


@pytest.mark.asyncio
async def test_reservation_blocks_other_submissions_but_not_its_own_begin(make_reconciler, store):
    reconciler = make_reconciler(FakePayments(GatewayStatus.pending))

    assert reconciler.reserve()
    assert not reconciler.can_submit()
    assert not reconciler.reserve()

    await reconciler.begin(BOOKING, ORDER)
    reconciler.release()
    reconciler.stop()
    await reconciler.join()

    assert store.get() is not None
    assert not reconciler.can_submit()
    assert not reconciler.reserve()
