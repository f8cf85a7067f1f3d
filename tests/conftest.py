"""
Shared fakes for booking and payment tests.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from careconnect.application.ports.payment_orders import PaymentOrderPort
from careconnect.application.use_cases.payment_reconciler import PaymentReconciler
from careconnect.domain.entities.booking import BookingKind
from careconnect.domain.entities.payment_state import GatewayStatus, PaymentOrder
from careconnect.infrastructure.backend.api_client import BackendApiClient
from careconnect.infrastructure.backend.auth_session import AuthSession
from careconnect.infrastructure.checkout.hosted_checkout import MockCheckoutLauncher
from careconnect.infrastructure.store.memory_store import MemoryLocalStorage
from careconnect.infrastructure.store.payment_state_store import LocalPaymentStateStore

BASE_URL = "http://backend.test/api"
NOW = 1_714_550_400.0  # 2024-05-01T08:00:00Z


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeSleep:
    """Records requested waits and yields to the loop instead of sleeping."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class FakePayments(PaymentOrderPort):
    """Scripted status answers; the last one repeats once the script runs out."""

    def __init__(self, *script: GatewayStatus | Exception) -> None:
        self.script = list(script) or [GatewayStatus.pending]
        self.status_calls: list[int] = []
        self.orders: list[tuple[int, BookingKind, int, str]] = []

    async def create_order(self, booking_id: int, booking_kind: BookingKind, amount: int, currency: str) -> PaymentOrder:
        self.orders.append((booking_id, booking_kind, amount, currency))
        return PaymentOrder(payment_id=555, payment_session_id="sess_abc")

    async def fetch_status(self, payment_id: int) -> GatewayStatus:
        self.status_calls.append(payment_id)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item


class FakeBackend:
    """Routes (method, path) to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response] | httpx.Response] = {}
        self.requests: list[httpx.Request] = []
        # Seconds each response is held back, so concurrent callers overlap.
        self.delay = 0.0

    def add(self, method: str, path: str, response: Callable[[httpx.Request], httpx.Response] | httpx.Response) -> None:
        self.routes[(method, path)] = response

    def json_bodies(self, method: str, path: str) -> list[Any]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == method and r.url.path == path
        ]

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        if callable(route):
            return route(request)
        return route

    def transport(self) -> httpx.MockTransport:
        async def handler(request: httpx.Request) -> httpx.Response:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.handle(request)

        return httpx.MockTransport(handler)


@pytest.fixture
def storage() -> MemoryLocalStorage:
    return MemoryLocalStorage()


@pytest.fixture
def store(storage: MemoryLocalStorage) -> LocalPaymentStateStore:
    return LocalPaymentStateStore(storage)


@pytest.fixture
def launcher() -> MockCheckoutLauncher:
    return MockCheckoutLauncher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend: FakeBackend, storage: MemoryLocalStorage) -> BackendApiClient:
    session = AuthSession(storage)
    session.set_token("tok_123")
    return BackendApiClient(base_url=BASE_URL, session=session, transport=backend.transport())


@pytest.fixture
def make_reconciler(store, launcher, clock, sleep):
    def _make(payments: PaymentOrderPort, **kwargs: Any) -> PaymentReconciler:
        options: dict[str, Any] = {"store": store, "payments": payments, "launcher": launcher, "clock": clock, "sleep": sleep}
        options.update(kwargs)
        return PaymentReconciler(**options)

    return _make
