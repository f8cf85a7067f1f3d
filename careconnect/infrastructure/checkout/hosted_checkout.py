from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

import httpx

from careconnect.application.exceptions import LauncherUnavailable
from careconnect.application.ports.checkout import CheckoutLauncherPort, NavigatorPort
from careconnect.core.config import settings


class HostedCheckoutHandle:
    def __init__(self, page_url: str, mode: str, navigator: NavigatorPort) -> None:
        self._page_url = page_url
        self._mode = mode
        self._navigator = navigator

    def checkout(self, payment_session_id: str, redirect_target: str = "_self") -> None:
        if redirect_target != "_self":
            raise ValueError(f"Unsupported redirect target: {redirect_target}")
        url = self._page_url.format(session_id=quote(payment_session_id, safe=""), mode=self._mode)
        self._navigator.navigate(url)


class HostedCheckoutSdk:
    """Loads the gateway's hosted checkout SDK. Loading fails when the SDK host is unreachable."""

    def __init__(
        self,
        navigator: NavigatorPort,
        sdk_url: str | None = None,
        page_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._navigator = navigator
        self._sdk_url = sdk_url or settings.CHECKOUT_SDK_URL
        self._page_url = page_url or settings.CHECKOUT_PAGE_URL
        self._timeout = timeout or settings.CHECKOUT_TIMEOUT_SECONDS
        self._transport = transport
        self._logger = logging.getLogger(__name__)

    async def load(self, mode: str) -> HostedCheckoutHandle:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._sdk_url)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            self._logger.error("Checkout SDK failed to load", extra={"error": str(e)})
            raise LauncherUnavailable("Failed to load payment SDK. Check your connection or ad blocker.") from e

        self._logger.info("Checkout SDK loaded", extra={"mode": mode})
        return HostedCheckoutHandle(page_url=self._page_url, mode=mode, navigator=self._navigator)


class CheckoutLauncher(CheckoutLauncherPort):
    def __init__(self, sdk: HostedCheckoutSdk, mode: str | None = None) -> None:
        self._sdk = sdk
        self._mode = mode or settings.CHECKOUT_MODE
        self._handle: HostedCheckoutHandle | None = None
        self._loading: asyncio.Task[HostedCheckoutHandle] | None = None
        self._logger = logging.getLogger(__name__)

    async def load_once(self) -> HostedCheckoutHandle:
        """All callers, concurrent ones included, share a single load."""
        if self._handle is not None:
            return self._handle

        if self._loading is None:
            self._loading = asyncio.ensure_future(self._sdk.load(self._mode))
        loading = self._loading

        try:
            handle = await asyncio.shield(loading)
        except LauncherUnavailable:
            # Failed loads are not memoized; the next attempt loads again.
            if self._loading is loading:
                self._loading = None
            raise

        self._handle = handle
        return handle

    async def open(self, payment_session_id: str) -> None:
        handle = await self.load_once()
        handle.checkout(payment_session_id, redirect_target="_self")
        self._logger.info("Checkout opened")


class MockCheckoutLauncher(CheckoutLauncherPort):
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.opened: list[str] = []
        self._logger = logging.getLogger(__name__)

    async def load_once(self) -> "MockCheckoutLauncher":
        if not self.available:
            raise LauncherUnavailable("Mock checkout unavailable")
        return self

    async def open(self, payment_session_id: str) -> None:
        await self.load_once()
        self.opened.append(payment_session_id)
        self._logger.info("Mock checkout opened", extra={"session_count": len(self.opened)})
