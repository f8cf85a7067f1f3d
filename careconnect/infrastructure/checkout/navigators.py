from __future__ import annotations

import logging
import webbrowser
from contextvars import ContextVar

from careconnect.application.exceptions import LauncherUnavailable
from careconnect.application.ports.checkout import NavigatorPort


class BrowserNavigator(NavigatorPort):
    """Opens the hosted page in the system browser (local CLI use)."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def navigate(self, url: str) -> None:
        try:
            opened = webbrowser.open(url, new=0)
        except webbrowser.Error as e:
            raise LauncherUnavailable(f"No browser available: {e}") from e
        if not opened:
            raise LauncherUnavailable("No browser available to open the payment page")
        self._logger.info("Browser redirected to checkout")


class RecordingNavigator(NavigatorPort):
    """
    Remembers the last redirect so an HTTP handler can send it to its client.

    The location lives in a context variable: each request (asyncio task) sees
    only the redirect it caused, even though one navigator serves them all.
    """

    def __init__(self) -> None:
        self._location: ContextVar[str | None] = ContextVar(f"checkout_location_{id(self)}", default=None)

    @property
    def location(self) -> str | None:
        return self._location.get()

    def navigate(self, url: str) -> None:
        self._location.set(url)

    def take(self) -> str | None:
        location = self._location.get()
        self._location.set(None)
        return location
