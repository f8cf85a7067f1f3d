from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class NavigatorPort(ABC):
    @abstractmethod
    def navigate(self, url: str) -> None:
        """Send the user's browser to url, replacing the current page."""
        raise NotImplementedError


class CheckoutLauncherPort(ABC):
    @abstractmethod
    async def load_once(self) -> Any:
        """Load the hosted checkout SDK once per process and return its handle."""
        raise NotImplementedError

    @abstractmethod
    async def open(self, payment_session_id: str) -> None:
        """
        Redirect to the hosted payment page. Fire and forget: the outcome is
        only ever learned from the backend status query.

        Raises LauncherUnavailable when the SDK cannot be loaded.
        """
        raise NotImplementedError
