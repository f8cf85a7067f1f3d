from __future__ import annotations

import logging
from typing import Any

import httpx

from careconnect.application.exceptions import AuthenticationRequired, BackendError, BackendUnavailable
from careconnect.infrastructure.backend.auth_session import AuthSession

CONNECT_ERROR_MESSAGE = "Cannot connect to server. Please ensure the backend server is running."


class BackendApiClient:
    """
    Shared async transport for every backend call.

    - attaches the bearer token when one is stored
    - 401 anywhere clears the session and raises AuthenticationRequired
    - other non-2xx answers raise BackendError with the backend's detail
    - network failures and 5xx raise BackendUnavailable
    """

    def __init__(
        self,
        base_url: str,
        session: AuthSession,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self._logger = logging.getLogger(__name__)

    @property
    def session(self) -> AuthSession:
        return self._session

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", path, payload=payload)

    async def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers: dict[str, str] = {}
        token = self._session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            resp = await self._client.request(method, path, json=payload, params=params, headers=headers)
        except httpx.TransportError as e:
            self._logger.error("Backend unreachable", extra={"path": path, "error": str(e)})
            raise BackendUnavailable(CONNECT_ERROR_MESSAGE) from e

        if resp.status_code == 401:
            self._session.clear()
            self._logger.warning("Backend rejected session", extra={"path": path})
            raise AuthenticationRequired(_error_detail(resp), resp.status_code)

        if resp.status_code >= 500:
            detail = _error_detail(resp)
            self._logger.error("Backend error", extra={"path": path, "status": resp.status_code, "reason": detail})
            raise BackendUnavailable(detail, resp.status_code)

        if resp.status_code >= 400:
            raise BackendError(_error_detail(resp), resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_detail(resp: httpx.Response) -> str:
    fallback = f"HTTP error! status: {resp.status_code}"
    try:
        data = resp.json()
    except ValueError:
        return fallback
    if not isinstance(data, dict):
        return fallback

    detail = data.get("detail") or data.get("message")
    if isinstance(detail, list):
        # FastAPI style validation errors
        parts = [str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail]
        return "; ".join(parts) or fallback
    return str(detail) if detail else fallback
