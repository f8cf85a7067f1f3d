from __future__ import annotations

import logging
from typing import Any

from careconnect.application.dto.backend import LoginResponseDTO
from careconnect.application.exceptions import BackendError
from careconnect.infrastructure.backend.api_client import BackendApiClient


class AuthClient:
    def __init__(self, api: BackendApiClient) -> None:
        self._api = api
        self._logger = logging.getLogger(__name__)

    async def login(self, mobile: str, password: str) -> dict[str, Any] | None:
        data = await self._api.post("/users/login", {"mobile": mobile, "password": password})
        parsed = LoginResponseDTO.model_validate(data or {})
        self._api.session.set_token(parsed.access_token)
        if parsed.user:
            self._api.session.set_user(parsed.user)
        self._logger.info("Logged in", extra={"user_id": (parsed.user or {}).get("id")})
        return parsed.user

    async def current_user(self) -> dict[str, Any] | None:
        if not self._api.session.is_authenticated:
            return None
        try:
            user = await self._api.get("/users/me")
        except BackendError as e:
            # Invalid or expired token.
            self._logger.info("Session lookup failed", extra={"error": str(e)})
            self._api.session.clear()
            return None
        if isinstance(user, dict):
            self._api.session.set_user(user)
            return user
        return None

    def logout(self) -> None:
        self._api.session.clear()
