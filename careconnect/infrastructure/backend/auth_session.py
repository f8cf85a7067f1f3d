from __future__ import annotations

import json
from typing import Any

from careconnect.application.ports.key_value_storage import KeyValueStoragePort

AUTH_TOKEN_KEY = "authToken"
USER_KEY = "user"


class AuthSession:
    """Bearer token and cached user, kept in the same durable storage as payment state."""

    def __init__(self, storage: KeyValueStoragePort) -> None:
        self._storage = storage

    @property
    def token(self) -> str | None:
        return self._storage.get_item(AUTH_TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set_token(self, token: str) -> None:
        self._storage.set_item(AUTH_TOKEN_KEY, token)

    def set_user(self, user: dict[str, Any]) -> None:
        self._storage.set_item(USER_KEY, json.dumps(user))

    def user(self) -> dict[str, Any] | None:
        raw = self._storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def clear(self) -> None:
        self._storage.remove_item(AUTH_TOKEN_KEY)
        self._storage.remove_item(USER_KEY)
