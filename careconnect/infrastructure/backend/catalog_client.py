from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as SchemaError

from careconnect.application.dto.backend import CatalogEntryDTO
from careconnect.application.exceptions import BackendError
from careconnect.application.ports.catalog import CatalogPort
from careconnect.domain.entities.catalog import Catalog, CatalogEntry
from careconnect.infrastructure.backend.api_client import BackendApiClient


class HttpCatalogClient(CatalogPort):
    def __init__(self, api: BackendApiClient) -> None:
        self._api = api
        self._logger = logging.getLogger(__name__)

    async def load(self) -> Catalog:
        hospitals = await self._load_hospitals()
        doctors = await self._load_doctors()
        if not hospitals and not doctors:
            self._logger.warning("Catalog empty: no hospitals or doctors available")
        return Catalog(hospitals=tuple(hospitals), doctors=tuple(doctors))

    async def _load_hospitals(self) -> list[CatalogEntry]:
        try:
            return self._entries(await self._api.get("/hospitals/approved"))
        except BackendError as e:
            self._logger.error("Error fetching hospitals", extra={"error": str(e)})
            return []

    async def _load_doctors(self) -> list[CatalogEntry]:
        # Public list first (booking pages work logged out), then the authenticated one.
        try:
            return self._entries(await self._api.get("/users/doctors/public"))
        except BackendError as e:
            self._logger.info("Public doctor list unavailable", extra={"error": str(e)})

        try:
            return self._entries(await self._api.get("/users/doctors"))
        except BackendError as e:
            self._logger.error("Error fetching doctors", extra={"error": str(e)})
            return []

    def _entries(self, data: Any) -> list[CatalogEntry]:
        entries: list[CatalogEntry] = []
        for item in data or []:
            try:
                entries.append(CatalogEntryDTO.model_validate(item).to_entry())
            except SchemaError:
                continue
        return entries
