from __future__ import annotations

import logging

from pydantic import ValidationError as SchemaError

from careconnect.application.dto.backend import BookingResponseDTO
from careconnect.application.exceptions import (
    AuthenticationRequired,
    BackendError,
    BackendUnavailable,
    ValidationRejected,
)
from careconnect.application.ports.booking_client import BookingClientPort
from careconnect.domain.entities.booking import BookingKind, BookingRecord, BookingRequest
from careconnect.infrastructure.backend.api_client import BackendApiClient


class HttpBookingClient(BookingClientPort):
    def __init__(self, api: BackendApiClient) -> None:
        self._api = api
        self._logger = logging.getLogger(__name__)

    async def create(self, kind: BookingKind, request: BookingRequest) -> BookingRecord:
        try:
            data = await self._api.post(f"/bookings/{kind.value}s", request.to_payload())
        except (AuthenticationRequired, BackendUnavailable):
            raise
        except BackendError as e:
            self._logger.info(
                "Booking rejected",
                extra={"booking_kind": kind.value, "status": e.status_code, "reason": e.detail},
            )
            raise ValidationRejected(e.detail, e.status_code) from e

        try:
            record = BookingResponseDTO.model_validate(data).to_record(kind)
        except SchemaError as e:
            raise BackendError(f"Unexpected booking response: {e}") from e

        self._logger.info(
            "Booking created",
            extra={"booking_id": record.id, "booking_kind": kind.value, "status": record.status.value},
        )
        return record

    async def list_mine(self, kind: BookingKind) -> list[BookingRecord]:
        data = await self._api.get(f"/bookings/{kind.value}s/mine")
        records: list[BookingRecord] = []
        for item in data or []:
            try:
                records.append(BookingResponseDTO.model_validate(item).to_record(kind))
            except SchemaError:
                self._logger.warning("Skipping malformed booking row", extra={"booking_kind": kind.value})
                continue
        return records
