from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from careconnect.api.schemas import (
    BookingRequestSchema,
    BookingResponseSchema,
    BookingSchema,
    CatalogEntrySchema,
    CatalogResponseSchema,
    LoginRequestSchema,
    PaymentStateSchema,
)
from careconnect.application.exceptions import AuthenticationRequired, BackendError, BackendUnavailable
from careconnect.application.use_cases.book_appointment import BookAppointmentUseCase
from careconnect.domain.entities.booking import BookingKind
from careconnect.infrastructure.backend.auth_client import AuthClient
from careconnect.infrastructure.backend.booking_client import HttpBookingClient
from careconnect.infrastructure.checkout.navigators import RecordingNavigator
from careconnect.wiring.dependencies import (
    get_auth_client,
    get_booking_client,
    get_booking_use_case,
    get_navigator,
)

router = APIRouter()
logger = logging.getLogger(__name__)

OUTCOME_STATUS = {
    "invalid": 400,
    "login_required": 401,
    "busy": 409,
    "rejected": 409,
    "unavailable": 502,
    "order_failed": 502,
    "checkout_failed": 502,
}


@router.post("/auth/login")
async def login(req: LoginRequestSchema, auth: AuthClient = Depends(get_auth_client)):
    try:
        user = await auth.login(req.mobile, req.password)
    except BackendUnavailable as e:
        raise HTTPException(status_code=502, detail=e.detail)
    except BackendError as e:
        raise HTTPException(status_code=401, detail=e.detail)
    return {"user": user}


@router.get("/auth/me")
async def me(auth: AuthClient = Depends(get_auth_client)):
    user = await auth.current_user()
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return {"user": user}


@router.post("/auth/logout")
def logout(auth: AuthClient = Depends(get_auth_client)):
    auth.logout()
    return {"status": "logged_out"}


@router.get("/catalog", response_model=CatalogResponseSchema)
async def catalog(
    specialty: str | None = Query(None),
    refresh: bool = Query(False),
    uc: BookAppointmentUseCase = Depends(get_booking_use_case),
):
    loaded = await uc.load_catalog(refresh=refresh)
    return CatalogResponseSchema(
        hospitals=[CatalogEntrySchema.from_entry(h) for h in loaded.hospitals],
        doctors=[CatalogEntrySchema.from_entry(d) for d in loaded.doctors_for_specialty(specialty)],
    )


@router.post("/bookings", response_model=BookingResponseSchema)
async def create_booking(
    req: BookingRequestSchema,
    uc: BookAppointmentUseCase = Depends(get_booking_use_case),
    navigator: RecordingNavigator = Depends(get_navigator),
):
    navigator.take()
    outcome = await uc.execute(req.kind, req.form())

    status_code = OUTCOME_STATUS.get(outcome.action)
    if status_code is not None:
        logger.info("Booking not completed", extra={"reason": outcome.action})
        raise HTTPException(
            status_code=status_code,
            detail={
                "action": outcome.action,
                "message": outcome.message,
                "field_errors": outcome.field_errors or {},
                "booking_id": outcome.booking.id if outcome.booking else None,
            },
        )

    return BookingResponseSchema(
        action=outcome.action,
        booking=BookingSchema.from_record(outcome.booking) if outcome.booking else None,
        payment=PaymentStateSchema.from_snapshot(outcome.payment) if outcome.payment else None,
        checkout_url=navigator.take(),
    )


@router.get("/my-appointments", response_model=list[BookingSchema])
async def my_appointments(client: HttpBookingClient = Depends(get_booking_client)):
    records = []
    try:
        for kind in (BookingKind.appointment, BookingKind.operation):
            records.extend(await client.list_mine(kind))
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=e.detail)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.detail)
    return [BookingSchema.from_record(r) for r in records]
