import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from careconnect.api.bookings import router as bookings_router
from careconnect.api.payments import router as payments_router
from careconnect.core.config import settings
from careconnect.wiring.dependencies import get_booking_use_case, get_reconciler, shutdown


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "booking_kind", "payment_id", "status", "attempt", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Mount: pick up a payment interrupted by a checkout redirect or restart.
    await get_booking_use_case().load_catalog()
    await get_reconciler().resume()
    yield
    # Unmount: stop polling, keep the persisted record.
    await shutdown()


app = FastAPI(title="CareConnect Booking", version="1.0.0", lifespan=lifespan)

app.include_router(bookings_router, tags=["bookings"])
app.include_router(payments_router, tags=["payments"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
