from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from careconnect.api.schemas import PaymentStateSchema
from careconnect.application.use_cases.payment_reconciler import PaymentReconciler
from careconnect.domain.entities.payment_state import PaymentSnapshot
from careconnect.wiring.dependencies import get_reconciler

router = APIRouter(prefix="/payments")


def _state(reconciler: PaymentReconciler, snapshot: PaymentSnapshot) -> PaymentStateSchema:
    return PaymentStateSchema.from_snapshot(snapshot, polling=reconciler.polling, can_submit=reconciler.can_submit())


@router.get("/current", response_model=PaymentStateSchema)
def current_payment(reconciler: PaymentReconciler = Depends(get_reconciler)):
    return _state(reconciler, reconciler.snapshot)


@router.post("/retry", response_model=PaymentStateSchema)
async def retry_payment(reconciler: PaymentReconciler = Depends(get_reconciler)):
    snapshot = await reconciler.retry()
    return _state(reconciler, snapshot)


@router.get("/return", response_model=PaymentStateSchema)
async def checkout_return(request: Request, reconciler: PaymentReconciler = Depends(get_reconciler)):
    """Hosted checkout redirects here. Query parameters never decide the outcome."""
    snapshot = await reconciler.acknowledge_redirect(dict(request.query_params))
    return _state(reconciler, snapshot)
