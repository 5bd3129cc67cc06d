from fastapi import APIRouter, Depends

from storefront import schemas
from storefront.auth import get_payments, require_user
from storefront.payments import PaymentGateway

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/initialize")
def initialize_payment(
    payload: schemas.PaymentInitRequest,
    user: schemas.User = Depends(require_user),
    payments: PaymentGateway = Depends(get_payments),
):
    metadata = {"userId": user.id, **payload.metadata}
    return payments.initialize_payment(payload.email, payload.amount, payload.payment_method, metadata)


@router.get("/verify/{reference}")
def verify_payment(
    reference: str,
    user: schemas.User = Depends(require_user),
    payments: PaymentGateway = Depends(get_payments),
):
    return payments.verify_payment(reference)
