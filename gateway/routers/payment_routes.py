# gateway/routers/payment_routes.py
"""
Payment routes (merchant API + public checkout endpoints)
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from gateway.auth import get_current_merchant
from gateway.core.config import Settings
from gateway.core.errors import NotFoundError
from gateway.database import models
from gateway.database.database import get_db
from gateway.database.schemas import PaymentCreate
from gateway.deps.settings import get_settings
from gateway.deps.settlement import get_settlement
from gateway.services import payment_service
from gateway.services.settlement import SettlementWorker

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["Payments"])

CREATE_PAYMENT_EXAMPLES = {
    "upi": {
        "summary": "UPI payment",
        "value": {"order_id": "order_NXhj67fGH2jk9mPq", "method": "upi", "vpa": "user@paytm"},
    },
    "card": {
        "summary": "Card payment",
        "value": {
            "order_id": "order_NXhj67fGH2jk9mPq",
            "method": "card",
            "card": {
                "number": "4111111111111111",
                "expiry_month": "12",
                "expiry_year": "2030",
                "cvv": "123",
                "holder_name": "John Doe",
            },
        },
    },
}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate = Body(..., openapi_examples=CREATE_PAYMENT_EXAMPLES),
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
    settlement: SettlementWorker = Depends(get_settlement),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return payment_service.create_payment(
        db, settlement, merchant.id, payload.model_dump(), max_attempts=settings.ID_GENERATION_MAX_ATTEMPTS
    )


@router.get("")
def list_payments(
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
) -> Dict[str, Any]:
    return {"payments": payment_service.get_payments_by_merchant(db, merchant.id)}


@router.post("/public", status_code=status.HTTP_201_CREATED)
def create_payment_public(
    payload: PaymentCreate = Body(..., openapi_examples=CREATE_PAYMENT_EXAMPLES),
    db: Session = Depends(get_db),
    settlement: SettlementWorker = Depends(get_settlement),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Checkout page submission; the merchant is taken from the order."""
    return payment_service.create_payment_public(
        db, settlement, payload.model_dump(), max_attempts=settings.ID_GENERATION_MAX_ATTEMPTS
    )


@router.get("/{payment_id}")
def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
) -> Dict[str, Any]:
    payment = payment_service.get_payment_by_id(db, payment_id, merchant.id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


@router.get("/{payment_id}/public")
def get_payment_public(payment_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Status polling endpoint for the checkout page."""
    payment = payment_service.get_payment_by_id_public(db, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment
