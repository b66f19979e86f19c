# gateway/services/payment_service.py
"""
Payment engine: create payments, hand them to settlement, read them back.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from gateway.core.config import ID_GENERATION_MAX_ATTEMPTS
from gateway.core.errors import BadRequestError, NotFoundError, PaymentValidationError
from gateway.database.models import isoformat
from gateway.database.payment_models import (
    METHOD_CARD,
    METHOD_UPI,
    ORDER_PAID,
    PAYMENT_FAILED,
    PAYMENT_METHODS,
    PAYMENT_PROCESSING,
    Order,
    Payment,
)
from gateway.services.identifier_service import insert_with_unique_id
from gateway.services.settlement import SettlementWorker
from gateway.services.validation_service import INVALID_CARD, INVALID_VPA, validate_card, validate_vpa

logger = logging.getLogger(__name__)

PAYMENT_ID_PREFIX = "pay_"


# --------- Projections ---------

def _method_fields(payment: Payment) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if payment.method == METHOD_UPI and payment.vpa:
        fields["vpa"] = payment.vpa
    elif payment.method == METHOD_CARD:
        if payment.card_network:
            fields["card_network"] = payment.card_network
        if payment.card_last4:
            fields["card_last4"] = payment.card_last4
    return fields


def serialize_payment(payment: Payment) -> Dict[str, Any]:
    data = {
        "id": payment.id,
        "order_id": payment.order_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "method": payment.method,
        "status": payment.status,
        "created_at": isoformat(payment.created_at),
        "updated_at": isoformat(payment.updated_at),
    }
    data.update(_method_fields(payment))
    if payment.status == PAYMENT_FAILED:
        if payment.error_code:
            data["error_code"] = payment.error_code
        if payment.error_description:
            data["error_description"] = payment.error_description
    return data


def serialize_new_payment(payment: Payment) -> Dict[str, Any]:
    """Projection returned by payment creation."""
    data = {
        "id": payment.id,
        "order_id": payment.order_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "method": payment.method,
        "status": payment.status,
        "created_at": isoformat(payment.created_at),
    }
    data.update(_method_fields(payment))
    if payment.status == PAYMENT_FAILED and payment.error_code:
        data["error_code"] = payment.error_code
        data["error_description"] = payment.error_description
    return data


# --------- Creation ---------

def _load_payable_order(db: Session, order_id: Any, merchant_id: Optional[str]) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first() if order_id else None
    if order is None:
        raise NotFoundError("Order not found")
    # another merchant's order is reported exactly like a missing one
    if merchant_id is not None and order.merchant_id != merchant_id:
        raise NotFoundError("Order not found")
    if order.status == ORDER_PAID:
        raise BadRequestError("Order has already been paid")
    return order


def _method_details(method: Any, payment_data: Dict[str, Any]) -> Dict[str, Any]:
    if not method or method not in PAYMENT_METHODS:
        raise BadRequestError('Invalid payment method. Must be "upi" or "card"')

    if method == METHOD_UPI:
        vpa = payment_data.get("vpa")
        result = validate_vpa(vpa)
        if not result["valid"]:
            raise PaymentValidationError(result["error"], code=INVALID_VPA)
        return {"vpa": vpa}

    result = validate_card(payment_data.get("card"))
    if not result["valid"]:
        raise PaymentValidationError(result["error"], code=result.get("code") or INVALID_CARD)
    # only network and last four digits are kept; number and CVV are dropped here
    return {"card_network": result["card_network"], "card_last4": result["card_last4"]}


def _create_payment(
    db: Session,
    settlement: SettlementWorker,
    payment_data: Dict[str, Any],
    merchant_id: Optional[str],
    max_attempts: int = ID_GENERATION_MAX_ATTEMPTS,
) -> Dict[str, Any]:
    order = _load_payable_order(db, payment_data.get("order_id"), merchant_id)
    method = payment_data.get("method")
    details = _method_details(method, payment_data)

    payment = insert_with_unique_id(
        db,
        Payment,
        PAYMENT_ID_PREFIX,
        lambda payment_id: Payment(
            id=payment_id,
            order_id=order.id,
            merchant_id=order.merchant_id,
            amount=order.amount,
            currency=order.currency,
            method=method,
            status=PAYMENT_PROCESSING,
            **details,
        ),
        max_attempts=max_attempts,
    )
    logger.info(
        "Created payment %s for order %s (method=%s amount=%s)",
        payment.id, payment.order_id, method, payment.amount,
    )

    try:
        settlement.schedule(payment.id)
    except Exception:
        logger.exception("Could not schedule settlement for payment %s", payment.id)
        settlement.record_processing_error(payment.id)
        db.refresh(payment)

    return serialize_new_payment(payment)


def create_payment(
    db: Session,
    settlement: SettlementWorker,
    merchant_id: str,
    payment_data: Dict[str, Any],
    max_attempts: int = ID_GENERATION_MAX_ATTEMPTS,
) -> Dict[str, Any]:
    """Authenticated path: the order must belong to ``merchant_id``."""
    return _create_payment(db, settlement, payment_data, merchant_id, max_attempts)


def create_payment_public(
    db: Session,
    settlement: SettlementWorker,
    payment_data: Dict[str, Any],
    max_attempts: int = ID_GENERATION_MAX_ATTEMPTS,
) -> Dict[str, Any]:
    """Checkout path: no ownership check, the merchant comes from the order."""
    return _create_payment(db, settlement, payment_data, None, max_attempts)


# --------- Retrieval ---------

def get_payment_by_id(db: Session, payment_id: str, merchant_id: str) -> Optional[Dict[str, Any]]:
    payment = (
        db.query(Payment)
        .filter(Payment.id == payment_id, Payment.merchant_id == merchant_id)
        .first()
    )
    return serialize_payment(payment) if payment is not None else None


def get_payment_by_id_public(db: Session, payment_id: str) -> Optional[Dict[str, Any]]:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    return serialize_payment(payment) if payment is not None else None


def get_payments_by_merchant(db: Session, merchant_id: str) -> List[Dict[str, Any]]:
    payments = (
        db.query(Payment)
        .filter(Payment.merchant_id == merchant_id)
        .order_by(Payment.created_at.desc())
        .all()
    )
    return [serialize_payment(payment) for payment in payments]
