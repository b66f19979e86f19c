import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from gateway.core.config import ID_GENERATION_MAX_ATTEMPTS
from gateway.core.errors import BadRequestError
from gateway.database.models import isoformat, utcnow
from gateway.database.payment_models import MIN_ORDER_AMOUNT, ORDER_CREATED, ORDER_PAID, Order
from gateway.services.identifier_service import insert_with_unique_id

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "order_"


def _order_summary(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "merchant_id": order.merchant_id,
        "amount": order.amount,
        "currency": order.currency,
        "receipt": order.receipt,
        "notes": order.notes or {},
        "status": order.status,
        "created_at": isoformat(order.created_at),
    }


def serialize_order(order: Order) -> Dict[str, Any]:
    data = _order_summary(order)
    data["updated_at"] = isoformat(order.updated_at)
    return data


def serialize_order_public(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "merchant_id": order.merchant_id,
        "amount": order.amount,
        "currency": order.currency,
        "status": order.status,
        "created_at": isoformat(order.created_at),
    }


# --------- Order Management ---------

def _whole_amount(value: Any) -> Optional[int]:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def create_order(
    db: Session,
    merchant_id: str,
    order_data: Dict[str, Any],
    max_attempts: int = ID_GENERATION_MAX_ATTEMPTS,
) -> Dict[str, Any]:
    amount = _whole_amount(order_data.get("amount"))
    if amount is None or amount < MIN_ORDER_AMOUNT:
        raise BadRequestError(f"amount must be at least {MIN_ORDER_AMOUNT}")

    currency = order_data.get("currency") or "INR"
    receipt = order_data.get("receipt")
    notes = order_data.get("notes")

    order = insert_with_unique_id(
        db,
        Order,
        ORDER_ID_PREFIX,
        lambda order_id: Order(
            id=order_id,
            merchant_id=merchant_id,
            amount=amount,
            currency=currency,
            receipt=receipt,
            notes=notes,
            status=ORDER_CREATED,
        ),
        max_attempts=max_attempts,
    )
    logger.info("Created order %s for merchant %s (amount=%s %s)", order.id, merchant_id, amount, currency)
    return _order_summary(order)


def get_order_by_id(db: Session, order_id: str, merchant_id: str) -> Optional[Dict[str, Any]]:
    order = (
        db.query(Order)
        .filter(Order.id == order_id, Order.merchant_id == merchant_id)
        .first()
    )
    if order is None:
        return None
    return serialize_order(order)


def get_order_by_id_public(db: Session, order_id: str) -> Optional[Dict[str, Any]]:
    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None:
        return None
    return serialize_order_public(order)


def get_orders_by_merchant(db: Session, merchant_id: str) -> List[Dict[str, Any]]:
    orders = (
        db.query(Order)
        .filter(Order.merchant_id == merchant_id)
        .order_by(Order.created_at.desc())
        .all()
    )
    return [serialize_order(order) for order in orders]


def mark_order_paid(db: Session, order_id: str) -> bool:
    """
    Move an order from created to paid. Caller commits.

    Returns False when the order was already paid (or missing); the
    transition only ever happens once.
    """
    result = db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == ORDER_CREATED)
        .values(status=ORDER_PAID, updated_at=utcnow())
    )
    return result.rowcount == 1
