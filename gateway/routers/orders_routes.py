# gateway/routers/orders_routes.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gateway.auth import get_current_merchant
from gateway.core.config import Settings
from gateway.core.errors import NotFoundError
from gateway.database import models
from gateway.database.database import get_db
from gateway.database.schemas import OrderCreate
from gateway.deps.settings import get_settings
from gateway.services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return order_service.create_order(
        db, merchant.id, payload.model_dump(), max_attempts=settings.ID_GENERATION_MAX_ATTEMPTS
    )


@router.get("")
def list_orders(
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
) -> Dict[str, Any]:
    return {"orders": order_service.get_orders_by_merchant(db, merchant.id)}


@router.get("/{order_id}")
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
) -> Dict[str, Any]:
    order = order_service.get_order_by_id(db, order_id, merchant.id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


@router.get("/{order_id}/public")
def get_order_public(order_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Reduced order view used by the checkout page (no credentials)."""
    order = order_service.get_order_by_id_public(db, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order
