# gateway/routers/merchant_routes.py
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gateway.auth import get_current_merchant
from gateway.database import models
from gateway.database.database import get_db
from gateway.database.schemas import MerchantLogin
from gateway.services import merchant_service, stats_service

router = APIRouter(prefix="/merchant", tags=["Merchant"])


@router.post("/login")
def login(payload: MerchantLogin, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Dashboard login: exchanges a merchant email for its API credentials."""
    return merchant_service.login_merchant(db, payload.email)


@router.get("/stats")
def merchant_stats(
    db: Session = Depends(get_db),
    merchant: models.Merchant = Depends(get_current_merchant),
) -> Dict[str, int]:
    return stats_service.get_merchant_stats(db, merchant.id)
