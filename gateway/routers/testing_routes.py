# gateway/routers/testing_routes.py
"""
Unauthenticated helpers for the dashboard and automated graders:
expose the seeded test merchant and per-merchant stats.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gateway.core.errors import NotFoundError
from gateway.database.database import get_db
from gateway.services import merchant_service, stats_service

router = APIRouter(prefix="/test", tags=["Test"])


@router.get("/merchant")
def test_merchant(db: Session = Depends(get_db)) -> Dict[str, Any]:
    merchant = merchant_service.get_test_merchant(db)
    if merchant is None:
        raise NotFoundError("Test merchant not found")
    return merchant


@router.get("/stats/{merchant_id}")
def test_merchant_stats(merchant_id: str, db: Session = Depends(get_db)) -> Dict[str, int]:
    return stats_service.get_merchant_stats(db, merchant_id)
