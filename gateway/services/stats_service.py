import math
from typing import Dict

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from gateway.database.payment_models import PAYMENT_SUCCESS, Payment


def success_rate(successful: int, total: int) -> int:
    """Percentage rounded half-up; 0 when there are no transactions."""
    if total <= 0:
        return 0
    return int(math.floor(successful / total * 100 + 0.5))


def get_merchant_stats(db: Session, merchant_id: str) -> Dict[str, int]:
    is_success = Payment.status == PAYMENT_SUCCESS
    total, total_amount, successful = (
        db.query(
            func.count(Payment.id),
            func.coalesce(func.sum(case((is_success, Payment.amount), else_=0)), 0),
            func.coalesce(func.sum(case((is_success, 1), else_=0)), 0),
        )
        .filter(Payment.merchant_id == merchant_id)
        .one()
    )
    total = int(total or 0)
    successful = int(successful or 0)
    return {
        "total_transactions": total,
        "total_amount": int(total_amount or 0),
        "success_rate": success_rate(successful, total),
    }
