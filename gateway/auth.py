# gateway/auth.py
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from gateway.database import models
from gateway.database.database import get_db
from gateway.services.merchant_service import authenticate_merchant


# =====================================
# ✅ Current Merchant Fetcher
# =====================================
def get_current_merchant(
    x_api_key: Optional[str] = Header(None, alias="X-Api-Key"),
    x_api_secret: Optional[str] = Header(None, alias="X-Api-Secret"),
    db: Session = Depends(get_db),
) -> models.Merchant:
    """Return the merchant identified by the API key/secret headers (401 otherwise)."""
    return authenticate_merchant(db, x_api_key, x_api_secret)
