import hmac
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from gateway.core.errors import AuthenticationError
from gateway.database import models

logger = logging.getLogger(__name__)

TEST_MERCHANT = {
    "id": "550e8400-e29b-41d4-a716-446655440000",
    "name": "Test Merchant",
    "email": "test@example.com",
    "api_key": "key_test_abc123",
    "api_secret": "secret_test_xyz789",
}


def authenticate_merchant(db: Session, api_key: Optional[str], api_secret: Optional[str]) -> models.Merchant:
    """Resolve the merchant owning an API key/secret pair."""
    if not api_key or not api_secret:
        raise AuthenticationError("Invalid API credentials")

    merchant = db.query(models.Merchant).filter(models.Merchant.api_key == api_key).first()
    if merchant is None or not hmac.compare_digest(merchant.api_secret, api_secret):
        raise AuthenticationError("Invalid API credentials")
    if not merchant.is_active:
        raise AuthenticationError("Merchant account is inactive")
    return merchant


def login_merchant(db: Session, email: str) -> Dict[str, Any]:
    merchant = db.query(models.Merchant).filter(models.Merchant.email == email).first()
    if merchant is None:
        raise AuthenticationError("Invalid credentials")
    if not merchant.is_active:
        raise AuthenticationError("Merchant account is inactive")
    return {
        "id": merchant.id,
        "name": merchant.name,
        "email": merchant.email,
        "api_key": merchant.api_key,
        "api_secret": merchant.api_secret,
    }


def seed_test_merchant(db: Session) -> bool:
    """Insert the test merchant unless it exists. Returns True when inserted."""
    existing = db.query(models.Merchant).filter(models.Merchant.email == TEST_MERCHANT["email"]).first()
    if existing:
        logger.info("Test merchant already exists")
        return False
    db.add(models.Merchant(**TEST_MERCHANT))
    db.commit()
    logger.info("Test merchant seeded successfully")
    return True


def get_test_merchant(db: Session) -> Optional[Dict[str, Any]]:
    merchant = db.query(models.Merchant).filter(models.Merchant.email == TEST_MERCHANT["email"]).first()
    if merchant is None:
        return None
    return {
        "id": merchant.id,
        "email": merchant.email,
        "api_key": merchant.api_key,
        "seeded": True,
    }
