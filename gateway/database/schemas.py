# gateway/database/schemas.py
# =========================================================
# 🧩 Payment Gateway Request Schemas (Pydantic v2)
# =========================================================
#
# Request models are deliberately lenient: business rules (amount floor,
# VPA syntax, card checks) live in the services so that their failures
# carry the precise error codes clients rely on.

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr


# =========================================================
# 🧾 Order Schemas
# =========================================================
class OrderCreate(BaseModel):
    # integer check happens in create_order so the message stays precise
    amount: Optional[Any] = None
    currency: Optional[str] = None
    receipt: Optional[str] = None
    notes: Optional[Dict[str, Any]] = None


# =========================================================
# 💳 Payment Schemas
# =========================================================
class PaymentCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    order_id: Optional[str] = None
    method: Optional[str] = None
    vpa: Optional[Any] = None
    # card fields are checked by validate_card; keep them as sent
    card: Optional[Dict[str, Any]] = None


# =========================================================
# 🏪 Merchant Schemas
# =========================================================
class MerchantLogin(BaseModel):
    email: EmailStr
