# gateway/database/payment_models.py
"""
Order and payment database models
"""
from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from gateway.database.database import Base
from gateway.database.models import utcnow

ORDER_CREATED = "created"
ORDER_PAID = "paid"

PAYMENT_PROCESSING = "processing"
PAYMENT_SUCCESS = "success"
PAYMENT_FAILED = "failed"

METHOD_UPI = "upi"
METHOD_CARD = "card"
PAYMENT_METHODS = (METHOD_UPI, METHOD_CARD)

MIN_ORDER_AMOUNT = 100


class Order(Base):
    """Merchant orders awaiting payment"""
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(f"amount >= {MIN_ORDER_AMOUNT}", name="ck_orders_amount_min"),
    )

    id = Column(String(64), primary_key=True)  # order_XXXXXXXXXXXXXXXX
    merchant_id = Column(String(36), ForeignKey("merchants.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # smallest currency unit (paise)
    currency = Column(String(3), nullable=False, default="INR")
    receipt = Column(String(255), nullable=True)
    notes = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default=ORDER_CREATED)  # created, paid
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    merchant = relationship("Merchant", back_populates="orders")
    payments = relationship("Payment", back_populates="order")


class Payment(Base):
    """Payment attempts against an order"""
    __tablename__ = "payments"

    id = Column(String(64), primary_key=True)  # pay_XXXXXXXXXXXXXXXX
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False, index=True)
    merchant_id = Column(String(36), ForeignKey("merchants.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # copied from the order
    currency = Column(String(3), nullable=False, default="INR")
    method = Column(String(20), nullable=False)  # upi, card
    status = Column(String(20), nullable=False, default=PAYMENT_PROCESSING, index=True)  # processing, success, failed
    vpa = Column(String(255), nullable=True)
    card_network = Column(String(20), nullable=True)
    card_last4 = Column(String(4), nullable=True)
    error_code = Column(String(50), nullable=True)
    error_description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    order = relationship("Order", back_populates="payments")
