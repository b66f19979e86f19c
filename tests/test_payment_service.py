"""
Payment creation and retrieval, with settlement running on the test loop.
"""
import pytest

from gateway.core.errors import BadRequestError, NotFoundError, PaymentValidationError
from gateway.database.payment_models import Order, Payment
from gateway.services import order_service, payment_service
from gateway.services.settlement import SettlementPolicy, SettlementWorker

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


@pytest.fixture
def order(db, merchant):
    return order_service.create_order(db, merchant.id, {"amount": 50000, "receipt": "rcpt_42"})


async def test_upi_payment_settles_and_pays_order(db, settlement, merchant, order):
    payment = payment_service.create_payment(
        db, settlement, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "user@paytm"}
    )

    assert payment["id"].startswith("pay_")
    assert payment["status"] == "processing"
    assert payment["amount"] == 50000
    assert payment["currency"] == "INR"
    assert payment["vpa"] == "user@paytm"
    assert "card_network" not in payment
    assert "updated_at" not in payment

    await settlement.drain()
    db.expire_all()

    stored = payment_service.get_payment_by_id(db, payment["id"], merchant.id)
    assert stored["status"] == "success"
    assert "error_code" not in stored
    assert db.get(Order, order["id"]).status == "paid"


async def test_card_payment_keeps_only_network_and_last4(db, settlement, merchant, order, valid_card):
    payment = payment_service.create_payment(
        db, settlement, merchant.id, {"order_id": order["id"], "method": "card", "card": valid_card}
    )

    assert payment["card_network"] == "visa"
    assert payment["card_last4"] == "1111"
    assert "vpa" not in payment
    await settlement.drain()

    row = db.get(Payment, payment["id"])
    columns = {column.name: getattr(row, column.name) for column in Payment.__table__.columns}
    assert "4111111111111111" not in {str(value) for value in columns.values()}
    assert "123" not in {str(value) for value in columns.values()}


async def test_public_payment_takes_merchant_from_order(db, settlement, merchant, order):
    payment = payment_service.create_payment_public(
        db, settlement, {"order_id": order["id"], "method": "upi", "vpa": "buyer@okaxis"}
    )
    await settlement.drain()

    assert db.get(Payment, payment["id"]).merchant_id == merchant.id
    assert payment_service.get_payment_by_id_public(db, payment["id"])["id"] == payment["id"]


async def test_other_merchants_order_looks_missing(db, settlement, other_merchant, order):
    with pytest.raises(NotFoundError) as exc_info:
        payment_service.create_payment(
            db, settlement, other_merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "a@b"}
        )
    assert exc_info.value.description == "Order not found"


@pytest.mark.parametrize("order_id", [None, "", "order_doesnotexist"])
async def test_unknown_order(db, settlement, merchant, order_id):
    with pytest.raises(NotFoundError):
        payment_service.create_payment(
            db, settlement, merchant.id, {"order_id": order_id, "method": "upi", "vpa": "a@b"}
        )


async def test_paid_order_rejects_new_payments(db, settlement, merchant, order):
    payment_service.create_payment(
        db, settlement, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "user@paytm"}
    )
    await settlement.drain()
    db.expire_all()

    with pytest.raises(BadRequestError) as exc_info:
        payment_service.create_payment(
            db, settlement, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "user@paytm"}
        )
    assert exc_info.value.description == "Order has already been paid"
    assert db.query(Payment).count() == 1


@pytest.mark.parametrize(
    "payment_data",
    [
        {"method": "bogus"},
        {"method": "upi", "vpa": "not-a-vpa"},
        {"method": "card", "card": {"number": "1234"}},
    ],
)
async def test_paid_order_rejected_before_method_checks(db, settlement, merchant, order, payment_data):
    order_service.mark_order_paid(db, order["id"])
    db.commit()

    with pytest.raises(BadRequestError) as exc_info:
        payment_service.create_payment(db, settlement, merchant.id, {"order_id": order["id"], **payment_data})
    assert type(exc_info.value) is BadRequestError
    assert exc_info.value.description == "Order has already been paid"
    assert db.query(Payment).count() == 0


@pytest.mark.parametrize("method", [None, "", "netbanking", "UPI"])
async def test_unknown_method(db, settlement, merchant, order, method):
    with pytest.raises(BadRequestError) as exc_info:
        payment_service.create_payment(db, settlement, merchant.id, {"order_id": order["id"], "method": method})
    assert exc_info.value.code == "BAD_REQUEST_ERROR"
    assert exc_info.value.description == 'Invalid payment method. Must be "upi" or "card"'


async def test_invalid_vpa(db, settlement, merchant, order):
    with pytest.raises(PaymentValidationError) as exc_info:
        payment_service.create_payment(
            db, settlement, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "not-a-vpa"}
        )
    assert exc_info.value.code == "INVALID_VPA"
    assert exc_info.value.status_code == 400
    assert db.query(Payment).count() == 0


async def test_expired_card(db, settlement, merchant, order, valid_card):
    valid_card["expiry_year"] = "2001"
    with pytest.raises(PaymentValidationError) as exc_info:
        payment_service.create_payment(
            db, settlement, merchant.id, {"order_id": order["id"], "method": "card", "card": valid_card}
        )
    assert exc_info.value.code == "EXPIRED_CARD"


async def test_invalid_card(db, settlement, merchant, order, valid_card):
    valid_card["number"] = "4111111111111112"
    with pytest.raises(PaymentValidationError) as exc_info:
        payment_service.create_payment(
            db, settlement, merchant.id, {"order_id": order["id"], "method": "card", "card": valid_card}
        )
    assert exc_info.value.code == "INVALID_CARD"


async def test_failed_settlement_exposes_error_fields(db, database, merchant, order):
    worker = SettlementWorker(
        database.SessionLocal, SettlementPolicy(test_mode=True, test_delay_ms=0, test_success=False)
    )
    await worker.start()
    payment = payment_service.create_payment(
        db, worker, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "user@paytm"}
    )
    await worker.drain()
    await worker.shutdown(timeout=1)
    db.expire_all()

    stored = payment_service.get_payment_by_id(db, payment["id"], merchant.id)
    assert stored["status"] == "failed"
    assert stored["error_code"] == "UPI_TRANSACTION_FAILED"
    assert stored["error_description"] == "UPI transaction failed. Please try again."
    assert db.get(Order, order["id"]).status == "created"


async def test_unscheduled_settlement_fails_payment(db, database, merchant, order):
    idle = SettlementWorker(database.SessionLocal, SettlementPolicy(test_mode=True))

    payment = payment_service.create_payment(
        db, idle, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "user@paytm"}
    )

    assert payment["status"] == "failed"
    assert payment["error_code"] == "PROCESSING_ERROR"
    assert payment["error_description"] == "An error occurred while processing the payment"


async def test_listing_is_scoped_and_newest_first(db, settlement, merchant, other_merchant, order):
    other_order = order_service.create_order(db, other_merchant.id, {"amount": 1000})
    first = payment_service.create_payment(
        db, settlement, merchant.id, {"order_id": order["id"], "method": "upi", "vpa": "a@b"}
    )
    payment_service.create_payment(
        db, settlement, other_merchant.id, {"order_id": other_order["id"], "method": "upi", "vpa": "c@d"}
    )
    await settlement.drain()

    payments = payment_service.get_payments_by_merchant(db, merchant.id)
    assert [p["id"] for p in payments] == [first["id"]]
    assert payment_service.get_payment_by_id(db, first["id"], other_merchant.id) is None
    assert payment_service.get_payment_by_id_public(db, "pay_missing") is None
