"""
Identifier generation and collision handling on insert.
"""
import re

import pytest
from sqlalchemy.exc import IntegrityError

from gateway.core.errors import InternalError
from gateway.database.payment_models import Order
from gateway.services.identifier_service import insert_with_unique_id
from gateway.utils import generate_id

pytestmark = pytest.mark.unit


def _sequence(*ids):
    remaining = list(ids)

    def generator(prefix):
        return remaining.pop(0)

    return generator


def _order(merchant_id, amount=500):
    return lambda order_id: Order(id=order_id, merchant_id=merchant_id, amount=amount)


class TestGenerateId:
    def test_format(self):
        assert re.fullmatch(r"order_[A-Za-z0-9]{16}", generate_id("order_"))
        assert re.fullmatch(r"pay_[A-Za-z0-9]{16}", generate_id("pay_"))

    def test_ids_differ(self):
        assert len({generate_id("pay_") for _ in range(200)}) == 200


class TestInsertWithUniqueId:
    def test_inserts_and_returns_row(self, db, merchant):
        order = insert_with_unique_id(db, Order, "order_", _order(merchant.id))
        assert order.id.startswith("order_")
        assert db.get(Order, order.id).amount == 500

    def test_regenerates_on_collision(self, db, merchant):
        merchant_id = merchant.id
        taken = "order_AAAAAAAAAAAAAAAA"
        insert_with_unique_id(db, Order, "order_", _order(merchant_id), generator=_sequence(taken))
        db.expunge_all()

        order = insert_with_unique_id(
            db, Order, "order_", _order(merchant_id, amount=700),
            generator=_sequence(taken, "order_BBBBBBBBBBBBBBBB"),
        )

        assert order.id == "order_BBBBBBBBBBBBBBBB"
        assert db.query(Order).count() == 2
        # the existing row is untouched
        assert db.get(Order, taken).amount == 500

    def test_gives_up_after_max_attempts(self, db, merchant):
        merchant_id = merchant.id
        taken = "order_CCCCCCCCCCCCCCCC"
        insert_with_unique_id(db, Order, "order_", _order(merchant_id), generator=_sequence(taken))
        db.expunge_all()

        with pytest.raises(InternalError) as exc_info:
            insert_with_unique_id(
                db, Order, "order_", _order(merchant_id),
                max_attempts=3, generator=lambda prefix: taken,
            )

        assert exc_info.value.description == "Failed to generate a unique identifier"
        assert db.query(Order).count() == 1

    def test_other_integrity_errors_propagate(self, db, merchant):
        # below the minimum amount: a constraint violation that is not an id clash
        with pytest.raises(IntegrityError):
            insert_with_unique_id(db, Order, "order_", _order(merchant.id, amount=50))
        assert db.query(Order).count() == 0
