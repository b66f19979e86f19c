"""
Simulated bank settlement for payments.

A payment is created in ``processing``; the settlement worker later moves it
to ``success`` (and the order to ``paid``) or ``failed``. One asyncio task is
spawned per payment. The delay is a non-blocking sleep and the database work
runs in a worker thread with its own session, so request handling is never
held up and settlements do not wait on each other.

Whatever goes wrong inside a settlement, the payment ends up in a terminal
state: unexpected faults are recorded as ``PROCESSING_ERROR``.
"""
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Optional, Set, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from gateway.database.models import utcnow
from gateway.database.payment_models import (
    METHOD_UPI,
    PAYMENT_FAILED,
    PAYMENT_PROCESSING,
    PAYMENT_SUCCESS,
    Payment,
)
from gateway.services import order_service

logger = logging.getLogger(__name__)

FAILURE_REASONS = {
    "upi": ("UPI_TRANSACTION_FAILED", "UPI transaction failed. Please try again."),
    "card": ("CARD_TRANSACTION_FAILED", "Card transaction declined by bank."),
}
PROCESSING_ERROR = ("PROCESSING_ERROR", "An error occurred while processing the payment")


@dataclass
class SettlementPolicy:
    """How long a settlement takes and whether it succeeds."""

    test_mode: bool = False
    test_delay_ms: int = 1000
    test_success: bool = True
    delay_min_ms: int = 5000
    delay_max_ms: int = 10000
    upi_success_rate: float = 0.90
    card_success_rate: float = 0.95
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def from_settings(cls, settings) -> "SettlementPolicy":
        return cls(
            test_mode=settings.TEST_MODE,
            test_delay_ms=settings.TEST_PROCESSING_DELAY,
            test_success=settings.TEST_PAYMENT_SUCCESS,
            delay_min_ms=settings.PROCESSING_DELAY_MIN,
            delay_max_ms=settings.PROCESSING_DELAY_MAX,
            upi_success_rate=settings.UPI_SUCCESS_RATE,
            card_success_rate=settings.CARD_SUCCESS_RATE,
        )

    def delay_ms(self) -> int:
        if self.test_mode:
            return self.test_delay_ms
        low, high = sorted((self.delay_min_ms, self.delay_max_ms))
        return self.rng.randint(low, high)

    def decide_success(self, method: str) -> bool:
        if self.test_mode:
            return self.test_success
        rate = self.upi_success_rate if method == METHOD_UPI else self.card_success_rate
        return self.rng.random() < rate


class SettlementWorker:
    """Owns the in-flight settlement tasks of one application instance."""

    def __init__(self, session_factory: Callable[[], Session], policy: SettlementPolicy):
        self._session_factory = session_factory
        self.policy = policy
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        logger.info(
            "✓ Settlement worker started (test_mode=%s)", self.policy.test_mode
        )

    def schedule(self, payment_id: str) -> None:
        """Queue settlement of ``payment_id``. Safe to call from any thread."""
        if not self.running:
            raise RuntimeError("Settlement worker is not running")

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is self._loop:
            self._spawn(payment_id)
        else:
            self._loop.call_soon_threadsafe(self._spawn, payment_id)

    def _spawn(self, payment_id: str) -> None:
        task = self._loop.create_task(self.settle(payment_id), name=f"settle-{payment_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every scheduled settlement has finished."""
        # let call_soon_threadsafe callbacks spawn their tasks first
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)

    async def shutdown(self, timeout: float) -> None:
        """Let in-flight settlements finish; nothing is cancelled."""
        await asyncio.sleep(0)
        pending = set(self._tasks)
        if pending:
            logger.info("🔄 Waiting for %d in-flight settlement(s)...", len(pending))
            _, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                stuck = sorted(task.get_name().replace("settle-", "", 1) for task in not_done)
                logger.warning(
                    "⚠ %d settlement(s) still running at shutdown, payments left processing: %s",
                    len(stuck), ", ".join(stuck),
                )
        self._loop = None
        logger.info("✓ Settlement worker stopped")

    async def settle(self, payment_id: str) -> Optional[str]:
        """Delay, decide, persist. Returns the terminal status written, if any."""
        try:
            await asyncio.sleep(self.policy.delay_ms() / 1000.0)
            return await asyncio.to_thread(self._apply_outcome, payment_id)
        except asyncio.CancelledError:
            logger.warning("Settlement of %s cancelled; payment left processing", payment_id)
            raise
        except Exception:
            logger.exception("Payment processing error for %s", payment_id)
            return await asyncio.to_thread(self.record_processing_error, payment_id)

    def _apply_outcome(self, payment_id: str) -> Optional[str]:
        with self._session_factory() as db:
            payment = db.get(Payment, payment_id)
            if payment is None:
                logger.warning("Settlement skipped: payment %s not found", payment_id)
                return None
            if payment.status != PAYMENT_PROCESSING:
                logger.info("Settlement skipped: payment %s already %s", payment_id, payment.status)
                return payment.status

            order_id = payment.order_id
            if self.policy.decide_success(payment.method):
                # payment success and order paid commit together
                if _finish_payment(db, payment_id, PAYMENT_SUCCESS):
                    order_service.mark_order_paid(db, order_id)
                db.commit()
                logger.info("Payment %s succeeded; order %s paid", payment_id, order_id)
                return PAYMENT_SUCCESS

            reason = FAILURE_REASONS.get(payment.method, PROCESSING_ERROR)
            _finish_payment(db, payment_id, PAYMENT_FAILED, reason)
            db.commit()
            logger.info("Payment %s failed with %s", payment_id, reason[0])
            return PAYMENT_FAILED

    def record_processing_error(self, payment_id: str) -> Optional[str]:
        """Drive a payment to failed/PROCESSING_ERROR. Never raises."""
        try:
            with self._session_factory() as db:
                _finish_payment(db, payment_id, PAYMENT_FAILED, PROCESSING_ERROR)
                db.commit()
            return PAYMENT_FAILED
        except Exception:
            logger.exception("Could not record processing error for payment %s", payment_id)
            return None


def _finish_payment(
    db: Session,
    payment_id: str,
    status: str,
    reason: Optional[Tuple[str, str]] = None,
) -> bool:
    """Terminal transition, applied only while the payment is still processing."""
    values = {"status": status, "updated_at": utcnow()}
    if reason is not None:
        values["error_code"], values["error_description"] = reason
    result = db.execute(
        update(Payment)
        .where(Payment.id == payment_id, Payment.status == PAYMENT_PROCESSING)
        .values(**values)
    )
    return result.rowcount == 1
