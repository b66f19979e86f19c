"""List payments still in 'processing'.

Settlement tasks do not survive a restart, so a payment created shortly
before the process stopped stays in 'processing'. This script only reports
them; resolving them is a manual decision.
"""
import sys
from datetime import timedelta

from gateway.core.config import settings
from gateway.database.database import Database
from gateway.database.models import utcnow
from gateway.database.payment_models import PAYMENT_PROCESSING, Payment

# anything older than the longest simulated delay plus slack is suspicious
STALE_AFTER = timedelta(milliseconds=max(settings.PROCESSING_DELAY_MAX, settings.TEST_PROCESSING_DELAY)) + timedelta(seconds=30)

database = Database(settings.DATABASE_URL)
db = database.SessionLocal()
try:
    cutoff = utcnow() - STALE_AFTER
    rows = (
        db.query(Payment)
        .filter(Payment.status == PAYMENT_PROCESSING, Payment.created_at < cutoff)
        .order_by(Payment.created_at)
        .all()
    )
    print(f'payments processing for more than {STALE_AFTER}: {len(rows)}')
    for payment in rows:
        print(f'  {payment.id} order={payment.order_id} method={payment.method} created_at={payment.created_at.isoformat()}')
finally:
    db.close()
    database.dispose()

sys.exit(1 if rows else 0)
