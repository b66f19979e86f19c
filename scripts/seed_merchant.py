"""Create the schema and seed the test merchant.

Run with the project installed:
python scripts/seed_merchant.py
"""
from gateway.core.config import settings
from gateway.database.database import Database
from gateway.services.merchant_service import TEST_MERCHANT, seed_test_merchant


def seed():
    database = Database(settings.DATABASE_URL)
    database.create_all()
    db = database.SessionLocal()
    try:
        if seed_test_merchant(db):
            print(f"Seeded test merchant {TEST_MERCHANT['email']} (api_key={TEST_MERCHANT['api_key']}).")
        else:
            print("Test merchant already present; skipping seeding.")
    finally:
        db.close()
        database.dispose()


if __name__ == '__main__':
    seed()
