"""
Application configuration and settings
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./payment_gateway.db")
DATABASE_CONNECT_RETRIES = int(os.getenv("DATABASE_CONNECT_RETRIES", "10"))
DATABASE_CONNECT_RETRY_DELAY = float(os.getenv("DATABASE_CONNECT_RETRY_DELAY", "3"))

# Settlement simulation
TEST_MODE = _env_bool("TEST_MODE", "false")
TEST_PROCESSING_DELAY = int(os.getenv("TEST_PROCESSING_DELAY", "1000"))  # ms
TEST_PAYMENT_SUCCESS = _env_bool("TEST_PAYMENT_SUCCESS", "true")
PROCESSING_DELAY_MIN = int(os.getenv("PROCESSING_DELAY_MIN", "5000"))  # ms
PROCESSING_DELAY_MAX = int(os.getenv("PROCESSING_DELAY_MAX", "10000"))  # ms
UPI_SUCCESS_RATE = float(os.getenv("UPI_SUCCESS_RATE", "0.90"))
CARD_SUCCESS_RATE = float(os.getenv("CARD_SUCCESS_RATE", "0.95"))
SETTLEMENT_SHUTDOWN_TIMEOUT = float(os.getenv("SETTLEMENT_SHUTDOWN_TIMEOUT", "15"))  # seconds

# Identifiers
ID_GENERATION_MAX_ATTEMPTS = int(os.getenv("ID_GENERATION_MAX_ATTEMPTS", "10"))

# Startup
SEED_TEST_MERCHANT = _env_bool("SEED_TEST_MERCHANT", "true")

# HTTP
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://localhost:3001,http://gateway_dashboard,http://gateway_checkout",
    ).split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class Settings:
    PROJECT_NAME: str = "Payment Gateway API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/v1"
    DATABASE_URL = DATABASE_URL
    DATABASE_CONNECT_RETRIES = DATABASE_CONNECT_RETRIES
    DATABASE_CONNECT_RETRY_DELAY = DATABASE_CONNECT_RETRY_DELAY
    TEST_MODE = TEST_MODE
    TEST_PROCESSING_DELAY = TEST_PROCESSING_DELAY
    TEST_PAYMENT_SUCCESS = TEST_PAYMENT_SUCCESS
    PROCESSING_DELAY_MIN = PROCESSING_DELAY_MIN
    PROCESSING_DELAY_MAX = PROCESSING_DELAY_MAX
    UPI_SUCCESS_RATE = UPI_SUCCESS_RATE
    CARD_SUCCESS_RATE = CARD_SUCCESS_RATE
    SETTLEMENT_SHUTDOWN_TIMEOUT = SETTLEMENT_SHUTDOWN_TIMEOUT
    ID_GENERATION_MAX_ATTEMPTS = ID_GENERATION_MAX_ATTEMPTS
    SEED_TEST_MERCHANT = SEED_TEST_MERCHANT
    ALLOWED_ORIGINS = ALLOWED_ORIGINS
    LOG_LEVEL = LOG_LEVEL

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)


settings = Settings()
