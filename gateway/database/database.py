import logging
import time
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base model for all ORM classes
Base = declarative_base()


class Database:
    """Engine + session factory handle, owned by the application lifespan."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # one shared connection so every session sees the same in-memory db
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # models must be imported before metadata is complete
        from gateway.database import models, payment_models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def connect_with_retry(self, retries: int, delay: float) -> None:
        """Create the schema, waiting for the database to accept connections."""
        attempt = 0
        while True:
            attempt += 1
            try:
                self.create_all()
                return
            except Exception as e:
                if attempt >= retries:
                    logger.error("Failed to connect to database after %d attempts: %s", attempt, e)
                    raise
                logger.warning(
                    "Database not ready, retrying... (%d attempts left)", retries - attempt
                )
                time.sleep(delay)

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


# ✅ Dependency for FastAPI routes
def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
