import logging
from typing import Callable, Optional, Type, TypeVar

from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gateway.core.config import ID_GENERATION_MAX_ATTEMPTS
from gateway.core.errors import InternalError
from gateway.utils import generate_id

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def insert_with_unique_id(
    db: Session,
    model: Type[ModelT],
    prefix: str,
    build: Callable[[str], ModelT],
    max_attempts: int = ID_GENERATION_MAX_ATTEMPTS,
    generator: Optional[Callable[[str], str]] = None,
) -> ModelT:
    """
    Insert the row produced by ``build(candidate_id)`` and commit it.

    The primary key constraint is the uniqueness check: a collision surfaces
    as an IntegrityError, the transaction is rolled back and a fresh id is
    drawn. Integrity errors that are not id collisions are re-raised.
    """
    generator = generator or generate_id
    for attempt in range(1, max_attempts + 1):
        candidate = generator(prefix)
        row = build(candidate)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if not db.query(exists().where(model.id == candidate)).scalar():
                raise
            logger.warning(
                "Identifier collision for %s (attempt %d/%d), regenerating",
                candidate, attempt, max_attempts,
            )
            continue
        db.refresh(row)
        return row

    logger.error("Could not allocate a unique %s identifier after %d attempts", prefix, max_attempts)
    raise InternalError("Failed to generate a unique identifier")
