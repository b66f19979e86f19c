# gateway/routers/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from gateway.database.database import Database, get_database

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(database: Database = Depends(get_database)):
    """
    Liveness check. Always 200; reports whether the database answers.
    """
    return {
        "status": "healthy",
        "database": "connected" if database.check_connection() else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
