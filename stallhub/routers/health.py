"""
System health check endpoint.
Returns status of backend + DB.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from stallhub.database import get_db
from stallhub.utils.logger import get_logger
from datetime import datetime

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        logger.error(f"Health check DB failure: {e}")
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
