from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_api.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


@router.get("/health")
def health(db: Session = Depends(get_db)) -> dict:
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database = "disconnected"

    return {
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "database": database,
        "timestamp": int(time.time() * 1000),
        "status": "ok" if database == "connected" else "degraded",
        "message": "OK",
    }
