# backend/studyfeedback/api/endpoints/health.py

import logging
from typing import Any, Dict

from fastapi import APIRouter

from studyfeedback.core.config import settings
from studyfeedback.db.mongo import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def _mongo_reachable() -> bool:
    try:
        await get_db().command("ping")
    except Exception:
        logger.warning("MongoDB ping failed for database %s", settings.MONGO_DB_NAME, exc_info=True)
        return False
    return True


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    서버 + Mongo 연결 상태. 실패 원인은 응답에 싣지 않고 로그로만 남깁니다.
    """
    mongo_ok = await _mongo_reachable()
    return {
        "status": "ok" if mongo_ok else "degraded",
        "mongo": mongo_ok,
        "environment": settings.ENVIRONMENT,
    }
