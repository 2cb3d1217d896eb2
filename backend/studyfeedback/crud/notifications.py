# backend/studyfeedback/crud/notifications.py
"""
"새 피드백" 배지 신호.

is_seen 은 (viewer, item) 쌍이 아니라 항목 자체의 전역 플래그입니다.
작성자가 아닌 누군가가 한 번 목록을 보면 그 항목은 모두에게 seen 이 됩니다.
단, viewer 자신의 글은 viewer 에게 "새 글"로 세지 않습니다.
"""

import logging

from studyfeedback.core.errors import AuthenticationRequired
from studyfeedback.crud.feedback import get_feedback_collection

logger = logging.getLogger(__name__)


def _unseen_by_others(viewer_id: str) -> dict:
    return {
        "is_active": True,
        "is_seen": False,
        "author_id": {"$ne": viewer_id},
    }


async def has_unseen_for(viewer_id: str) -> bool:
    if not viewer_id:
        raise AuthenticationRequired()
    doc = await get_feedback_collection().find_one(_unseen_by_others(viewer_id), {"_id": 1})
    return doc is not None


async def mark_all_seen_except(viewer_id: str) -> int:
    if not viewer_id:
        raise AuthenticationRequired()
    res = await get_feedback_collection().update_many(
        _unseen_by_others(viewer_id),
        {"$set": {"is_seen": True}},
    )
    logger.info("Marked %d feedback(s) as seen for viewer %s", res.modified_count, viewer_id)
    return res.modified_count
