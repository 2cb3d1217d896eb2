# backend/studyfeedback/crud/upvotes.py
"""
피드백별 추천(upvote) 토글.

(item, voter) 쌍의 상태는 {not-voted, voted} 두 가지뿐이고 호출할 때마다 뒤집힙니다.
같은 voter 의 동시 토글이 중복 투표를 만들지 않도록, 추가/제거 모두
voter 포함 여부를 조건으로 건 원자적 find_one_and_update 로 처리합니다.
"""

import logging
from datetime import datetime, timezone
from typing import Union

from bson import ObjectId
from pymongo import ReturnDocument

from studyfeedback.core.errors import AuthenticationRequired, NotFound, UnexpectedFailure
from studyfeedback.crud.feedback import _safe_object_id, get_feedback_collection
from studyfeedback.schemas.feedback import UpvoteResult

logger = logging.getLogger(__name__)

# 추가/제거 사이에 다른 요청이 끼어들어 둘 다 빗나가는 경우의 재시도 횟수
MAX_TOGGLE_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def toggle_upvote(feedback_id: Union[str, ObjectId], voter_id: str) -> UpvoteResult:
    if not voter_id:
        raise AuthenticationRequired()

    oid = _safe_object_id(feedback_id)
    col = get_feedback_collection()

    for _ in range(MAX_TOGGLE_ATTEMPTS):
        now = _utcnow()

        # 1) 아직 투표하지 않았다면 추가
        doc = await col.find_one_and_update(
            {"_id": oid, "upvotes.voter_id": {"$ne": voter_id}},
            {
                "$push": {"upvotes": {"voter_id": voter_id, "voted_at": now}},
                "$set": {"updated_at": now},
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            voted = True
            break

        # 2) 이미 투표했다면 제거
        doc = await col.find_one_and_update(
            {"_id": oid, "upvotes.voter_id": voter_id},
            {
                "$pull": {"upvotes": {"voter_id": voter_id}},
                "$set": {"updated_at": now},
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            voted = False
            break

        # 3) 둘 다 매칭 실패 -> 문서가 없거나, 사이에 상태가 바뀜
        if await col.find_one({"_id": oid}, {"_id": 1}) is None:
            raise NotFound()
    else:
        raise UnexpectedFailure("Server error while updating upvote")

    logger.debug("Upvote %s on %s by %s", "added" if voted else "removed", oid, voter_id)
    return UpvoteResult(
        id=str(doc["_id"]),
        upvotes=len(doc.get("upvotes") or []),
        has_viewer_upvoted=voted,
    )
