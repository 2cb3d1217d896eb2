# backend/studyfeedback/crud/feedback.py

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError as PydanticValidationError

from studyfeedback.core.errors import (
    AuthenticationRequired,
    NotAuthorized,
    NotFound,
    UnexpectedFailure,
    ValidationError,
    field_errors,
)
from studyfeedback.db.mongo import get_db
from studyfeedback.models.feedback import FeedbackInDB
from studyfeedback.models.user import UserInDB
from studyfeedback.schemas.feedback import FeedbackCreate, FeedbackRead

logger = logging.getLogger(__name__)


def get_feedback_collection():
    """
    Motor DB 핸들에서 feedback 컬렉션을 가져옵니다.
    """
    return get_db()["feedback"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _safe_object_id(feedback_id: Union[str, ObjectId]) -> ObjectId:
    """
    형식이 잘못된 id 는 존재하지 않는 id 와 동일하게 NotFound 처리합니다.
    """
    if isinstance(feedback_id, ObjectId):
        return feedback_id
    if isinstance(feedback_id, str):
        feedback_id = feedback_id.strip()
    try:
        return ObjectId(feedback_id)
    except (InvalidId, TypeError):
        raise NotFound()


def has_voted(doc: Mapping[str, Any], voter_id: Optional[str]) -> bool:
    if not voter_id:
        return False
    return any(u.get("voter_id") == voter_id for u in doc.get("upvotes") or [])


def serialize_feedback_read(doc, viewer_id: Optional[str] = None) -> FeedbackRead:
    """
    Mongo document(dict) -> FeedbackRead (응답용)
    핵심: id는 반드시 str로 변환, upvotes 는 개수로 축약
    """
    return FeedbackRead(
        id=str(doc["_id"]),
        author_id=doc["author_id"],
        author_name=doc["author_name"],
        author_profile_image=doc.get("author_profile_image") or "",
        is_verified_author=doc.get("is_verified_author", False),
        text=doc["text"],
        category=doc["category"],
        rating=doc.get("rating"),
        suggestion=doc.get("suggestion"),
        is_seen=doc.get("is_seen", False),
        upvotes=len(doc.get("upvotes") or []),
        has_viewer_upvoted=has_voted(doc, viewer_id),
        created_at=doc["created_at"],
        updated_at=doc.get("updated_at") or doc["created_at"],
    )


def _validate_payload(payload: Union[FeedbackCreate, Dict[str, Any]]) -> FeedbackCreate:
    if isinstance(payload, FeedbackCreate):
        return payload
    try:
        return FeedbackCreate.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(field_errors(e.errors()))


# CREATE
async def create_feedback(
    author: Optional[UserInDB],
    payload: Union[FeedbackCreate, Dict[str, Any]],
) -> FeedbackRead:
    """
    피드백 제출.
    - author 가 없으면 AuthenticationRequired
    - 검증 실패 시 ValidationError (저장소는 변경되지 않음)
    - 작성자 이름/프로필 이미지/인증 여부는 이 시점의 값으로 고정
    """
    if author is None:
        raise AuthenticationRequired()

    data = _validate_payload(payload)
    col = get_feedback_collection()

    now = _utcnow()
    feedback = FeedbackInDB(
        author_id=author.id,
        author_name=author.name,
        author_profile_image=author.profile_image or "",
        is_verified_author=author.is_verified,
        text=data.text,
        category=data.category,
        rating=data.rating,
        suggestion=data.suggestion,
        created_at=now,
        updated_at=now,
    )

    res = await col.insert_one(feedback.model_dump(by_alias=True))
    saved = await col.find_one({"_id": res.inserted_id})
    if not saved:
        raise UnexpectedFailure("Server error while submitting feedback")

    logger.info(
        "Feedback %s submitted by %s (category=%s)",
        saved["_id"], author.id, saved["category"],
    )
    return serialize_feedback_read(saved, viewer_id=author.id)


# READ ONE
async def get_feedback_doc(feedback_id: Union[str, ObjectId]) -> Dict[str, Any]:
    """
    soft delete 여부와 관계없이 원본 문서를 반환. 없으면 NotFound.
    """
    oid = _safe_object_id(feedback_id)
    doc = await get_feedback_collection().find_one({"_id": oid})
    if not doc:
        raise NotFound()
    return doc


async def get_feedback(
    feedback_id: Union[str, ObjectId],
    viewer_id: Optional[str] = None,
    include_inactive: bool = False,
) -> FeedbackRead:
    doc = await get_feedback_doc(feedback_id)
    if not include_inactive and not doc.get("is_active", True):
        raise NotFound()
    return serialize_feedback_read(doc, viewer_id=viewer_id)


# DELETE (soft)
async def soft_delete_feedback(
    feedback_id: Union[str, ObjectId],
    actor: Optional[UserInDB],
) -> bool:
    """
    작성자 본인 또는 관리자만 삭제 가능. is_active 를 False 로만 바꾸고 문서는 유지.
    이미 삭제된 항목을 다시 삭제해도 성공(no-op)이며, 실제로 상태가 바뀐 경우에만 True.
    """
    if actor is None:
        raise AuthenticationRequired()

    doc = await get_feedback_doc(feedback_id)

    if doc["author_id"] != actor.id and not actor.is_admin:
        logger.warning("User %s tried to delete feedback %s owned by %s", actor.id, doc["_id"], doc["author_id"])
        raise NotAuthorized("Not authorized to delete this feedback")

    # is_active=True 조건부 업데이트 -> 되살리기 없음, 중복 호출은 modified_count 0
    res = await get_feedback_collection().update_one(
        {"_id": doc["_id"], "is_active": True},
        {"$set": {"is_active": False, "updated_at": _utcnow()}},
    )
    deleted = res.modified_count == 1
    if deleted:
        logger.info("Feedback %s soft-deleted by %s", doc["_id"], actor.id)
    return deleted
