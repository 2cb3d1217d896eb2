# backend/studyfeedback/models/feedback.py

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class FeedbackCategory(str, Enum):
    POSITIVE = "positive"
    MODERATE = "moderate"
    GENERAL = "general"


# 그룹 출력 순서 (positive -> moderate -> general)
CATEGORY_PRIORITY = (
    FeedbackCategory.POSITIVE.value,
    FeedbackCategory.MODERATE.value,
    FeedbackCategory.GENERAL.value,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UpvoteEntry(BaseModel):
    voter_id: str
    voted_at: datetime = Field(default_factory=_utcnow)


class FeedbackInDB(BaseModel):
    """
    MongoDB의 'feedback' 컬렉션에 저장되는 완전한 형태의 데이터 모델입니다.
    author_* / is_verified_author 는 제출 시점의 스냅샷이며 이후 동기화하지 않습니다.
    """
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")

    author_id: str
    author_name: str
    author_profile_image: str = ""
    is_verified_author: bool = False

    text: str
    category: FeedbackCategory
    rating: Optional[int] = None
    suggestion: Optional[str] = None

    # False = soft delete (목록/통계에서 제외, 저장은 유지)
    is_active: bool = True
    is_seen: bool = False

    upvotes: List[UpvoteEntry] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        from_attributes=True,
        use_enum_values=True,
    )
