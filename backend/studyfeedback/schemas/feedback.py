# backend/studyfeedback/schemas/feedback.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from studyfeedback.models.feedback import FeedbackCategory


# -------------------------
# 공백 방지 공통 유틸
# -------------------------
def _strip_to_none(v):
    """
    Optional[str] 입력에서:
    - None은 그대로
    - "   " -> None
    - 그 외는 strip된 문자열
    """
    if v is None:
        return None
    if not isinstance(v, str):
        return v
    s = v.strip()
    return s or None


# ---------- 요청 스키마 ----------

class FeedbackCreate(BaseModel):
    """
    [요청] POST /api/feedback
    작성자 정보는 토큰에서 가져오므로 본문에는 내용만 담습니다.
    카테고리는 "category" 또는 구버전 이름 "type" 둘 다 허용(호환).
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    text: str = Field(..., min_length=10, max_length=1000)
    category: FeedbackCategory = Field(
        ...,
        validation_alias=AliasChoices("category", "type"),
    )
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    suggestion: Optional[str] = Field(default=None, max_length=500)

    @field_validator("suggestion", mode="before")
    @classmethod
    def validate_suggestion(cls, v):
        return _strip_to_none(v)

    @field_validator("rating", mode="before")
    @classmethod
    def reject_bool_rating(cls, v):
        # True/False 가 1/0 으로 캐스팅되는 것 방지
        if isinstance(v, bool):
            raise ValueError("Rating must be between 1 and 5")
        return v


# ---------- 응답 스키마 ----------

class FeedbackRead(BaseModel):
    """
    [응답] 피드백 1건. upvotes 는 개수만 노출하고 투표자 id 는 숨깁니다.
    """
    id: str
    author_id: str
    author_name: str
    author_profile_image: str = ""
    is_verified_author: bool = False

    text: str
    category: FeedbackCategory
    rating: Optional[int] = None
    suggestion: Optional[str] = None

    is_seen: bool = False
    upvotes: int = 0
    has_viewer_upvoted: bool = False

    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "use_enum_values": True,
    }


class UpvoteResult(BaseModel):
    """
    [응답] PUT /api/feedback/{id}/upvote
    """
    id: str
    upvotes: int
    has_viewer_upvoted: bool


class PaginationMeta(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool
    limit: int


class FeedbackPage(BaseModel):
    items: List[FeedbackRead] = Field(default_factory=list)
    pagination: PaginationMeta


class FeedbackListData(BaseModel):
    """
    [응답] GET /api/feedback 의 data
    - feedback: 카테고리별 그룹 (positive, moderate, general 순서, 빈 그룹은 생략)
    - items: 요청한 페이지의 평탄한 목록
    """
    feedback: Dict[str, List[FeedbackRead]] = Field(default_factory=dict)
    items: List[FeedbackRead] = Field(default_factory=list)
    pagination: PaginationMeta


class CategoryStats(BaseModel):
    count: int
    average_rating: Optional[float] = None


class FeedbackStats(BaseModel):
    stats: Dict[str, CategoryStats] = Field(default_factory=dict)
    total_feedback: int = 0


class MarkSeenResult(BaseModel):
    modified: int


# ---------- 공통 envelope ----------

class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None


class HasNewResponse(BaseModel):
    success: bool = True
    has_new: bool
