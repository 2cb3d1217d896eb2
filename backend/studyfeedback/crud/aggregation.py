# backend/studyfeedback/crud/aggregation.py
"""
활성 피드백의 그룹/페이지/통계 조회. soft delete 된 항목(is_active=False)은 항상 제외.
"""

import math
from typing import Dict, List, Optional

from studyfeedback.core.errors import ValidationError
from studyfeedback.crud.feedback import get_feedback_collection, serialize_feedback_read
from studyfeedback.models.feedback import CATEGORY_PRIORITY
from studyfeedback.schemas.feedback import (
    CategoryStats,
    FeedbackPage,
    FeedbackRead,
    FeedbackStats,
    PaginationMeta,
)

# 최신순, 같은 시각이면 나중에 생성된 _id 가 먼저
NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def _active_query(category: Optional[str] = None) -> dict:
    q = {"is_active": True}
    if category:
        q["category"] = category
    return q


def normalize_category(category: Optional[str]) -> Optional[str]:
    """
    알 수 없는 카테고리 필터는 무시(None)합니다.
    """
    if category is None:
        return None
    if hasattr(category, "value"):
        category = category.value
    category = str(category).strip()
    return category if category in CATEGORY_PRIORITY else None


async def list_grouped(viewer_id: Optional[str] = None) -> Dict[str, List[FeedbackRead]]:
    """
    카테고리별 그룹. positive -> moderate -> general 순서로 내보내고,
    항목이 없는 카테고리는 빈 리스트 대신 아예 키를 생략합니다.
    """
    cursor = get_feedback_collection().find(_active_query()).sort(NEWEST_FIRST)
    docs = await cursor.to_list(length=None)

    buckets: Dict[str, List[FeedbackRead]] = {}
    for doc in docs:
        buckets.setdefault(doc["category"], []).append(
            serialize_feedback_read(doc, viewer_id=viewer_id)
        )

    return {c: buckets[c] for c in CATEGORY_PRIORITY if buckets.get(c)}


def build_pagination(page: int, page_size: int, total_count: int) -> PaginationMeta:
    total_pages = math.ceil(total_count / page_size) if total_count else 0
    return PaginationMeta(
        current_page=page,
        total_pages=total_pages,
        total_count=total_count,
        has_next=page < total_pages,
        has_prev=page > 1,
        limit=page_size,
    )


async def list_page(
    page: int = 1,
    page_size: int = 10,
    category: Optional[str] = None,
    viewer_id: Optional[str] = None,
) -> FeedbackPage:
    """
    최신순 페이지 조회. 범위를 벗어난 페이지는 에러 대신 빈 목록 + 정확한 메타데이터.
    """
    errors = []
    if page < 1:
        errors.append({"field": "page", "message": "page must be a positive integer"})
    if page_size < 1:
        errors.append({"field": "limit", "message": "limit must be a positive integer"})
    if errors:
        raise ValidationError(errors)

    col = get_feedback_collection()
    query = _active_query(normalize_category(category))

    total_count = await col.count_documents(query)
    pagination = build_pagination(page, page_size, total_count)

    items: List[FeedbackRead] = []
    if (page - 1) * page_size < total_count:
        cursor = col.find(query).sort(NEWEST_FIRST).skip((page - 1) * page_size).limit(page_size)
        docs = await cursor.to_list(length=page_size)
        items = [serialize_feedback_read(d, viewer_id=viewer_id) for d in docs]

    return FeedbackPage(items=items, pagination=pagination)


async def get_stats() -> FeedbackStats:
    """
    카테고리별 개수와 평균 평점(평점이 있는 항목만, 없으면 None) + 전체 활성 개수.
    """
    col = get_feedback_collection()
    pipeline = [
        {"$match": _active_query()},
        {
            "$group": {
                "_id": "$category",
                "count": {"$sum": 1},
                # $avg 는 null/누락 값을 건너뜀
                "average_rating": {"$avg": "$rating"},
            }
        },
    ]
    rows = await col.aggregate(pipeline).to_list(length=None)
    by_category = {row["_id"]: row for row in rows}

    stats = {}
    for c in CATEGORY_PRIORITY:
        row = by_category.get(c)
        if not row:
            continue
        stats[c] = CategoryStats(count=row["count"], average_rating=row.get("average_rating"))

    total_feedback = await col.count_documents(_active_query())
    return FeedbackStats(stats=stats, total_feedback=total_feedback)
