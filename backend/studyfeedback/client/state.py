# backend/studyfeedback/client/state.py
"""
클라이언트 피드백 상태와 순수 전이 함수.

모든 변경은 reduce(state, action) -> new state 로만 일어나며 기존 state 는 건드리지 않습니다.
목록 변경(추가/추천/삭제)은 서버 확인 후에만 디스패치되므로 reducer 에는 낙관적 갱신이 없습니다.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from studyfeedback.models.feedback import CATEGORY_PRIORITY
from studyfeedback.schemas.feedback import (
    FeedbackListData,
    FeedbackRead,
    FeedbackStats,
    PaginationMeta,
    UpvoteResult,
)

DEFAULT_PAGE_SIZE = 10


def default_pagination(limit: int = DEFAULT_PAGE_SIZE) -> PaginationMeta:
    return PaginationMeta(
        current_page=1,
        total_pages=1,
        total_count=0,
        has_next=False,
        has_prev=False,
        limit=limit,
    )


@dataclass(frozen=True)
class FeedbackState:
    items_by_category: Dict[str, Tuple[FeedbackRead, ...]] = field(default_factory=dict)
    page_items: Tuple[FeedbackRead, ...] = ()
    stats: FeedbackStats = field(default_factory=FeedbackStats)
    pagination: PaginationMeta = field(default_factory=default_pagination)
    loading: bool = False
    submitting: bool = False
    error: Optional[str] = None
    has_new: bool = False
    # 가장 최근에 보낸 load_page 요청 번호. 이 번호와 다른 응답은 버림
    page_request_seq: int = 0

    def find(self, feedback_id: str) -> Optional[FeedbackRead]:
        for items in self.items_by_category.values():
            for item in items:
                if item.id == feedback_id:
                    return item
        return None


# ---------- actions ----------

@dataclass(frozen=True)
class PageRequested:
    seq: int


@dataclass(frozen=True)
class PageLoaded:
    seq: int
    data: FeedbackListData


@dataclass(frozen=True)
class PageFailed:
    seq: int
    message: str


@dataclass(frozen=True)
class SubmitStarted:
    pass


@dataclass(frozen=True)
class FeedbackAdded:
    item: FeedbackRead


@dataclass(frozen=True)
class UpvoteApplied:
    result: UpvoteResult


@dataclass(frozen=True)
class FeedbackRemoved:
    feedback_id: str


@dataclass(frozen=True)
class StatsLoaded:
    stats: FeedbackStats


@dataclass(frozen=True)
class NewStatusLoaded:
    has_new: bool


@dataclass(frozen=True)
class ActionFailed:
    message: str


@dataclass(frozen=True)
class ErrorCleared:
    pass


# ---------- helpers ----------

def _ordered(buckets: Dict[str, Tuple[FeedbackRead, ...]]) -> Dict[str, Tuple[FeedbackRead, ...]]:
    """priority 순서로 재배열하고 빈 카테고리는 제거."""
    return {c: buckets[c] for c in CATEGORY_PRIORITY if buckets.get(c)}


def _apply_upvote(item: FeedbackRead, result: UpvoteResult) -> FeedbackRead:
    if item.id != result.id:
        return item
    # 서버 응답이 로컬 값을 완전히 대체
    return item.model_copy(update={
        "upvotes": result.upvotes,
        "has_viewer_upvoted": result.has_viewer_upvoted,
    })


# ---------- reducer ----------

def reduce(state: FeedbackState, action) -> FeedbackState:
    if isinstance(action, PageRequested):
        return replace(state, loading=True, page_request_seq=action.seq)

    if isinstance(action, PageLoaded):
        if action.seq != state.page_request_seq:
            return state
        buckets = {c: tuple(items) for c, items in action.data.feedback.items()}
        return replace(
            state,
            items_by_category=_ordered(buckets),
            page_items=tuple(action.data.items),
            pagination=action.data.pagination,
            loading=False,
            error=None,
        )

    if isinstance(action, PageFailed):
        if action.seq != state.page_request_seq:
            return state
        return replace(state, loading=False, error=action.message)

    if isinstance(action, SubmitStarted):
        return replace(state, submitting=True)

    if isinstance(action, FeedbackAdded):
        item = action.item
        category = getattr(item.category, "value", item.category)
        if category not in CATEGORY_PRIORITY:
            return replace(state, submitting=False, error=f"Invalid feedback type: {category}")
        buckets = dict(state.items_by_category)
        buckets[category] = (item,) + tuple(buckets.get(category, ()))
        return replace(state, items_by_category=_ordered(buckets), submitting=False, error=None)

    if isinstance(action, UpvoteApplied):
        buckets = {
            c: tuple(_apply_upvote(i, action.result) for i in items)
            for c, items in state.items_by_category.items()
        }
        page_items = tuple(_apply_upvote(i, action.result) for i in state.page_items)
        return replace(state, items_by_category=buckets, page_items=page_items)

    if isinstance(action, FeedbackRemoved):
        buckets = {
            c: tuple(i for i in items if i.id != action.feedback_id)
            for c, items in state.items_by_category.items()
        }
        page_items = tuple(i for i in state.page_items if i.id != action.feedback_id)
        return replace(state, items_by_category=_ordered(buckets), page_items=page_items)

    if isinstance(action, StatsLoaded):
        return replace(state, stats=action.stats)

    if isinstance(action, NewStatusLoaded):
        return replace(state, has_new=action.has_new)

    if isinstance(action, ActionFailed):
        return replace(state, submitting=False, error=action.message)

    if isinstance(action, ErrorCleared):
        return replace(state, error=None)

    return state
