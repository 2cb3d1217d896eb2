# backend/studyfeedback/client/store.py

import itertools
import logging
from typing import Any, Callable, Dict, List, Optional

from studyfeedback.client.api import ApiError, FeedbackApiClient
from studyfeedback.client.state import (
    ActionFailed,
    ErrorCleared,
    FeedbackAdded,
    FeedbackRemoved,
    FeedbackState,
    NewStatusLoaded,
    PageFailed,
    PageLoaded,
    PageRequested,
    StatsLoaded,
    SubmitStarted,
    UpvoteApplied,
    reduce,
)
from studyfeedback.schemas.feedback import FeedbackRead, UpvoteResult

logger = logging.getLogger(__name__)

Listener = Callable[[FeedbackState], None]


class ClientFeedbackState:
    """
    서버 피드백 상태를 비추는 클라이언트 측 상태 머신.

    - 자동 재시도 없음: 실패는 error 메시지로만 남고 재시도는 사용자가 직접
    - error 는 clear_error() 로만 지워짐 (표시/해제 타이밍은 화면 쪽 책임)
    - load_page 는 경쟁 가능. 마지막으로 "보낸" 요청의 응답만 반영됨
    """

    def __init__(self, api: FeedbackApiClient, initial: Optional[FeedbackState] = None):
        self.api = api
        self._state = initial or FeedbackState()
        self._listeners: List[Listener] = []
        self._page_seq = itertools.count(self._state.page_request_seq + 1)

    @property
    def state(self) -> FeedbackState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action) -> FeedbackState:
        new_state = reduce(self._state, action)
        if new_state is not self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    # ---------- actions ----------

    async def load_page(self, page: int = 1, category: Optional[str] = None) -> None:
        seq = next(self._page_seq)
        self.dispatch(PageRequested(seq))
        try:
            data = await self.api.list_feedback(
                page=page,
                limit=self._state.pagination.limit,
                category=category,
            )
        except ApiError as e:
            self.dispatch(PageFailed(seq, e.message))
            return
        self.dispatch(PageLoaded(seq, data))

    async def submit(self, draft: Dict[str, Any]) -> Optional[FeedbackRead]:
        self.dispatch(SubmitStarted())
        try:
            created = await self.api.submit_feedback(draft)
        except ApiError as e:
            self.dispatch(ActionFailed(e.message))
            return None
        self.dispatch(FeedbackAdded(created))
        return created

    async def toggle_upvote(self, feedback_id: str) -> Optional[UpvoteResult]:
        try:
            result = await self.api.toggle_upvote(feedback_id)
        except ApiError as e:
            self.dispatch(ActionFailed(e.message))
            return None
        self.dispatch(UpvoteApplied(result))
        return result

    async def delete(self, feedback_id: str) -> bool:
        try:
            await self.api.delete_feedback(feedback_id)
        except ApiError as e:
            self.dispatch(ActionFailed(e.message))
            return False
        self.dispatch(FeedbackRemoved(feedback_id))
        return True

    async def load_stats(self) -> None:
        try:
            stats = await self.api.get_stats()
        except ApiError as e:
            self.dispatch(ActionFailed(e.message))
            return
        self.dispatch(StatsLoaded(stats))

    def clear_error(self) -> None:
        self.dispatch(ErrorCleared())

    # ---------- 새 피드백 배지 ----------

    async def check_new_feedback(self) -> bool:
        try:
            has_new = await self.api.has_new()
        except ApiError as e:
            # 배지 확인 실패는 화면 에러로 올리지 않음
            logger.warning("Error checking new feedback: %s", e.message)
            return self._state.has_new
        self.dispatch(NewStatusLoaded(has_new))
        return has_new

    async def mark_seen(self) -> None:
        try:
            await self.api.mark_seen()
        except ApiError as e:
            logger.warning("Failed to mark feedback as seen: %s", e.message)
            return
        self.dispatch(NewStatusLoaded(False))
