# backend/studyfeedback/client/api.py
"""
/api/feedback 엔드포인트용 httpx 래퍼.

각 메서드는 성공 envelope 의 data 를 파싱해 반환하고,
실패 envelope 나 전송 오류는 사람이 읽을 수 있는 메시지를 담은 ApiError 로 올립니다.
서버 500 의 상세 내용은 노출하지 않습니다.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from studyfeedback.schemas.feedback import (
    FeedbackListData,
    FeedbackRead,
    FeedbackStats,
    UpvoteResult,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiError(Exception):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class FeedbackApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(base_url=base_url)
        self.token = token

    async def aclose(self):
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, fallback: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(fallback)

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if resp.is_success and body.get("success", False):
            return body

        if resp.status_code >= 500:
            message = fallback
        else:
            message = body.get("message") or fallback
        raise ApiError(message, status_code=resp.status_code, errors=body.get("errors"))

    def _parse_data(self, body: Dict[str, Any], model: Type[ModelT], fallback: str) -> ModelT:
        """성공 envelope 이지만 data 가 없거나 형식이 어긋나면 fallback 메시지로 실패 처리."""
        try:
            return model.model_validate(body["data"])
        except (KeyError, ValidationError) as e:
            logger.warning("Malformed %s payload: %s", model.__name__, e)
            raise ApiError(fallback)

    # ---------- feedback ----------

    async def list_feedback(self, page: int = 1, limit: int = 10, category: Optional[str] = None) -> FeedbackListData:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if category:
            params["type"] = category
        fallback = "Failed to fetch feedback"
        body = await self._request("GET", "/api/feedback", fallback, params=params)
        return self._parse_data(body, FeedbackListData, fallback)

    async def submit_feedback(self, draft: Dict[str, Any]) -> FeedbackRead:
        fallback = "Failed to submit feedback"
        body = await self._request("POST", "/api/feedback", fallback, json=draft)
        return self._parse_data(body, FeedbackRead, fallback)

    async def toggle_upvote(self, feedback_id: str) -> UpvoteResult:
        fallback = "Failed to toggle upvote"
        body = await self._request("PUT", f"/api/feedback/{feedback_id}/upvote", fallback)
        return self._parse_data(body, UpvoteResult, fallback)

    async def delete_feedback(self, feedback_id: str) -> None:
        await self._request("DELETE", f"/api/feedback/{feedback_id}", "Failed to delete feedback")

    async def get_stats(self) -> FeedbackStats:
        fallback = "Failed to fetch feedback statistics"
        body = await self._request("GET", "/api/feedback/stats", fallback)
        return self._parse_data(body, FeedbackStats, fallback)

    # ---------- 새 피드백 배지 ----------

    async def has_new(self) -> bool:
        body = await self._request("GET", "/api/feedback/has-new", "Failed to check new feedback")
        return bool(body.get("has_new"))

    async def mark_seen(self) -> int:
        body = await self._request("PUT", "/api/feedback/mark-seen", "Failed to update feedback seen status")
        return (body.get("data") or {}).get("modified", 0)
