# backend/studyfeedback/api/endpoints/web/feedback.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from studyfeedback.api import deps
from studyfeedback.core.config import settings
from studyfeedback.crud import aggregation, notifications, upvotes
from studyfeedback.crud import feedback as feedback_crud
from studyfeedback.models.user import UserInDB
from studyfeedback.schemas.feedback import (
    FeedbackCreate,
    FeedbackListData,
    HasNewResponse,
    MarkSeenResult,
    SuccessResponse,
)

router = APIRouter(prefix="/feedback", tags=["Feedback"])


# CREATE
@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    payload: FeedbackCreate,
    user: UserInDB = Depends(deps.get_current_user),
):
    created = await feedback_crud.create_feedback(user, payload)
    return SuccessResponse(message="Feedback submitted successfully", data=created)


# READ (grouped + page)
@router.get("", response_model=SuccessResponse)
async def list_feedback(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.FEEDBACK_PAGE_SIZE, ge=1, le=settings.FEEDBACK_MAX_PAGE_SIZE),
    type: Optional[str] = Query(None, description="positive | moderate | general"),
    viewer_id: Optional[str] = Depends(deps.get_optional_user_id),
):
    """
    [공개] 카테고리별 그룹 + 요청 페이지 + 페이지 메타데이터.
    토큰이 있으면 각 항목의 has_viewer_upvoted 를 채웁니다.
    """
    grouped = await aggregation.list_grouped(viewer_id=viewer_id)
    page_data = await aggregation.list_page(page, limit, category=type, viewer_id=viewer_id)

    return SuccessResponse(
        data=FeedbackListData(
            feedback=grouped,
            items=page_data.items,
            pagination=page_data.pagination,
        )
    )


# 정적 경로는 /{feedback_id} 보다 먼저 선언해야 함
@router.get("/has-new", response_model=HasNewResponse)
async def has_new_feedback(user_id: str = Depends(deps.get_current_user_id)):
    return HasNewResponse(has_new=await notifications.has_unseen_for(user_id))


@router.get("/stats", response_model=SuccessResponse)
async def feedback_stats():
    return SuccessResponse(data=await aggregation.get_stats())


@router.put("/mark-seen", response_model=SuccessResponse)
async def mark_feedback_seen(user_id: str = Depends(deps.get_current_user_id)):
    modified = await notifications.mark_all_seen_except(user_id)
    return SuccessResponse(
        message=f"Marked {modified} feedback(s) as seen.",
        data=MarkSeenResult(modified=modified),
    )


# READ ONE
@router.get("/{feedback_id}", response_model=SuccessResponse)
async def read_feedback(
    feedback_id: str,
    viewer_id: Optional[str] = Depends(deps.get_optional_user_id),
):
    return SuccessResponse(data=await feedback_crud.get_feedback(feedback_id, viewer_id=viewer_id))


# UPVOTE TOGGLE
@router.put("/{feedback_id}/upvote", response_model=SuccessResponse)
async def toggle_feedback_upvote(
    feedback_id: str,
    user_id: str = Depends(deps.get_current_user_id),
):
    result = await upvotes.toggle_upvote(feedback_id, user_id)
    return SuccessResponse(
        message="Upvote added" if result.has_viewer_upvoted else "Upvote removed",
        data=result,
    )


# DELETE (soft)
@router.delete("/{feedback_id}", response_model=SuccessResponse)
async def delete_feedback(
    feedback_id: str,
    user: UserInDB = Depends(deps.get_current_user),
):
    await feedback_crud.soft_delete_feedback(feedback_id, user)
    return SuccessResponse(message="Feedback deleted successfully")
