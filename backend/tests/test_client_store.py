"""Tests for ClientFeedbackState orchestration against a fake API."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from studyfeedback.client.api import ApiError
from studyfeedback.client.store import ClientFeedbackState
from studyfeedback.schemas.feedback import (
    CategoryStats,
    FeedbackListData,
    FeedbackRead,
    FeedbackStats,
    PaginationMeta,
    UpvoteResult,
)


def _make_item(feedback_id: str, category: str = "general", upvotes: int = 0) -> FeedbackRead:
    ts = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    return FeedbackRead(
        id=feedback_id,
        author_id="u1",
        author_name="Alice",
        text="Great study timer, thanks!",
        category=category,
        upvotes=upvotes,
        created_at=ts,
        updated_at=ts,
    )


def _page(*items: FeedbackRead, page: int = 1) -> FeedbackListData:
    grouped = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return FeedbackListData(
        feedback=grouped,
        items=list(items),
        pagination=PaginationMeta(
            current_page=page,
            total_pages=3,
            total_count=25,
            has_next=page < 3,
            has_prev=page > 1,
            limit=10,
        ),
    )


@pytest.fixture
def mock_api():
    """Mock FeedbackApiClient."""
    api = AsyncMock()
    api.list_feedback = AsyncMock(return_value=_page(_make_item("g1")))
    api.submit_feedback = AsyncMock()
    api.toggle_upvote = AsyncMock()
    api.delete_feedback = AsyncMock(return_value=None)
    api.get_stats = AsyncMock(return_value=FeedbackStats())
    api.has_new = AsyncMock(return_value=False)
    api.mark_seen = AsyncMock(return_value=0)
    return api


@pytest.fixture
def store(mock_api):
    return ClientFeedbackState(mock_api)


class TestLoadPage:

    @pytest.mark.asyncio
    async def test_load_sends_page_size_and_category(self, store, mock_api):
        await store.load_page(2, category="general")

        mock_api.list_feedback.assert_awaited_once_with(page=2, limit=10, category="general")
        assert store.state.loading is False
        assert [i.id for i in store.state.items_by_category["general"]] == ["g1"]

    @pytest.mark.asyncio
    async def test_last_issued_request_wins(self, store, mock_api):
        release_first = asyncio.Event()

        async def list_feedback(page, limit, category=None):
            if page == 1:
                await release_first.wait()
                return _page(_make_item("stale"), page=1)
            return _page(_make_item("fresh"), page=2)

        mock_api.list_feedback.side_effect = list_feedback

        first = asyncio.create_task(store.load_page(1))
        await asyncio.sleep(0)
        await store.load_page(2)

        # the older request resolves after the newer one
        release_first.set()
        await first

        assert [i.id for i in store.state.items_by_category["general"]] == ["fresh"]
        assert store.state.pagination.current_page == 2
        assert store.state.loading is False

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_set_error(self, store, mock_api):
        release_first = asyncio.Event()

        async def list_feedback(page, limit, category=None):
            if page == 1:
                await release_first.wait()
                raise ApiError("Failed to fetch feedback")
            return _page(_make_item("fresh"), page=2)

        mock_api.list_feedback.side_effect = list_feedback

        first = asyncio.create_task(store.load_page(1))
        await asyncio.sleep(0)
        await store.load_page(2)
        release_first.set()
        await first

        assert store.state.error is None

    @pytest.mark.asyncio
    async def test_failure_sets_error(self, store, mock_api):
        mock_api.list_feedback.side_effect = ApiError("Failed to fetch feedback", status_code=500)

        await store.load_page(1)

        assert store.state.error == "Failed to fetch feedback"
        assert store.state.loading is False
        mock_api.list_feedback.assert_awaited_once()


class TestMutations:

    @pytest.mark.asyncio
    async def test_submit_prepends_confirmed_item(self, store, mock_api):
        await store.load_page(1)
        mock_api.submit_feedback.return_value = _make_item("g2")

        created = await store.submit({"text": "Another helpful comment", "category": "general"})

        assert created.id == "g2"
        assert [i.id for i in store.state.items_by_category["general"]] == ["g2", "g1"]
        assert store.state.submitting is False

    @pytest.mark.asyncio
    async def test_submit_failure_keeps_lists(self, store, mock_api):
        await store.load_page(1)
        before = store.state.items_by_category
        mock_api.submit_feedback.side_effect = ApiError("Validation failed", status_code=400)

        assert await store.submit({"text": "short", "category": "general"}) is None

        assert store.state.error == "Validation failed"
        assert store.state.items_by_category == before
        assert store.state.submitting is False
        # no automatic retry
        mock_api.submit_feedback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upvote_applies_server_values(self, store, mock_api):
        await store.load_page(1)
        mock_api.toggle_upvote.return_value = UpvoteResult(id="g1", upvotes=4, has_viewer_upvoted=True)

        await store.toggle_upvote("g1")

        item = store.state.find("g1")
        assert item.upvotes == 4
        assert item.has_viewer_upvoted is True

    @pytest.mark.asyncio
    async def test_upvote_failure_sets_error(self, store, mock_api):
        await store.load_page(1)
        mock_api.toggle_upvote.side_effect = ApiError("Feedback not found", status_code=404)

        assert await store.toggle_upvote("g1") is None
        assert store.state.error == "Feedback not found"
        assert store.state.find("g1").upvotes == 0

    @pytest.mark.asyncio
    async def test_delete_removes_after_confirmation(self, store, mock_api):
        await store.load_page(1)

        assert await store.delete("g1") is True
        assert store.state.items_by_category == {}

    @pytest.mark.asyncio
    async def test_delete_failure_keeps_item(self, store, mock_api):
        await store.load_page(1)
        mock_api.delete_feedback.side_effect = ApiError("Not authorized to delete this feedback", status_code=403)

        assert await store.delete("g1") is False
        assert store.state.find("g1") is not None
        assert store.state.error == "Not authorized to delete this feedback"

    @pytest.mark.asyncio
    async def test_clear_error(self, store, mock_api):
        mock_api.get_stats.side_effect = ApiError("Failed to fetch feedback statistics")
        await store.load_stats()
        assert store.state.error == "Failed to fetch feedback statistics"

        store.clear_error()
        assert store.state.error is None


class TestStatsAndBadge:

    @pytest.mark.asyncio
    async def test_load_stats(self, store, mock_api):
        mock_api.get_stats.return_value = FeedbackStats(
            stats={"positive": CategoryStats(count=2, average_rating=4.5)},
            total_feedback=2,
        )

        await store.load_stats()

        assert store.state.stats.stats["positive"].average_rating == 4.5

    @pytest.mark.asyncio
    async def test_check_and_mark_seen(self, store, mock_api):
        mock_api.has_new.return_value = True

        assert await store.check_new_feedback() is True
        assert store.state.has_new is True

        await store.mark_seen()
        assert store.state.has_new is False
        mock_api.mark_seen.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_badge_failure_is_not_a_screen_error(self, store, mock_api):
        mock_api.has_new.side_effect = ApiError("Failed to check new feedback")

        assert await store.check_new_feedback() is False
        assert store.state.error is None


class TestSubscribe:

    @pytest.mark.asyncio
    async def test_listeners_receive_new_states(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)

        await store.load_page(1)
        unsubscribe()
        store.clear_error()

        assert [s.loading for s in seen] == [True, False]
