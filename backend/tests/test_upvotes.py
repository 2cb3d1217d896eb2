"""Tests for the per-item upvote toggle."""

import asyncio

import pytest
from bson import ObjectId

from studyfeedback.core.errors import NotFound
from studyfeedback.crud import feedback as feedback_crud
from studyfeedback.crud import upvotes


@pytest.fixture
def voter_ids():
    return [str(ObjectId()) for _ in range(3)]


async def _stored_voters(db, feedback_id):
    doc = await db["feedback"].find_one({"_id": ObjectId(feedback_id)})
    return [u["voter_id"] for u in doc["upvotes"]]


class TestToggle:

    @pytest.mark.asyncio
    async def test_first_toggle_adds_vote(self, db, bob, draft, voter_ids):
        item = await feedback_crud.create_feedback(bob, draft())

        result = await upvotes.toggle_upvote(item.id, voter_ids[0])

        assert result.id == item.id
        assert result.upvotes == 1
        assert result.has_viewer_upvoted is True
        assert await _stored_voters(db, item.id) == [voter_ids[0]]

    @pytest.mark.asyncio
    async def test_second_toggle_restores_original_set(self, db, bob, draft, voter_ids):
        item = await feedback_crud.create_feedback(bob, draft())
        await upvotes.toggle_upvote(item.id, voter_ids[1])

        await upvotes.toggle_upvote(item.id, voter_ids[0])
        result = await upvotes.toggle_upvote(item.id, voter_ids[0])

        assert result.upvotes == 1
        assert result.has_viewer_upvoted is False
        assert await _stored_voters(db, item.id) == [voter_ids[1]]

    @pytest.mark.asyncio
    async def test_votes_record_timestamp(self, db, bob, draft, voter_ids):
        item = await feedback_crud.create_feedback(bob, draft())
        await upvotes.toggle_upvote(item.id, voter_ids[0])

        doc = await db["feedback"].find_one({"_id": ObjectId(item.id)})
        assert doc["upvotes"][0]["voted_at"] is not None

    @pytest.mark.asyncio
    async def test_independent_voters_accumulate(self, bob, draft, voter_ids):
        item = await feedback_crud.create_feedback(bob, draft())

        for voter in voter_ids:
            result = await upvotes.toggle_upvote(item.id, voter)

        assert result.upvotes == 3

        fetched = await feedback_crud.get_feedback(item.id, viewer_id=voter_ids[2])
        assert fetched.upvotes == 3
        assert fetched.has_viewer_upvoted is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("toggles", [1, 2, 5, 8])
    async def test_concurrent_toggles_keep_voter_unique(self, db, bob, draft, voter_ids, toggles):
        item = await feedback_crud.create_feedback(bob, draft())

        await asyncio.gather(*(upvotes.toggle_upvote(item.id, voter_ids[0]) for _ in range(toggles)))

        voters = await _stored_voters(db, item.id)
        assert len(voters) == len(set(voters))
        # every toggle is applied exactly once
        assert voters == ([voter_ids[0]] if toggles % 2 else [])

    @pytest.mark.asyncio
    async def test_unknown_item_is_not_found(self, db, voter_ids):
        with pytest.raises(NotFound):
            await upvotes.toggle_upvote(str(ObjectId()), voter_ids[0])

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, db, voter_ids):
        with pytest.raises(NotFound):
            await upvotes.toggle_upvote("nope", voter_ids[0])

    @pytest.mark.asyncio
    async def test_toggle_on_deleted_item_does_not_resurrect(self, db, bob, draft, voter_ids):
        item = await feedback_crud.create_feedback(bob, draft())
        await feedback_crud.soft_delete_feedback(item.id, bob)

        result = await upvotes.toggle_upvote(item.id, voter_ids[0])

        assert result.has_viewer_upvoted is True
        doc = await db["feedback"].find_one({"_id": ObjectId(item.id)})
        assert doc["is_active"] is False
