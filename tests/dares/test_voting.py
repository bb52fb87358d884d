"""Tests for voting and participant ranking."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.dares import lifecycle
from dare2earn.db.models import DareParticipant, Vote
from dare2earn.errors import ConflictError


async def _participant_ids(client: AsyncClient, dare_id: int) -> dict[str, int]:
    detail = (await client.get(f"/api/dares/{dare_id}")).json()
    return {p["username"]: p["id"] for p in detail["participants"]}


async def _join_all(client: AsyncClient, dare_id: int, *players) -> None:
    for player in players:
        response = await client.post(f"/api/dares/{dare_id}/join", headers=player["headers"])
        assert response.status_code == 200


class TestVoting:
    async def test_vote_increments_count(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        cal = await make_user(username="cal")
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], bea, cal)
        ids = await _participant_ids(client, dare["id"])

        response = await client.post(f"/api/participants/{ids['bea']}/vote", headers=cal["headers"])
        assert response.status_code == 200
        assert response.json()["message"] == "Vote recorded successfully"

        participants = (await client.get(f"/api/dares/{dare['id']}")).json()["participants"]
        votes = {p["username"]: p["votes_count"] for p in participants}
        assert votes == {"bea": 1, "cal": 0}

    async def test_self_vote_rejected(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], bea)
        ids = await _participant_ids(client, dare["id"])

        response = await client.post(f"/api/participants/{ids['bea']}/vote", headers=bea["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "You cannot vote for yourself"

    async def test_boosted_self_vote_still_rejected(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], bea)
        ids = await _participant_ids(client, dare["id"])

        response = await client.post(
            f"/api/participants/{ids['bea']}/vote", headers=bea["headers"], json={"is_boosted_vote": True}
        )
        assert response.status_code == 400

    async def test_duplicate_vote_rejected_and_counted_once(
        self, client: AsyncClient, make_user, make_dare, db_session: AsyncSession
    ):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        fan = await make_user(username="fan")
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], bea)
        ids = await _participant_ids(client, dare["id"])

        first = await client.post(f"/api/participants/{ids['bea']}/vote", headers=fan["headers"])
        second = await client.post(
            f"/api/participants/{ids['bea']}/vote", headers=fan["headers"], json={"is_boosted_vote": True}
        )
        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["detail"] == "You have already voted for this submission"

        stored = await db_session.execute(
            select(func.count(Vote.id)).where(Vote.dare_participant_id == ids["bea"])
        )
        assert stored.scalar_one() == 1
        participants = (await client.get(f"/api/dares/{dare['id']}")).json()["participants"]
        assert participants[0]["votes_count"] == 1

    async def test_boosted_vote_is_recorded_and_counts_once(
        self, client: AsyncClient, make_user, make_dare, db_session: AsyncSession
    ):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        fan = await make_user(username="fan")
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], bea)
        ids = await _participant_ids(client, dare["id"])

        response = await client.post(
            f"/api/participants/{ids['bea']}/vote", headers=fan["headers"], json={"is_boosted_vote": True}
        )
        assert response.status_code == 200

        boosted = await db_session.execute(select(Vote.is_boosted_vote).where(Vote.voter_user_id == fan["id"]))
        assert boosted.scalar_one() is True
        participants = (await client.get(f"/api/dares/{dare['id']}")).json()["participants"]
        assert participants[0]["votes_count"] == 1

    async def test_vote_for_unknown_participant_is_404(self, client: AsyncClient, make_user):
        fan = await make_user(username="fan")
        response = await client.post("/api/participants/4242/vote", headers=fan["headers"])
        assert response.status_code == 404

    async def test_vote_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/participants/1/vote")
        assert response.status_code == 401


class TestRanking:
    async def test_participants_ranked_by_votes_then_join_order(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        early = await make_user(username="early")
        middle = await make_user(username="middle")
        late = await make_user(username="late")
        voters = [await make_user(username=f"voter{i}") for i in range(3)]
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], early, middle, late)
        ids = await _participant_ids(client, dare["id"])

        # late: 2 votes, early and middle: 1 each (early joined first so it ranks above middle)
        for voter in voters[:2]:
            await client.post(f"/api/participants/{ids['late']}/vote", headers=voter["headers"])
        await client.post(f"/api/participants/{ids['middle']}/vote", headers=voters[2]["headers"])
        await client.post(f"/api/participants/{ids['early']}/vote", headers=voters[2]["headers"])

        participants = (await client.get(f"/api/dares/{dare['id']}")).json()["participants"]
        assert [p["username"] for p in participants] == ["late", "early", "middle"]
        assert [p["votes_count"] for p in participants] == [2, 1, 1]


class TestConcurrentVote:
    async def test_constraint_rejects_duplicate_and_count_is_unchanged(
        self,
        client: AsyncClient,
        make_user,
        make_dare,
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        cal = await make_user(username="cal")
        dare = await make_dare(creator)
        await _join_all(client, dare["id"], bea, cal)
        ids = await _participant_ids(client, dare["id"])
        first = await client.post(f"/api/participants/{ids['bea']}/vote", headers=cal["headers"])
        assert first.status_code == 200

        async def _not_voted_yet(*args: object) -> bool:
            return False

        monkeypatch.setattr(lifecycle, "_has_voted", _not_voted_yet)
        with pytest.raises(ConflictError, match="already voted"):
            await lifecycle.vote(db_session, ids["bea"], cal["id"])
        await db_session.rollback()

        count = await db_session.execute(
            select(DareParticipant.votes_count).where(DareParticipant.id == ids["bea"])
        )
        assert count.scalar_one() == 1
        ballots = await db_session.execute(
            select(func.count(Vote.id)).where(Vote.dare_participant_id == ids["bea"])
        )
        assert ballots.scalar_one() == 1
