"""End-to-end dare lifecycle: create, join, submit, rank."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.dares import lifecycle
from dare2earn.db.models import Dare, DareParticipant
from dare2earn.errors import ConflictError


class TestJoin:
    async def test_create_join_submit_scenario(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        bea = await make_user(username="bea")
        cal = await make_user(username="cal")
        dare = await make_dare(creator, entry_fee="10.00")
        assert dare["status"] == "open"
        assert Decimal(dare["prize_pool"]) == 0

        for player in (bea, cal):
            joined = await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
            assert joined.status_code == 200
            assert joined.json() == {"success": True, "message": "Successfully joined the dare"}

        submitted = await client.post(f"/api/dares/{dare['id']}/submit", headers=bea["headers"], json={
            "submission_url": "https://videos.example.com/bea.mp4",
            "submission_caption": "Brrr",
        })
        assert submitted.status_code == 200

        detail = (await client.get(f"/api/dares/{dare['id']}")).json()
        assert Decimal(detail["dare"]["prize_pool"]) == Decimal("20.00")
        assert detail["dare"]["participant_count"] == 2
        by_user = {p["username"]: p for p in detail["participants"]}
        assert by_user["bea"]["submission_url"] == "https://videos.example.com/bea.mp4"
        assert by_user["bea"]["submission_caption"] == "Brrr"
        assert by_user["cal"]["submission_url"] is None

    async def test_second_join_rejected_and_fee_counted_once(
        self, client: AsyncClient, make_user, make_dare, db_session: AsyncSession
    ):
        creator = await make_user(username="host")
        player = await make_user(username="eager")
        dare = await make_dare(creator, entry_fee="5.50")

        first = await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        second = await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["detail"] == "You have already joined this dare"

        rows = await db_session.execute(
            select(func.count(DareParticipant.id)).where(DareParticipant.dare_id == dare["id"])
        )
        assert rows.scalar_one() == 1
        detail = (await client.get(f"/api/dares/{dare['id']}")).json()
        assert Decimal(detail["dare"]["prize_pool"]) == Decimal("5.50")

    async def test_creator_may_join_own_dare(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        dare = await make_dare(creator)
        response = await client.post(f"/api/dares/{dare['id']}/join", headers=creator["headers"])
        assert response.status_code == 200

    async def test_free_dare_keeps_empty_pool(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        player = await make_user(username="thrifty")
        dare = await make_dare(creator, entry_fee="0")
        await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])

        detail = (await client.get(f"/api/dares/{dare['id']}")).json()
        assert Decimal(detail["dare"]["prize_pool"]) == 0
        assert detail["dare"]["participant_count"] == 1

    async def test_join_unknown_dare_is_404(self, client: AsyncClient, make_user):
        player = await make_user(username="lost")
        response = await client.post("/api/dares/9999/join", headers=player["headers"])
        assert response.status_code == 404
        assert response.json()["detail"] == "Dare not found"

    async def test_join_ended_dare_rejected(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        player = await make_user(username="tardy")
        now = datetime.now(timezone.utc)
        dare = await make_dare(
            creator,
            start_time=(now - timedelta(days=3)).isoformat(),
            end_time=(now - timedelta(days=1)).isoformat(),
        )
        response = await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "This dare has already ended"

    async def test_join_closed_dare_rejected(self, client: AsyncClient, make_user, make_admin, make_dare):
        admin = await make_admin(username="boss")
        player = await make_user(username="slow")
        dare = await make_dare(admin)
        closed = await client.put(
            f"/api/dares/{dare['id']}/status", headers=admin["headers"], json={"status": "closed"}
        )
        assert closed.status_code == 200

        response = await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "This dare is no longer accepting participants"

    async def test_join_requires_auth(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        dare = await make_dare(creator)
        response = await client.post(f"/api/dares/{dare['id']}/join")
        assert response.status_code == 401


class TestSubmit:
    async def test_submit_without_joining_is_403(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        outsider = await make_user(username="outsider")
        dare = await make_dare(creator)
        response = await client.post(f"/api/dares/{dare['id']}/submit", headers=outsider["headers"], json={
            "submission_url": "https://videos.example.com/sneaky.mp4",
        })
        assert response.status_code == 403
        assert response.json()["detail"] == "You must join the dare before submitting"

    async def test_resubmission_overwrites(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        player = await make_user(username="perfectionist")
        dare = await make_dare(creator)
        await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])

        for take in ("take1", "take2"):
            response = await client.post(f"/api/dares/{dare['id']}/submit", headers=player["headers"], json={
                "submission_url": f"https://videos.example.com/{take}.mp4",
                "submission_caption": take,
            })
            assert response.status_code == 200

        participants = (await client.get(f"/api/dares/{dare['id']}")).json()["participants"]
        assert len(participants) == 1
        assert participants[0]["submission_url"] == "https://videos.example.com/take2.mp4"
        assert participants[0]["submission_caption"] == "take2"

    async def test_caption_defaults_to_empty(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        player = await make_user(username="quiet")
        dare = await make_dare(creator)
        await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        await client.post(f"/api/dares/{dare['id']}/submit", headers=player["headers"], json={
            "submission_url": "https://videos.example.com/silent.mp4",
        })

        participants = (await client.get(f"/api/dares/{dare['id']}")).json()["participants"]
        assert participants[0]["submission_caption"] == ""

    async def test_submission_url_required(self, client: AsyncClient, make_user, make_dare):
        creator = await make_user(username="host")
        player = await make_user(username="forgetful")
        dare = await make_dare(creator)
        await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        response = await client.post(f"/api/dares/{dare['id']}/submit", headers=player["headers"], json={})
        assert response.status_code == 400


class TestConcurrentJoin:
    """The unique constraint rejects a duplicate join that slipped past the pre-check."""

    async def test_constraint_rejects_duplicate_and_pool_is_unchanged(
        self,
        client: AsyncClient,
        make_user,
        make_dare,
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ):
        creator = await make_user(username="host")
        player = await make_user(username="racer")
        dare = await make_dare(creator, entry_fee="10.00")
        joined = await client.post(f"/api/dares/{dare['id']}/join", headers=player["headers"])
        assert joined.status_code == 200

        async def _not_joined_yet(*args: object) -> bool:
            return False

        monkeypatch.setattr(lifecycle, "_has_joined", _not_joined_yet)
        with pytest.raises(ConflictError, match="already joined"):
            await lifecycle.join_dare(db_session, dare["id"], player["id"])
        await db_session.rollback()

        pool = await db_session.execute(select(Dare.prize_pool).where(Dare.id == dare["id"]))
        assert pool.scalar_one() == Decimal("10.00")
        rows = await db_session.execute(
            select(func.count(DareParticipant.id)).where(DareParticipant.dare_id == dare["id"])
        )
        assert rows.scalar_one() == 1
