"""Integration tests for the FastAPI layer."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from crusade.api.app import create_app
from crusade.api.runtime import ApiState
from crusade.config import Settings
from crusade.domain import models as dm
from crusade.repository import JsonCampaignRepository


def _make_app(tmp_path):
    def factory() -> ApiState:
        settings = Settings(data_dir=tmp_path)
        return ApiState(settings=settings)

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


async def _create_campaign(client: AsyncClient) -> int:
    response = await client.post("/campaigns", json={"name": "Dev Crusade"})
    assert response.status_code == 201
    payload = response.json()
    assert payload["player_count"] == 0
    return payload["id"]


async def _create_player(client: AsyncClient, campaign_id: int, name: str, faction: str) -> str:
    response = await client.post(
        f"/campaigns/{campaign_id}/players", json={"name": name, "faction": faction}
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["requisition_points"] == 5
    return payload["id"]


async def _create_unit(client: AsyncClient, campaign_id: int, owner_id: str, **fields) -> str:
    response = await client.post(
        f"/campaigns/{campaign_id}/units", json={"owner_id": owner_id, **fields}
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_crusade_lifecycle_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

        campaign_id = await _create_campaign(client)
        alice = await _create_player(client, campaign_id, "Alice", "Space Marines")
        bob = await _create_player(client, campaign_id, "Bob", "Orks")

        response = await client.post(
            f"/campaigns/{campaign_id}/territories", json={"name": "Hive Primus"}
        )
        assert response.status_code == 201
        hex_id = response.json()["id"]

        intercessors = await _create_unit(
            client, campaign_id, alice, name="Intercessors", points_cost=80
        )
        captain = await _create_unit(
            client, campaign_id, alice, name="Captain", points_cost=80, is_character=True
        )
        boyz = await _create_unit(client, campaign_id, bob, name="Boyz", points_cost=85)

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{intercessors}/xp", json={"amount": 6}
        )
        assert response.status_code == 200
        award = response.json()
        assert award["accepted"] is True
        assert award["ranked_up"] is True
        assert award["unit"]["rank"] == 2

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{captain}/honours",
            json={"category": "battle_trait", "name": "Inspiring Leader"},
        )
        assert response.status_code == 200
        unit_payload = response.json()["unit"]
        assert unit_payload["battle_honours"][0]["category"] == "battle_trait"
        assert unit_payload["crusade_points"] == 1

        response = await client.post(
            f"/campaigns/{campaign_id}/requisitions",
            json={"player_id": alice, "requisition": "increase_supply_limit"},
        )
        assert response.status_code == 200

        response = await client.post(
            f"/campaigns/{campaign_id}/battles",
            json={
                "participants": [
                    {"player_id": alice, "units_deployed": [intercessors, captain]},
                    {"player_id": bob, "units_deployed": [boyz]},
                ],
                "destroyed_units": {bob: [boyz]},
                "kills": {intercessors: 3},
                "marked_for_greatness": {alice: captain},
                "winner": alice,
                "hex_id": hex_id,
                "mission": "Supply Drop",
                "victory_points": {alice: 85, bob: 40},
                "agendas": {
                    alice: [{"unit_id": intercessors, "name": "Reaper", "completed": True}]
                },
                "fixed_rolls": {boyz: 1},
            },
        )
        assert response.status_code == 201
        summary = response.json()
        assert summary["xp_gained"][intercessors] == 2
        assert summary["xp_gained"][captain] == 4
        assert summary["pending_choices"] == [boyz]
        assert summary["rp_awarded"] == {alice: 1}
        assert summary["territory_captured"] is True

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{boyz}/out-of-action",
            json={"consequence": "devastating_blow"},
        )
        assert response.status_code == 200
        assert response.json()["unit"] is None

        response = await client.get(f"/campaigns/{campaign_id}/units/{boyz}")
        assert response.status_code == 404

        response = await client.get(f"/campaigns/{campaign_id}")
        assert response.status_code == 200
        detail = response.json()
        assert detail["battle_count"] == 1
        assert detail["players"][alice]["victories"] == 1
        assert detail["players"][alice]["requisition_points"] == 5
        assert detail["players"][alice]["supply_limit"] == 1200
        assert detail["territories"][hex_id]["controlled_by"] == alice

        response = await client.get(
            f"/campaigns/{campaign_id}/statistics",
            params={"player_metric": "win_rate", "unit_metric": "kills", "limit": 1},
        )
        assert response.status_code == 200
        stats = response.json()
        assert stats["overview"]["total_battles"] == 1
        assert [entry["name"] for entry in stats["leaderboard"]] == ["Alice", "Bob"]
        assert [entry["name"] for entry in stats["top_units"]] == ["Intercessors"]
        assert stats["battles"]["victory_points"] == {alice: 85, bob: 40}

    repo = JsonCampaignRepository(tmp_path)
    stored = repo.load(dm.CampaignID(campaign_id))
    assert stored.units[dm.UnitID(intercessors)].experience_points == 8
    assert dm.UnitID(boyz) not in stored.units


@pytest.mark.asyncio
async def test_error_responses_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/campaigns/99")
        assert response.status_code == 404

        campaign_id = await _create_campaign(client)
        alice = await _create_player(client, campaign_id, "Alice", "Space Marines")
        squad = await _create_unit(client, campaign_id, alice, name="Intercessors")

        response = await client.post(
            f"/campaigns/{campaign_id}/units", json={"owner_id": "nobody", "name": "Ghosts"}
        )
        assert response.status_code == 404

        response = await client.get(f"/campaigns/{campaign_id}/units/missing")
        assert response.status_code == 404

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{squad}/xp", json={"amount": 0}
        )
        assert response.status_code == 422

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{squad}/honours",
            json={"category": "crusade_relic"},
        )
        assert response.status_code == 422

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{squad}/honours",
            json={"category": "crusade_relic", "name": "Blade of Valor"},
        )
        assert response.status_code == 409
        assert "CHARACTER" in response.json()["detail"]

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{squad}/legendary-veterans"
        )
        assert response.status_code == 409

        response = await client.post(
            f"/campaigns/{campaign_id}/units/{squad}/out-of-action",
            json={"consequence": "battle_scar"},
        )
        assert response.status_code == 409

        response = await client.post(
            f"/campaigns/{campaign_id}/battles",
            json={"participants": [{"player_id": "ghost", "units_deployed": [squad]}]},
        )
        assert response.status_code == 422

        for roll in (0, 7):
            response = await client.post(
                f"/campaigns/{campaign_id}/battles",
                json={
                    "participants": [{"player_id": alice, "units_deployed": [squad]}],
                    "destroyed_units": {alice: [squad]},
                    "fixed_rolls": {squad: roll},
                },
            )
            assert response.status_code == 422

        response = await client.get(f"/campaigns/{campaign_id}/statistics", params={"limit": 0})
        assert response.status_code == 422
        response = await client.get("/campaigns/99/statistics")
        assert response.status_code == 404

        response = await client.post(
            f"/campaigns/{campaign_id}/requisitions",
            json={"player_id": alice, "requisition": "fresh_recruits"},
        )
        assert response.status_code == 409

    repo = JsonCampaignRepository(tmp_path)
    stored = repo.load(dm.CampaignID(campaign_id))
    assert stored.battles == []
    assert stored.players[dm.PlayerID(alice)].requisition_points == 5


@pytest.mark.asyncio
async def test_corrupt_snapshot_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        campaign_id = await _create_campaign(client)
        (tmp_path / f"campaign_{campaign_id}.json").write_text('{"players": "not a mapping"}')

        response = await client.get(f"/campaigns/{campaign_id}")
        assert response.status_code == 422
        assert response.json()["detail"] == "stored campaign snapshot is invalid"
