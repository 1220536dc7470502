"""HTTP routes for the Crusade API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from crusade.api.runtime import ApiState, CampaignService, UnitDraft
from crusade.domain import models as dm
from crusade.domain.catalogs import RelicSelection, TraitSelection, WeaponModSelection
from crusade.domain.enums import (
    ConsequenceType,
    HonourCategory,
    PlayerMetric,
    RequisitionType,
    UnitMetric,
)
from crusade.domain.out_of_action import ConsequenceParams
from crusade.domain.requisitions import RequisitionParams

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


def _campaign_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="campaign not found")


def _ensure_accepted(outcome: dm.Outcome) -> None:
    if not outcome.success:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=outcome.message)


class CampaignSummary(BaseModel):
    id: int
    name: str
    rules_edition: str
    player_count: int
    unit_count: int
    battle_count: int


class CampaignDetail(CampaignSummary):
    players: dict[str, dict[str, object]]
    territories: dict[str, dict[str, object]]
    recent_events: list[dict[str, str]]


class CreateCampaignRequest(BaseModel):
    name: str = Field(min_length=1)


class CreatePlayerRequest(BaseModel):
    name: str = Field(min_length=1)
    faction: str = ""


class CreateTerritoryRequest(BaseModel):
    name: str = Field(min_length=1)


class CreateUnitRequest(BaseModel):
    owner_id: str
    name: str = Field(min_length=1)
    unit_type: str = ""
    points_cost: int = Field(default=0, ge=0)
    is_character: bool = False
    is_titanic: bool = False
    is_epic_hero: bool = False
    equipment: list[str] = Field(default_factory=list)


class XPRequest(BaseModel):
    amount: int = Field(ge=1)
    reason: str = "Manual award"


class XPResponse(BaseModel):
    accepted: bool
    amount: int
    message: str
    ranked_up: bool
    unit: dict[str, object]


class HonourRequest(BaseModel):
    category: HonourCategory
    name: str | None = None
    weapon_name: str | None = None
    mod_ids: tuple[int, int] | None = None
    model_index: int = Field(default=1, ge=1)
    seed: str | None = None


class OutcomeResponse(BaseModel):
    message: str
    unit: dict[str, object] | None = None


class ParticipantRequest(BaseModel):
    player_id: str
    units_deployed: list[str] = Field(default_factory=list)


DieRoll = Annotated[int, Field(ge=1, le=6)]


class AgendaRequest(BaseModel):
    unit_id: str
    name: str = Field(min_length=1)
    description: str = ""
    completed: bool = False
    notes: str = ""


class BattleRequest(BaseModel):
    participants: list[ParticipantRequest] = Field(min_length=1)
    destroyed_units: dict[str, list[str]] = Field(default_factory=dict)
    kills: dict[str, int] = Field(default_factory=dict)
    marked_for_greatness: dict[str, str] = Field(default_factory=dict)
    victory_points: dict[str, Annotated[int, Field(ge=0)]] = Field(default_factory=dict)
    agendas: dict[str, list[AgendaRequest]] = Field(default_factory=dict)
    winner: str | None = None
    is_draw: bool = False
    hex_id: str | None = None
    battle_size: str = ""
    mission: str = ""
    notes: str = ""
    seed: str | None = None
    fixed_rolls: dict[str, DieRoll] = Field(default_factory=dict)


class BattleResponse(BaseModel):
    battle_id: str
    xp_gained: dict[str, int]
    out_of_action: dict[str, dict[str, object]]
    pending_choices: list[str]
    rp_awarded: dict[str, int]
    territory_captured: bool


class OutOfActionRequest(BaseModel):
    consequence: ConsequenceType
    honour_index: int | None = None
    scar_name: str | None = None
    seed: str | None = None


class RequisitionRequest(BaseModel):
    player_id: str
    requisition: RequisitionType
    unit_id: str | None = None
    old_weapon: str | None = None
    new_weapon: str | None = None
    scar_index: int | None = None
    enhancement_name: str | None = None
    enhancement_points: int = Field(default=0, ge=0)


def _selection_for(request: HonourRequest) -> object:
    if request.category == HonourCategory.WEAPON_MODIFICATION:
        if not request.weapon_name:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="weapon_name is required for weapon modifications",
            )
        return WeaponModSelection(
            weapon_name=request.weapon_name,
            mod_ids=request.mod_ids,
            model_index=request.model_index,
            seed=request.seed,
        )
    if not request.name:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"name is required for {request.category}",
        )
    if request.category == HonourCategory.BATTLE_TRAIT:
        return TraitSelection(name=request.name)
    return RelicSelection(name=request.name)


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {"status": "ok", "rules_edition": state.rules.edition}


@router.get("/campaigns", response_model=list[CampaignSummary])
async def list_campaigns(state: ApiStateDep) -> list[CampaignSummary]:
    campaigns = state.campaigns.list_campaigns()
    return [CampaignSummary.model_validate(state.campaigns.to_summary_dict(c)) for c in campaigns]


@router.post(
    "/campaigns",
    response_model=CampaignDetail,
    status_code=status.HTTP_201_CREATED,
)
async def create_campaign(request: CreateCampaignRequest, state: ApiStateDep) -> CampaignDetail:
    campaign = state.campaigns.create_campaign(request.name)
    return CampaignDetail.model_validate(state.campaigns.to_detail_dict(campaign))


@router.get("/campaigns/{campaign_id}", response_model=CampaignDetail)
async def get_campaign(campaign_id: int, state: ApiStateDep) -> CampaignDetail:
    try:
        campaign = state.campaigns.get_campaign(dm.CampaignID(campaign_id))
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    return CampaignDetail.model_validate(state.campaigns.to_detail_dict(campaign))


@router.post("/campaigns/{campaign_id}/players", status_code=status.HTTP_201_CREATED)
async def create_player(
    campaign_id: int, request: CreatePlayerRequest, state: ApiStateDep
) -> dict[str, object]:
    try:
        player = state.campaigns.add_player(
            dm.CampaignID(campaign_id), request.name, request.faction
        )
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    return CampaignService.to_player_dict(player)


@router.post("/campaigns/{campaign_id}/territories", status_code=status.HTTP_201_CREATED)
async def create_territory(
    campaign_id: int, request: CreateTerritoryRequest, state: ApiStateDep
) -> dict[str, object]:
    try:
        territory = state.campaigns.add_territory(dm.CampaignID(campaign_id), request.name)
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    return {"id": territory.id, "name": territory.name, "controlled_by": territory.controlled_by}


@router.post("/campaigns/{campaign_id}/units", status_code=status.HTTP_201_CREATED)
async def create_unit(
    campaign_id: int, request: CreateUnitRequest, state: ApiStateDep
) -> dict[str, object]:
    draft = UnitDraft(
        owner_id=dm.PlayerID(request.owner_id),
        name=request.name,
        unit_type=request.unit_type,
        points_cost=request.points_cost,
        is_character=request.is_character,
        is_titanic=request.is_titanic,
        is_epic_hero=request.is_epic_hero,
        equipment=request.equipment,
    )
    try:
        unit = state.campaigns.add_unit(dm.CampaignID(campaign_id), draft)
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    return CampaignService.to_unit_dict(unit)


@router.get("/campaigns/{campaign_id}/units/{unit_id}")
async def get_unit(campaign_id: int, unit_id: str, state: ApiStateDep) -> dict[str, object]:
    try:
        unit = state.campaigns.get_unit(dm.CampaignID(campaign_id), dm.UnitID(unit_id))
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    return CampaignService.to_unit_dict(unit)


@router.post("/campaigns/{campaign_id}/units/{unit_id}/xp", response_model=XPResponse)
async def award_xp(
    campaign_id: int, unit_id: str, request: XPRequest, state: ApiStateDep
) -> XPResponse:
    campaign_key = dm.CampaignID(campaign_id)
    try:
        award = state.campaigns.award_xp(
            campaign_key, dm.UnitID(unit_id), request.amount, request.reason
        )
        unit = state.campaigns.get_unit(campaign_key, dm.UnitID(unit_id))
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    return XPResponse(
        accepted=award.accepted,
        amount=award.amount,
        message=award.message,
        ranked_up=award.ranked_up,
        unit=CampaignService.to_unit_dict(unit),
    )


@router.post("/campaigns/{campaign_id}/units/{unit_id}/honours", response_model=OutcomeResponse)
async def grant_honour(
    campaign_id: int, unit_id: str, request: HonourRequest, state: ApiStateDep
) -> OutcomeResponse:
    campaign_key = dm.CampaignID(campaign_id)
    selection = _selection_for(request)
    try:
        outcome = state.campaigns.grant_honour(
            campaign_key, dm.UnitID(unit_id), request.category, selection
        )
        unit = state.campaigns.get_unit(campaign_key, dm.UnitID(unit_id))
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    _ensure_accepted(outcome)
    return OutcomeResponse(message=outcome.message, unit=CampaignService.to_unit_dict(unit))


@router.post(
    "/campaigns/{campaign_id}/units/{unit_id}/legendary-veterans",
    response_model=OutcomeResponse,
)
async def legendary_veterans(
    campaign_id: int, unit_id: str, state: ApiStateDep
) -> OutcomeResponse:
    campaign_key = dm.CampaignID(campaign_id)
    try:
        outcome = state.campaigns.apply_legendary_veterans(campaign_key, dm.UnitID(unit_id))
        unit = state.campaigns.get_unit(campaign_key, dm.UnitID(unit_id))
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    _ensure_accepted(outcome)
    return OutcomeResponse(message=outcome.message, unit=CampaignService.to_unit_dict(unit))


@router.post(
    "/campaigns/{campaign_id}/battles",
    response_model=BattleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_battle(
    campaign_id: int, request: BattleRequest, state: ApiStateDep
) -> BattleResponse:
    record = dm.BattleRecord(
        participants=[
            dm.BattleParticipant(
                player_id=dm.PlayerID(participant.player_id),
                units_deployed=[dm.UnitID(unit_id) for unit_id in participant.units_deployed],
            )
            for participant in request.participants
        ],
        destroyed_units={
            dm.PlayerID(player_id): [dm.UnitID(unit_id) for unit_id in unit_ids]
            for player_id, unit_ids in request.destroyed_units.items()
        },
        kills={dm.UnitID(unit_id): kills for unit_id, kills in request.kills.items()},
        marked_for_greatness={
            dm.PlayerID(player_id): dm.UnitID(unit_id)
            for player_id, unit_id in request.marked_for_greatness.items()
        },
        victory_points={
            dm.PlayerID(player_id): points for player_id, points in request.victory_points.items()
        },
        agendas={
            dm.PlayerID(player_id): [
                dm.Agenda(
                    unit_id=dm.UnitID(agenda.unit_id),
                    name=agenda.name,
                    description=agenda.description,
                    completed=agenda.completed,
                    notes=agenda.notes,
                )
                for agenda in agendas
            ]
            for player_id, agendas in request.agendas.items()
        },
        winner=dm.PlayerID(request.winner) if request.winner else None,
        is_draw=request.is_draw,
        hex_id=dm.HexID(request.hex_id) if request.hex_id else None,
        battle_size=request.battle_size,
        mission=request.mission,
        notes=request.notes,
    )
    fixed_rolls = {dm.UnitID(unit_id): roll for unit_id, roll in request.fixed_rolls.items()}
    try:
        summary = state.campaigns.record_battle(
            dm.CampaignID(campaign_id), record, seed=request.seed, fixed_rolls=fixed_rolls
        )
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return BattleResponse.model_validate(CampaignService.to_battle_dict(summary))


@router.post(
    "/campaigns/{campaign_id}/units/{unit_id}/out-of-action",
    response_model=OutcomeResponse,
)
async def resolve_out_of_action(
    campaign_id: int, unit_id: str, request: OutOfActionRequest, state: ApiStateDep
) -> OutcomeResponse:
    campaign_key = dm.CampaignID(campaign_id)
    params = ConsequenceParams(
        honour_index=request.honour_index, scar_name=request.scar_name, seed=request.seed
    )
    try:
        outcome = state.campaigns.resolve_out_of_action(
            campaign_key, dm.UnitID(unit_id), request.consequence, params
        )
        campaign = state.campaigns.get_campaign(campaign_key)
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    _ensure_accepted(outcome)
    unit = campaign.units.get(dm.UnitID(unit_id))
    return OutcomeResponse(
        message=outcome.message,
        unit=CampaignService.to_unit_dict(unit) if unit is not None else None,
    )


@router.post("/campaigns/{campaign_id}/requisitions", response_model=OutcomeResponse)
async def purchase_requisition(
    campaign_id: int, request: RequisitionRequest, state: ApiStateDep
) -> OutcomeResponse:
    enhancement = None
    if request.enhancement_name:
        enhancement = dm.Enhancement(
            name=request.enhancement_name, points_cost=request.enhancement_points
        )
    params = RequisitionParams(
        unit_id=dm.UnitID(request.unit_id) if request.unit_id else None,
        enhancement=enhancement,
        old_weapon=request.old_weapon,
        new_weapon=request.new_weapon,
        scar_index=request.scar_index,
    )
    try:
        outcome = state.campaigns.purchase_requisition(
            dm.CampaignID(campaign_id), dm.PlayerID(request.player_id), request.requisition, params
        )
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
    _ensure_accepted(outcome)
    return OutcomeResponse(message=outcome.message)


@router.get("/campaigns/{campaign_id}/statistics")
async def campaign_statistics(
    campaign_id: int,
    state: ApiStateDep,
    player_metric: PlayerMetric = PlayerMetric.VICTORIES,
    unit_metric: UnitMetric = UnitMetric.XP,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, object]:
    try:
        return state.campaigns.campaign_statistics(
            dm.CampaignID(campaign_id),
            player_metric=player_metric,
            unit_metric=unit_metric,
            limit=limit,
        )
    except FileNotFoundError as exc:
        raise _campaign_not_found() from exc
