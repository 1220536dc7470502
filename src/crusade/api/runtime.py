"""Runtime primitives backing the Crusade HTTP API."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field

from pydantic import TypeAdapter

from crusade.config import Settings, get_settings
from crusade.domain import battle, experience, out_of_action, requisitions, roster, statistics
from crusade.domain import models as dm
from crusade.domain.catalogs import catalog_for
from crusade.domain.enums import (
    ConsequenceType,
    HonourCategory,
    PlayerMetric,
    RequisitionType,
    UnitMetric,
)
from crusade.domain.rules_config import RulesConfig, rules_for_edition
from crusade.repository import JsonCampaignRepository

logger = logging.getLogger(__name__)

_UNIT_ADAPTER: TypeAdapter[dm.Unit] = TypeAdapter(dm.Unit)
_OVERVIEW_ADAPTER = TypeAdapter(statistics.CampaignOverview)
_PLAYERS_ADAPTER = TypeAdapter(list[statistics.PlayerStatistics])
_UNITS_ADAPTER = TypeAdapter(list[statistics.UnitStatistics])
_BATTLES_ADAPTER = TypeAdapter(statistics.BattleStatistics)


@dataclass(slots=True)
class UnitDraft:
    """API-facing initializer for new units."""

    owner_id: dm.PlayerID
    name: str
    unit_type: str = ""
    points_cost: int = 0
    is_character: bool = False
    is_titanic: bool = False
    is_epic_hero: bool = False
    equipment: list[str] = field(default_factory=list)


class CampaignService:
    """Utilities for loading and mutating campaign aggregates.

    Every mutation loads the snapshot, applies one engine operation and
    writes the snapshot back before returning.
    """

    def __init__(self, repository: JsonCampaignRepository, *, rules: RulesConfig) -> None:
        self._repository = repository
        self._rules = rules

    def list_campaigns(self) -> list[dm.Campaign]:
        """Return every persisted campaign ordered by identifier."""

        campaigns: list[dm.Campaign] = []
        for campaign_id in self._repository.list_campaigns():
            with suppress(FileNotFoundError):
                campaigns.append(self._repository.load(campaign_id))
        return campaigns

    def get_campaign(self, campaign_id: dm.CampaignID) -> dm.Campaign:
        """Load a single campaign or raise ``FileNotFoundError``."""

        return self._repository.load(campaign_id)

    def create_campaign(self, name: str) -> dm.Campaign:
        """Create and persist an empty campaign."""

        campaign = dm.Campaign(
            id=self._next_identifier(), name=name, rules_edition=self._rules.edition
        )
        self._repository.save(campaign)
        logger.info("created campaign %s (%s)", int(campaign.id), name)
        return campaign

    def _next_identifier(self) -> dm.CampaignID:
        existing = self._repository.list_campaigns()
        if not existing:
            return dm.CampaignID(1)
        last = max(existing, key=int)
        return dm.CampaignID(int(last) + 1)

    @contextmanager
    def editing(self, campaign_id: dm.CampaignID) -> Iterator[dm.Campaign]:
        """Load a campaign for mutation and save it if the block completes."""

        campaign = self._repository.load(campaign_id)
        yield campaign
        self._repository.save(campaign)

    @staticmethod
    def _unit(campaign: dm.Campaign, unit_id: dm.UnitID) -> dm.Unit:
        unit = roster.get_unit(campaign, unit_id)
        if unit is None:
            raise KeyError(f"Unit {unit_id} not found")
        return unit

    def get_unit(self, campaign_id: dm.CampaignID, unit_id: dm.UnitID) -> dm.Unit:
        return self._unit(self.get_campaign(campaign_id), unit_id)

    def add_player(self, campaign_id: dm.CampaignID, name: str, faction: str = "") -> dm.Player:
        with self.editing(campaign_id) as campaign:
            return roster.create_player(campaign, name, faction, rules=self._rules)

    def add_territory(self, campaign_id: dm.CampaignID, name: str) -> dm.TerritoryHex:
        with self.editing(campaign_id) as campaign:
            return roster.add_territory(campaign, name)

    def add_unit(self, campaign_id: dm.CampaignID, draft: UnitDraft) -> dm.Unit:
        with self.editing(campaign_id) as campaign:
            if draft.owner_id not in campaign.players:
                raise KeyError(f"Player {draft.owner_id} not found")
            return roster.create_unit(
                campaign,
                draft.owner_id,
                draft.name,
                unit_type=draft.unit_type,
                points_cost=draft.points_cost,
                is_character=draft.is_character,
                is_titanic=draft.is_titanic,
                is_epic_hero=draft.is_epic_hero,
                equipment=draft.equipment,
                rules=self._rules,
            )

    def award_xp(
        self, campaign_id: dm.CampaignID, unit_id: dm.UnitID, amount: int, reason: str
    ) -> experience.XPAward:
        with self.editing(campaign_id) as campaign:
            unit = self._unit(campaign, unit_id)
            return experience.add_xp(
                unit, amount, reason, events=campaign.events, rules=self._rules
            )

    def grant_honour(
        self,
        campaign_id: dm.CampaignID,
        unit_id: dm.UnitID,
        category: HonourCategory,
        selection: object,
    ) -> dm.Outcome:
        with self.editing(campaign_id) as campaign:
            unit = self._unit(campaign, unit_id)
            owner = campaign.players.get(unit.owner_id)
            catalog = catalog_for(category, faction=owner.faction if owner else "")
            return catalog.apply(unit, selection, events=campaign.events, rules=self._rules)

    def apply_legendary_veterans(
        self, campaign_id: dm.CampaignID, unit_id: dm.UnitID
    ) -> dm.Outcome:
        with self.editing(campaign_id) as campaign:
            unit = self._unit(campaign, unit_id)
            return experience.apply_legendary_veterans(
                unit, events=campaign.events, rules=self._rules
            )

    def record_battle(
        self,
        campaign_id: dm.CampaignID,
        record: dm.BattleRecord,
        *,
        seed: str | None = None,
        fixed_rolls: Mapping[dm.UnitID, int] | None = None,
    ) -> battle.PostBattleSummary:
        """Run the post-battle sequence; raises ``ValueError`` for inconsistent records."""

        with self.editing(campaign_id) as campaign:
            problems = battle.validate_battle_record(record, campaign)
            problems += [
                f"roll override for unit {unit_id} is outside the die's range: {roll}"
                for unit_id, roll in (fixed_rolls or {}).items()
                if not out_of_action.is_valid_roll(roll, rules=self._rules)
            ]
            if problems:
                raise ValueError("; ".join(problems))
            return battle.process_post_battle(
                record, campaign, rules=self._rules, seed=seed, fixed_rolls=fixed_rolls
            )

    def resolve_out_of_action(
        self,
        campaign_id: dm.CampaignID,
        unit_id: dm.UnitID,
        consequence: ConsequenceType,
        params: out_of_action.ConsequenceParams,
    ) -> dm.Outcome:
        with self.editing(campaign_id) as campaign:
            unit = self._unit(campaign, unit_id)
            if not unit.pending_out_of_action_choice:
                return dm.declined(f"{unit.name} has no pending Out of Action choice")
            outcome = out_of_action.apply_consequence(
                unit, consequence, params, events=campaign.events, rules=self._rules
            )
            battle.purge_destroyed_units(campaign)
            return outcome

    def purchase_requisition(
        self,
        campaign_id: dm.CampaignID,
        player_id: dm.PlayerID,
        kind: RequisitionType,
        params: requisitions.RequisitionParams,
    ) -> dm.Outcome:
        with self.editing(campaign_id) as campaign:
            return requisitions.purchase(campaign, player_id, kind, params, rules=self._rules)

    def campaign_statistics(
        self,
        campaign_id: dm.CampaignID,
        *,
        player_metric: PlayerMetric = PlayerMetric.VICTORIES,
        unit_metric: UnitMetric = UnitMetric.XP,
        limit: int = 10,
    ) -> dict[str, object]:
        """Overview, leaderboard, top units and battle aggregates for a campaign."""

        campaign = self.get_campaign(campaign_id)
        return {
            "overview": _OVERVIEW_ADAPTER.dump_python(
                statistics.overview(campaign), mode="json"
            ),
            "leaderboard": _PLAYERS_ADAPTER.dump_python(
                statistics.leaderboard(campaign, player_metric), mode="json"
            ),
            "top_units": _UNITS_ADAPTER.dump_python(
                statistics.top_units(campaign, unit_metric, limit), mode="json"
            ),
            "battles": _BATTLES_ADAPTER.dump_python(
                statistics.battle_statistics(campaign), mode="json"
            ),
        }

    @staticmethod
    def to_summary_dict(campaign: dm.Campaign) -> dict[str, object]:
        """Return a JSON-friendly overview of a campaign."""

        return {
            "id": int(campaign.id),
            "name": campaign.name,
            "rules_edition": campaign.rules_edition,
            "player_count": len(campaign.players),
            "unit_count": len(campaign.units),
            "battle_count": len(campaign.battles),
        }

    @staticmethod
    def to_detail_dict(campaign: dm.Campaign) -> dict[str, object]:
        summary = CampaignService.to_summary_dict(campaign)
        summary.update(
            {
                "players": {
                    player_id: CampaignService.to_player_dict(player)
                    for player_id, player in campaign.players.items()
                },
                "territories": {
                    hex_id: {"name": territory.name, "controlled_by": territory.controlled_by}
                    for hex_id, territory in campaign.territories.items()
                },
                "recent_events": [
                    {"event_type": str(event.event_type), "summary": event.summary}
                    for event in campaign.events[-20:]
                ],
            }
        )
        return summary

    @staticmethod
    def to_player_dict(player: dm.Player) -> dict[str, object]:
        return {
            "id": player.id,
            "name": player.name,
            "faction": player.faction,
            "requisition_points": player.requisition_points,
            "supply_limit": player.supply_limit,
            "battle_tally": player.battle_tally,
            "victories": player.victories,
            "order_of_battle": list(player.order_of_battle),
        }

    @staticmethod
    def to_unit_dict(unit: dm.Unit) -> dict[str, object]:
        return _UNIT_ADAPTER.dump_python(unit, mode="json")

    @staticmethod
    def to_battle_dict(summary: battle.PostBattleSummary) -> dict[str, object]:
        return {
            "battle_id": summary.battle_id,
            "xp_gained": {
                unit_id: summary.xp.total_for(unit_id)
                for unit_id in (
                    summary.xp.battle_experience.keys()
                    | summary.xp.every_third_kill.keys()
                    | summary.xp.marked_for_greatness.keys()
                )
            },
            "out_of_action": {
                unit_id: {"passed": result.passed, "roll": result.roll, "state": str(result.state)}
                for unit_id, result in summary.out_of_action.items()
            },
            "pending_choices": summary.pending_choices,
            "rp_awarded": summary.rp_awarded,
            "territory_captured": summary.territory_captured,
        }


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules or rules_for_edition(self.settings.rules_edition)
        self.repository = JsonCampaignRepository(self.settings.data_dir)
        self.campaigns = CampaignService(self.repository, rules=self.rules)

    async def shutdown(self) -> None:
        logger.info("API state shut down")


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
