"""Campaign snapshots stored as JSON files."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import TypeAdapter

from crusade.domain import models as dm

logger = logging.getLogger(__name__)

_SNAPSHOT_NAME = re.compile(r"campaign_(\d+)\.json")


class JsonCampaignRepository:
    """One ``campaign_<id>.json`` file per campaign under ``base_path``.

    Snapshots are written to a scratch file first and moved into place, so a
    crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._adapter: TypeAdapter[dm.Campaign] = TypeAdapter(dm.Campaign)

    def path_for(self, campaign_id: dm.CampaignID) -> Path:
        return self.base_path / f"campaign_{int(campaign_id)}.json"

    def exists(self, campaign_id: dm.CampaignID) -> bool:
        return self.path_for(campaign_id).is_file()

    def save(self, campaign: dm.Campaign) -> Path:
        """Write ``campaign`` and return the snapshot path."""

        path = self.path_for(campaign.id)
        scratch = path.with_name(path.name + ".tmp")
        scratch.write_bytes(self._adapter.dump_json(campaign, indent=2))
        scratch.replace(path)
        logger.debug(
            "saved campaign %s (%d units, %d battles)",
            int(campaign.id),
            len(campaign.units),
            len(campaign.battles),
        )
        return path

    def load(self, campaign_id: dm.CampaignID) -> dm.Campaign:
        """Read a snapshot back into a :class:`~crusade.domain.models.Campaign`.

        Raises ``FileNotFoundError`` for unknown ids and pydantic's
        ``ValidationError`` for corrupt snapshots.
        """

        return self._adapter.validate_json(self.path_for(campaign_id).read_bytes())

    def load_or_create(
        self, campaign_id: dm.CampaignID, name: str = "New Crusade"
    ) -> dm.Campaign:
        try:
            return self.load(campaign_id)
        except FileNotFoundError:
            logger.info("no snapshot for campaign %s; starting a new one", int(campaign_id))
            return dm.Campaign(id=campaign_id, name=name)

    def list_campaigns(self) -> list[dm.CampaignID]:
        """Identifiers of every stored snapshot, ascending."""

        ids = []
        for path in self.base_path.iterdir():
            match = _SNAPSHOT_NAME.fullmatch(path.name)
            if match is not None:
                ids.append(dm.CampaignID(int(match.group(1))))
        return sorted(ids)

    def delete(self, campaign_id: dm.CampaignID) -> bool:
        """Remove a snapshot; returns whether one existed."""

        path = self.path_for(campaign_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("deleted campaign %s", int(campaign_id))
        return True
