"""Persistence adapters for campaign snapshots."""

from crusade.repository.json_store import JsonCampaignRepository

__all__ = ["JsonCampaignRepository"]
