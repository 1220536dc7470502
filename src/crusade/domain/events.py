"""Campaign event emission.

Rule functions accept an optional ``events`` list (normally
``campaign.events``).  Every emitted event is appended there and mirrored to
the standard logger so headless runs still leave a trail.
"""

from __future__ import annotations

import logging

from .enums import EventType
from .models import Event, PlayerID, Unit

logger = logging.getLogger(__name__)

_WARNING_EVENTS = frozenset(
    {
        EventType.XP_CAPPED,
        EventType.XP_CAP_REACHED,
        EventType.OUT_OF_ACTION_FAIL,
        EventType.DEVASTATING_BLOW,
        EventType.UNIT_PERMANENTLY_DESTROYED,
        EventType.SCAR_GAINED,
        EventType.MARKED_FOR_GREATNESS_DECLINED,
    }
)


def emit(
    events: list[Event] | None,
    event_type: EventType,
    summary: str,
    *,
    unit: Unit | None = None,
    player_id: PlayerID | None = None,
    **details: object,
) -> Event:
    """Create an event, append it to ``events`` if given, and log it."""

    event = Event(
        event_type=event_type,
        summary=summary,
        unit_id=unit.id if unit is not None else None,
        player_id=player_id if player_id is not None else (unit.owner_id if unit else None),
        details=dict(details),
    )
    if events is not None:
        events.append(event)
    level = logging.WARNING if event_type in _WARNING_EVENTS else logging.INFO
    logger.log(level, "[%s] %s", event_type, summary)
    return event
