"""
Pure functions over the check event log.

The log is the only source of truth for check-in status: a participant is
checked in when their latest event, ordered by (``at``, ``seq``), is a
check-in.
"""

from typing import Dict, Iterable, List, Optional

from app.api.check_in.schemas import CheckEvent, CheckEventKind


def event_order(event: CheckEvent) -> tuple:
    return event.at, event.seq


def latest_events(events: Iterable[CheckEvent]) -> Dict[str, CheckEvent]:
    """Latest event per participant id."""
    latest: Dict[str, CheckEvent] = {}
    for event in sorted(events, key=event_order):
        latest[event.participant_id] = event
    return latest


def current_status(events: Iterable[CheckEvent]) -> Optional[CheckEventKind]:
    ordered = sorted(events, key=event_order)
    return ordered[-1].kind if ordered else None


def effective_check_ins(events: Iterable[CheckEvent]) -> List[CheckEvent]:
    """
    Check-in events that actually changed a participant's status.

    A check-in that follows another check-in with no check-out in between
    lost a race against it and is left out.
    """
    effective = []
    previous: Dict[str, CheckEventKind] = {}
    for event in sorted(events, key=event_order):
        if (
            event.kind == CheckEventKind.CHECK_IN
            and previous.get(event.participant_id) != CheckEventKind.CHECK_IN
        ):
            effective.append(event)
        previous[event.participant_id] = event.kind
    return effective


def is_effective_check_in(events: Iterable[CheckEvent], event_id: str) -> bool:
    return any(event.id == event_id for event in effective_check_ins(events))
