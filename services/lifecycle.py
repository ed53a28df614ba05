"""Event approval lifecycle: pending -> approved | archived."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from models import Event, EventStatus, User, UserRole, as_utc, utcnow

logger = logging.getLogger(__name__)

# "rejected" was never a stored value; rejection lands in archived.
STATUS_ALIASES: Dict[str, EventStatus] = {
    "rejected": EventStatus.ARCHIVED,
}

ACTIONS: Dict[str, EventStatus] = {
    "approve": EventStatus.APPROVED,
    "reject": EventStatus.ARCHIVED,
}

ACTION_PAST_TENSE = {
    "approve": "approved",
    "reject": "rejected",
}


class LifecycleError(Exception):
    """Base error for event status changes."""


class EventNotFound(LifecycleError):
    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class InvalidStatus(LifecycleError, ValueError):
    pass


def parse_status(value: Optional[str]) -> EventStatus:
    """Map a requested status onto a persisted one."""
    s = (value or "").strip().lower()
    if s in STATUS_ALIASES:
        return STATUS_ALIASES[s]
    try:
        return EventStatus(s)
    except ValueError:
        allowed = ", ".join(e.value for e in EventStatus)
        raise InvalidStatus(f"Invalid status {value!r}. Must be one of: {allowed}")


def parse_action(value: Optional[str]) -> EventStatus:
    s = (value or "").strip().lower()
    if s not in ACTIONS:
        raise InvalidStatus("Invalid action")
    return ACTIONS[s]


def set_event_status(db: Session, event_id: str, status: EventStatus, *, now: Optional[datetime] = None) -> Event:
    """Overwrite one event's status. Setting the current status again is allowed."""
    event = db.query(Event).filter(Event.id == event_id).first()
    if event is None:
        raise EventNotFound(event_id)

    previous = event.status
    event.status = status.value
    event.updated_at = now or utcnow()
    db.commit()
    db.refresh(event)

    logger.info(f"Event {event_id} status {previous} -> {event.status}")
    return event


def apply_disposition(
    db: Session, event_ids: Sequence[str], action: str, *, now: Optional[datetime] = None
) -> List[Event]:
    """
    Apply one approve/reject action to every event in ``event_ids``.

    All rows are changed by a single UPDATE inside one transaction, so the
    batch either lands as a whole or not at all. Ids that match no event
    are ignored.
    """
    target = parse_action(action)
    ids = list(dict.fromkeys(event_ids))
    stamp = now or utcnow()

    try:
        db.execute(
            update(Event)
            .where(Event.id.in_(ids))
            .values(status=target.value, updated_at=stamp)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    # commit() expired the identity map, so this reads the new statuses
    events = db.query(Event).filter(Event.id.in_(ids)).order_by(Event.created_at).all()

    logger.info(f"Bulk {action}: {len(events)} of {len(ids)} requested event(s) set to {target.value}")
    return events


def list_pending(db: Session) -> List[Event]:
    return (
        db.query(Event)
        .filter(Event.status == EventStatus.PENDING.value)
        .order_by(Event.created_at.asc())
        .all()
    )


def dashboard_stats(db: Session, *, now: Optional[datetime] = None) -> Dict[str, int]:
    now = as_utc(now or utcnow())

    total_events = db.query(func.count(Event.id)).scalar() or 0
    pending = (
        db.query(func.count(Event.id))
        .filter(Event.status == EventStatus.PENDING.value)
        .scalar()
        or 0
    )
    approved_starts = (
        db.query(Event.date_time)
        .filter(Event.status == EventStatus.APPROVED.value)
        .all()
    )
    # Compared in Python because SQLite returns naive datetimes
    live = sum(1 for (dt,) in approved_starts if dt is not None and as_utc(dt) <= now)
    organizers = (
        db.query(func.count(User.id))
        .filter(User.role == UserRole.ORGANIZER.value)
        .scalar()
        or 0
    )

    return {
        "total_events": int(total_events),
        "pending_approvals": int(pending),
        "live_events": int(live),
        "total_organizers": int(organizers),
    }
