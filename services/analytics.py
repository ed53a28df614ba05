from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Event, EventAnalytics, utcnow
from services.lifecycle import EventNotFound

logger = logging.getLogger(__name__)


class HitKind(str, enum.Enum):
    VIEW = "view"
    CLICK = "click"


_COUNTERS = {
    HitKind.VIEW: EventAnalytics.page_views,
    HitKind.CLICK: EventAnalytics.registration_clicks,
}


def _increment(db: Session, event_id: str, kind: HitKind, now: datetime) -> int:
    column = _COUNTERS[kind]
    result = db.execute(
        update(EventAnalytics)
        .where(EventAnalytics.event_id == event_id)
        .values({column.key: column + 1, "last_updated": now})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def record_hit(db: Session, event_id: str, kind: HitKind, *, now: Optional[datetime] = None) -> None:
    """
    Bump one counter on the event's analytics row, creating the row if needed.

    The increment is a single ``col = col + 1`` UPDATE, so concurrent hits
    never overwrite each other. When no row exists yet one is inserted with
    the triggered counter at 1; if another request inserted it first the
    unique constraint on ``event_id`` fires and the UPDATE is retried.
    """
    kind = HitKind(kind)
    now = now or utcnow()

    if db.query(Event.id).filter(Event.id == event_id).first() is None:
        raise EventNotFound(event_id)

    if _increment(db, event_id, kind, now):
        db.commit()
        return

    db.add(
        EventAnalytics(
            event_id=event_id,
            page_views=1 if kind is HitKind.VIEW else 0,
            registration_clicks=1 if kind is HitKind.CLICK else 0,
            last_updated=now,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Analytics row for event {event_id} created concurrently; retrying increment")
        if not _increment(db, event_id, kind, now):
            # Not a competing insert: the event itself went away
            db.rollback()
            raise EventNotFound(event_id)
        db.commit()


def create_empty(db: Session, event_id: str) -> EventAnalytics:
    row = EventAnalytics(event_id=event_id, page_views=0, registration_clicks=0)
    db.add(row)
    return row


def get_analytics(db: Session, event_id: str) -> dict:
    row = db.query(EventAnalytics).filter(EventAnalytics.event_id == event_id).first()
    if row is None:
        return {"event_id": event_id, "page_views": 0, "registration_clicks": 0, "last_updated": None}
    return {
        "event_id": row.event_id,
        "page_views": row.page_views,
        "registration_clicks": row.registration_clicks,
        "last_updated": row.last_updated,
    }
