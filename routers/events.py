import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from database import get_db
from models import Event, EventStatus, User, as_utc
from schemas import (
    EventCreate,
    EventResponse,
    EventList,
    AnalyticsResponse,
    SuccessResponse,
)
from dependencies import get_current_user, get_current_organizer, is_admin
from services import analytics
from services.lifecycle import EventNotFound

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_PAGE_SIZE = 100


def _get_event_or_404(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return event


@router.get("", response_model=EventList)
async def get_events(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    category: Optional[str] = None,
    organizer_id: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    """
    List events, newest first.

    - status / category: exact match, "all" disables the filter
    - organizer_id: events submitted by one organizer
    - search: case-insensitive match on title, description or venue
    - limit / offset: page window, limit capped at 100
    """
    limit = min(MAX_PAGE_SIZE, max(1, limit))
    offset = max(0, offset)

    query = db.query(Event).options(joinedload(Event.organizer), joinedload(Event.analytics))

    if status_filter and status_filter != "all":
        query = query.filter(Event.status == status_filter)
    if category and category != "all":
        query = query.filter(Event.category == category)
    if organizer_id:
        query = query.filter(Event.organizer_id == organizer_id)
    if search:
        term = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                Event.title.ilike(pattern, escape="\\"),
                Event.description.ilike(pattern, escape="\\"),
                Event.venue.ilike(pattern, escape="\\"),
            )
        )

    events = query.order_by(Event.created_at.desc()).offset(offset).limit(limit).all()
    return {"events": events}


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_organizer)
):
    """Submit a new event for approval (organizers only)"""
    fields = event_data.model_dump()
    fields["category"] = event_data.category.value
    fields["date_time"] = as_utc(event_data.date_time)
    db_event = Event(
        **fields,
        organizer_id=current_user.id,
        status=EventStatus.PENDING.value,
    )
    db.add(db_event)
    db.flush()
    analytics.create_empty(db, db_event.id)
    db.commit()
    db.refresh(db_event)

    logger.info(f"Organizer {current_user.email} submitted event {db_event.id} ({db_event.title!r})")
    return {"event": db_event}


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db: Session = Depends(get_db)):
    return {"event": _get_event_or_404(db, event_id)}


@router.delete("/{event_id}", response_model=SuccessResponse)
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_organizer)
):
    """Delete an event (owning organizer only). Its analytics row goes with it."""
    db_event = _get_event_or_404(db, event_id)
    if db_event.organizer_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the organizer who created this event can delete it"
        )

    db.delete(db_event)
    db.commit()

    logger.info(f"Organizer {current_user.email} deleted event {event_id}")
    return {"success": True}


@router.get("/{event_id}/analytics", response_model=AnalyticsResponse)
async def get_event_analytics(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_event = _get_event_or_404(db, event_id)
    if db_event.organizer_id != current_user.id and not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return {"analytics": analytics.get_analytics(db, event_id)}


def _track(db: Session, event_id: str, kind: analytics.HitKind):
    try:
        analytics.record_hit(db, event_id, kind)
    except EventNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return {"success": True}


@router.post("/{event_id}/track-view", response_model=SuccessResponse)
async def track_view(event_id: str, db: Session = Depends(get_db)):
    return _track(db, event_id, analytics.HitKind.VIEW)


@router.post("/{event_id}/track-click", response_model=SuccessResponse)
async def track_click(event_id: str, db: Session = Depends(get_db)):
    return _track(db, event_id, analytics.HitKind.CLICK)
