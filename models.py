import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """SQLite hands timezone-aware columns back naive; treat those as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    ORGANIZER = "organizer"
    STUDENT = "student"


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ARCHIVED = "archived"


class EventCategory(str, enum.Enum):
    TECHNICAL = "Technical"
    CULTURAL = "Cultural"
    SPORTS = "Sports"
    ACADEMIC = "Academic"
    COMPETITIONS = "Competitions"
    OTHER = "Other"


def derive_display_status(status: str, date_time: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Presentation status of an event.

    "live" and "upcoming" are never stored; they come from an approved
    event's start time compared against ``now``.
    """
    if status != EventStatus.APPROVED.value:
        return status
    if date_time is None:
        return "upcoming"
    now = as_utc(now or utcnow())
    return "live" if as_utc(date_time) <= now else "upcoming"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.STUDENT.value)  # admin, organizer or student
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    events = relationship("Event", back_populates="organizer")


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, default=EventCategory.OTHER.value)
    date_time = Column(DateTime(timezone=True), nullable=False, index=True)
    venue = Column(String, nullable=False)
    eligibility = Column(String, nullable=False, default="")
    contact_info = Column(String, nullable=False, default="")
    registration_link = Column(String, nullable=False, default="")
    prize_details = Column(Text, nullable=True)
    poster_url = Column(String, nullable=True)
    organizer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=EventStatus.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    organizer = relationship("User", back_populates="events")
    analytics = relationship(
        "EventAnalytics",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def display_status(self) -> str:
        return derive_display_status(self.status, self.date_time)


class EventAnalytics(Base):
    __tablename__ = "event_analytics"
    __table_args__ = (
        CheckConstraint("page_views >= 0", name="ck_event_analytics_page_views"),
        CheckConstraint("registration_clicks >= 0", name="ck_event_analytics_registration_clicks"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), unique=True, nullable=False)
    page_views = Column(Integer, nullable=False, default=0)
    registration_clicks = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), default=utcnow)

    event = relationship("Event", back_populates="analytics")
