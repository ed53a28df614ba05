from pydantic import AfterValidator, BaseModel, EmailStr, Field
from typing import Annotated, List, Optional
from datetime import datetime

from models import EventCategory, UserRole, as_utc

# SQLite returns naive values; responses always carry an explicit UTC offset
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

# User schemas
class UserBase(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    role: str

class UserSignup(UserBase):
    password: str = Field(min_length=6)

class User(UserBase):
    id: str
    is_active: bool = True
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    class Config:
        from_attributes = True

class UserUpdates(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

class AdminUserPatch(BaseModel):
    """Body shared by ``PATCH /admin/users`` and ``POST /admin/update-user``."""
    user_id: Optional[str] = Field(default=None, alias="userId")
    updates: Optional[UserUpdates] = None

    class Config:
        populate_by_name = True

class UserResponse(BaseModel):
    user: User

class UserList(BaseModel):
    users: List[User]

class UserUpdateResponse(BaseModel):
    success: bool = True
    user: User

class SignupResponse(BaseModel):
    message: str
    user: User

# Event schemas
class OrganizerSummary(BaseModel):
    name: str
    email: str

    class Config:
        from_attributes = True

class AnalyticsCounters(BaseModel):
    page_views: int = 0
    registration_clicks: int = 0
    last_updated: Optional[UtcDatetime] = None

    class Config:
        from_attributes = True

class EventAnalytics(AnalyticsCounters):
    event_id: str

class EventBase(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: EventCategory = EventCategory.OTHER
    date_time: UtcDatetime
    venue: str = Field(min_length=1)
    eligibility: str = ""
    contact_info: str = ""
    registration_link: str = ""
    prize_details: Optional[str] = None
    poster_url: Optional[str] = None

class EventCreate(EventBase):
    pass

class Event(EventBase):
    id: str
    organizer_id: str
    status: str
    display_status: str
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
    organizer: Optional[OrganizerSummary] = None
    analytics: Optional[AnalyticsCounters] = None

    class Config:
        from_attributes = True

class EventResponse(BaseModel):
    event: Event

class EventList(BaseModel):
    events: List[Event]

class AnalyticsResponse(BaseModel):
    analytics: EventAnalytics

class SuccessResponse(BaseModel):
    success: bool = True

# Admin schemas
class EventStatusUpdate(BaseModel):
    event_id: Optional[str] = Field(default=None, alias="eventId")
    status: Optional[str] = None

    class Config:
        populate_by_name = True

class EventStatusUpdateResponse(BaseModel):
    success: bool = True
    event: Event

class BulkEventAction(BaseModel):
    event_ids: Optional[List[str]] = Field(default=None, alias="eventIds")
    action: Optional[str] = None

    class Config:
        populate_by_name = True

class BulkEventActionResponse(BaseModel):
    message: str
    events: List[Event]

class DashboardStats(BaseModel):
    total_events: int = Field(serialization_alias="totalEvents")
    pending_approvals: int = Field(serialization_alias="pendingApprovals")
    live_events: int = Field(serialization_alias="liveEvents")
    total_organizers: int = Field(serialization_alias="totalOrganizers")

# Authentication schemas
class Token(BaseModel):
    access_token: str
    token_type: str
    user: User

class TokenData(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str
