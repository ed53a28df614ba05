import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from database import get_db
from models import User, UserRole, utcnow
from schemas import (
    AdminUserPatch,
    BulkEventAction,
    BulkEventActionResponse,
    DashboardStats,
    EventList,
    EventStatusUpdate,
    EventStatusUpdateResponse,
    UserList,
    UserResponse,
    UserUpdateResponse,
)
from dependencies import get_current_admin_user, is_admin
from services import lifecycle

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/update-event", response_model=EventStatusUpdateResponse)
async def update_event_status(
    body: EventStatusUpdate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    """Set one event's status (admin only)"""
    if not body.event_id or not body.status:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event ID and status are required"
        )

    try:
        new_status = lifecycle.parse_status(body.status)
        event = lifecycle.set_event_status(db, body.event_id, new_status)
    except lifecycle.InvalidStatus as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except lifecycle.EventNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    return {"success": True, "event": event}

@router.post("/events/approve", response_model=BulkEventActionResponse)
async def bulk_event_action(
    body: BulkEventAction,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    """Approve or reject a batch of events in one transaction (admin only)"""
    if not body.event_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event IDs are required"
        )

    action = (body.action or "").strip().lower()
    try:
        events = lifecycle.apply_disposition(db, body.event_ids, action)
    except lifecycle.InvalidStatus as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "message": f"Successfully {lifecycle.ACTION_PAST_TENSE[action]} {len(body.event_ids)} event(s)",
        "events": events,
    }

@router.get("/events/pending", response_model=EventList)
async def get_pending_events(
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    """Approval queue, oldest submission first (admin only)"""
    return {"events": lifecycle.list_pending(db)}

@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    return lifecycle.dashboard_stats(db)

@router.get("/users", response_model=UserList)
async def get_users(
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    """All users, newest first (admin only)"""
    users = db.query(User).order_by(User.created_at.desc()).all()
    return {"users": users}

def _patch_user(db: Session, body: AdminUserPatch, current_user: User) -> User:
    if not body.user_id or body.updates is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID and updates are required"
        )

    updates = body.updates.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No updatable fields supplied"
        )

    user = db.query(User).filter(User.id == body.user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admins cannot modify their own account here"
        )

    if is_admin(user):
        demoting = "role" in updates and updates["role"] != UserRole.ADMIN
        suspending = updates.get("is_active") is False
        if demoting or suspending:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin accounts cannot be suspended or demoted"
            )

    if "role" in updates:
        updates["role"] = updates["role"].value

    for field, value in updates.items():
        setattr(user, field, value)
    user.updated_at = utcnow()

    db.commit()
    db.refresh(user)

    logger.info(f"Admin {current_user.email} updated user {user.id}: {sorted(updates)}")
    return user

@router.patch("/users", response_model=UserResponse)
async def patch_user(
    body: AdminUserPatch,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    return {"user": _patch_user(db, body, current_user)}

@router.post("/update-user", response_model=UserUpdateResponse)
async def update_user(
    body: AdminUserPatch,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_admin_user)
):
    return {"success": True, "user": _patch_user(db, body, current_user)}
