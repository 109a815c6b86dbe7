"""Activity feed API routes."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from parish.auth import Actor
from parish.config import settings
from parish.database import get_db
from parish.dependencies import get_actor
from parish.models.activity import Audience
from parish.schemas.activity import ActivityOut, MarkedRead, UnreadActivities
from parish.services import activity_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[ActivityOut])
def list_activities(
    audience: Audience = Query(Audience.self_),
    limit: int = Query(settings.ACTIVITY_FEED_LIMIT, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """The caller's own feed, or the admin feed for administrators."""
    return activity_service.list_activities(db, actor, audience=audience, limit=limit)


@router.get("/all", response_model=list[ActivityOut])
def list_all_activities(
    limit: int = Query(settings.ACTIVITY_FEED_LIMIT, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Both audiences at once; superadmins only."""
    return activity_service.list_all_activities(db, actor, limit=limit)


@router.get("/unread", response_model=UnreadActivities)
def unread_activities(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Badge data: latest unread lines and the unread total."""
    activities, count = activity_service.unread(db, actor, limit=settings.ACTIVITY_FEED_LIMIT)
    return UnreadActivities(activities=activities, count=count)


@router.post("/read-all", response_model=MarkedRead)
def mark_all_read(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return MarkedRead(count=activity_service.mark_all_read(db, actor))


@router.post("/{activity_id}/read", response_model=ActivityOut)
def mark_read(activity_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return activity_service.mark_read(db, activity_id, actor)
