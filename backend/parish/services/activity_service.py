"""Activity recorder and feed reader.

``record`` appends audit lines after the engine has committed. It runs its
own short transaction and never raises: activity logging is observability,
so a failed append is logged and dropped.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parish.auth import Actor, Role
from parish.errors import ForbiddenError, NotFoundError
from parish.models.activity import ActivityRecord, Audience

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityEntry:
    """One line to append, before it becomes an ActivityRecord row."""

    actor_id: str
    description: str
    audience: Audience
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None


def record(db: Session, entries: Iterable[ActivityEntry]) -> int:
    """Append entries in one transaction; returns how many were stored (0 on failure)."""
    entries = list(entries)
    try:
        for entry in entries:
            db.add(ActivityRecord(
                actor_id=entry.actor_id,
                description=entry.description,
                audience=entry.audience,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
            ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record %d activity entries", len(entries))
        return 0
    return len(entries)


def list_activities(
    db: Session,
    actor: Actor,
    audience: Audience = Audience.self_,
    limit: Optional[int] = None,
) -> list[ActivityRecord]:
    """Feed for display, newest first.

    The self feed holds only the actor's own lines; the admin feed holds every
    admin-audience line and is restricted to administrators.
    """
    query = db.query(ActivityRecord).filter(ActivityRecord.audience == audience)
    if audience == Audience.admin:
        if not actor.is_admin:
            raise ForbiddenError(detail="Administrator role required")
    else:
        query = query.filter(ActivityRecord.actor_id == actor.user_id)
    query = query.order_by(ActivityRecord.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def list_all_activities(db: Session, actor: Actor, limit: Optional[int] = None) -> list[ActivityRecord]:
    """Every line from both audiences, newest first. SUPERADMIN only."""
    if actor.role != Role.superadmin:
        raise ForbiddenError(detail="Superadmin role required")
    query = db.query(ActivityRecord).order_by(ActivityRecord.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def _unread_query(db: Session, actor: Actor):
    query = db.query(ActivityRecord).filter(
        ActivityRecord.actor_id == actor.user_id,
        ActivityRecord.read.is_(False),
    )
    if not actor.is_admin:
        query = query.filter(ActivityRecord.audience == Audience.self_)
    return query


def unread(db: Session, actor: Actor, limit: int = 10) -> tuple[list[ActivityRecord], int]:
    """Latest unread lines for the badge, plus the total unread count."""
    query = _unread_query(db, actor)
    latest = query.order_by(ActivityRecord.created_at.desc()).limit(limit).all()
    return latest, query.count()


def mark_read(db: Session, activity_id: str, actor: Actor) -> ActivityRecord:
    """Mark one of the actor's own lines as read.

    Raises:
        NotFoundError: If the record does not exist.
        ForbiddenError: If it belongs to someone else.
    """
    activity = db.query(ActivityRecord).filter(ActivityRecord.activity_id == activity_id).first()
    if not activity:
        raise NotFoundError(detail="Activity not found")
    if activity.actor_id != actor.user_id:
        raise ForbiddenError()
    activity.read = True
    db.commit()
    db.refresh(activity)
    return activity


def mark_all_read(db: Session, actor: Actor) -> int:
    """Mark everything counted by ``unread`` as read; returns how many changed."""
    count = (
        _unread_query(db, actor)
        .update({ActivityRecord.read: True}, synchronize_session=False)
    )
    db.commit()
    logger.info("Marked %d activities read for user %s", count, actor.user_id)
    return count
