"""Mass administration — create, edit, delete and list masses.

Capacity totals are only ever changed through the engine's resize path, so an
edit can never orphan live reservations.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from parish.auth import Actor
from parish.clock import to_utc, utcnow
from parish.database import transaction
from parish.errors import HasReservationsError
from parish.models.activity import Audience
from parish.models.mass import Mass, MassStatus, SlotPool
from parish.services import activity_service, mass_store
from parish.services import reservation_ledger as ledger
from parish.services.activity_service import ActivityEntry
from parish.services.reservation_engine import resize_pool

logger = logging.getLogger(__name__)

POOL_FIELDS = {
    "intention_slots": SlotPool.intention,
    "thanksgiving_slots": SlotPool.thanksgiving,
}


def _log_admin(db: Session, actor: Actor, description: str, mass_id: str) -> None:
    try:
        activity_service.record(db, [ActivityEntry(actor.user_id, description, Audience.admin, "Mass", mass_id)])
    except Exception:
        logger.exception("Recording mass activity failed")


def create_mass(
    db: Session,
    actor: Actor,
    title: str,
    scheduled_at: datetime,
    location: str,
    intention_slots: int,
    thanksgiving_slots: int,
) -> Mass:
    """Create a mass with both pools fully available."""
    if intention_slots < 0 or thanksgiving_slots < 0:
        raise ValueError("Slots must be non-negative")

    with transaction(db, "create_mass"):
        mass = Mass(
            title=title,
            scheduled_at=to_utc(scheduled_at),
            location=location,
            intention_capacity_total=intention_slots,
            intention_capacity_remaining=intention_slots,
            thanksgiving_capacity_total=thanksgiving_slots,
            thanksgiving_capacity_remaining=thanksgiving_slots,
            status=MassStatus.full if intention_slots == 0 and thanksgiving_slots == 0 else MassStatus.available,
        )
        db.add(mass)
        db.flush()

    logger.info("Created mass '%s' (%s) by %s", title, mass.mass_id, actor.user_id)
    _log_admin(db, actor, f"Created new mass: {title}", mass.mass_id)
    return mass


def update_mass(db: Session, mass_id: str, actor: Actor, updates: dict[str, Any]) -> Mass:
    """Edit a mass; ``intention_slots`` / ``thanksgiving_slots`` resize the pools.

    Raises:
        NotFoundError: The mass does not exist.
        BelowCommittedError: A new total is below live reservations.
    """
    with transaction(db, "update_mass"):
        mass = mass_store.get_mass(db, mass_id, for_update=True)
        for field in ("title", "location"):
            if updates.get(field) is not None:
                setattr(mass, field, updates[field])
        if updates.get("scheduled_at") is not None:
            mass.scheduled_at = to_utc(updates["scheduled_at"])
        db.flush()
        for field, pool in POOL_FIELDS.items():
            if updates.get(field) is not None:
                mass = resize_pool(db, mass_id, pool, updates[field])

    logger.info("Updated mass %s by %s", mass_id, actor.user_id)
    _log_admin(db, actor, f"Updated mass: {mass.title}", mass_id)
    return mass


def delete_mass(db: Session, mass_id: str, actor: Actor) -> None:
    """Delete a mass that no reservation references.

    Raises:
        NotFoundError: The mass does not exist.
        HasReservationsError: Reservations still point at it.
    """
    with transaction(db, "delete_mass"):
        mass = mass_store.get_mass(db, mass_id, for_update=True)
        title = mass.title
        if ledger.exists_for_mass(db, mass_id):
            raise HasReservationsError(
                detail="Cannot delete a mass that still has reservations",
                mass_id=mass_id,
            )
        db.delete(mass)

    logger.info("Deleted mass %s by %s", mass_id, actor.user_id)
    _log_admin(db, actor, f"Deleted mass: {title}", mass_id)


def get_mass(db: Session, mass_id: str) -> Mass:
    return mass_store.get_mass(db, mass_id)


def list_masses_with_availability(
    db: Session, include_full: bool = False, now: Optional[datetime] = None,
) -> list[Mass]:
    """Masses from now onward, soonest first; only AVAILABLE ones unless asked."""
    query = db.query(Mass).filter(Mass.scheduled_at >= (now or utcnow()))
    if not include_full:
        query = query.filter(Mass.status == MassStatus.available)
    return query.order_by(Mass.scheduled_at.asc()).all()
