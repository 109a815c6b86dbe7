"""Reservation engine — capacity-bounded booking of intention/thanksgiving slots.

Responsibilities:
- Each operation is one transaction over masses + reservations
- Capacity is taken by an atomic conditional decrement, never read-then-write
- A reservation holds one unit while PENDING or APPROVED and releases it
  exactly once (on REJECTED or on delete of a non-rejected row)
- Mass status is recomputed from both pools after every counter change
- Notification fan-out and activity recording run only after commit and can
  never fail or undo the operation
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from parish.auth import Actor, is_admin_role
from parish.database import transaction
from parish.errors import AlreadyFinalizedError
from parish.models.activity import Audience
from parish.models.mass import Mass, SlotPool
from parish.models.reservation import Reservation, ReservationStatus
from parish.notifications import (
    MASS_INTENTION_UPDATED,
    THANKSGIVING_UPDATED,
    ReservationEvent,
    SubscriberFilter,
    hub,
)
from parish.services import activity_service, mass_store
from parish.services import reservation_ledger as ledger
from parish.services.activity_service import ActivityEntry

logger = logging.getLogger(__name__)

ENTITY_TYPES = {
    SlotPool.intention: "MassIntention",
    SlotPool.thanksgiving: "Thanksgiving",
}
NOTIFICATION_KINDS = {
    SlotPool.intention: MASS_INTENTION_UPDATED,
    SlotPool.thanksgiving: THANKSGIVING_UPDATED,
}


def _admins_only(user_id: str, role: str) -> bool:
    return is_admin_role(role)


def _snippet(text: str, length: int = 30) -> str:
    return text[:length] + ("..." if len(text) > length else "")


def _after_commit(
    db: Session,
    event: Optional[ReservationEvent],
    subscriber_filter: Optional[SubscriberFilter],
    entries: list[ActivityEntry],
) -> None:
    """Best-effort side effects; failures are logged and swallowed."""
    if event is not None:
        try:
            hub.publish(event, subscriber_filter)
        except Exception:
            logger.exception("Notification for reservation %s (%s) failed", event.reservation_id, event.action)
    try:
        activity_service.record(db, entries)
    except Exception:
        logger.exception("Recording %d activity entries failed", len(entries))


# ── Activity wording ───────────────────────────────────────────────


def _created_entries(reservation: Reservation, requester: Actor) -> list[ActivityEntry]:
    entity = ENTITY_TYPES[reservation.pool]
    if reservation.pool == SlotPool.intention:
        subject = reservation.name or _snippet(reservation.payload)
        own = f"Mass intention submitted for {subject}"
        admin = f"New mass intention request from {requester.display_name} for {subject}"
    else:
        own = f'Thanksgiving service booked for "{_snippet(reservation.payload)}"'
        admin = f"New thanksgiving request from {requester.display_name}"
    return [
        ActivityEntry(requester.user_id, own, Audience.self_, entity, reservation.reservation_id),
        ActivityEntry(requester.user_id, admin, Audience.admin, entity, reservation.reservation_id),
    ]


def _status_entries(reservation: Reservation, status: ReservationStatus, admin: Actor) -> list[ActivityEntry]:
    entity = ENTITY_TYPES[reservation.pool]
    word = status.value.lower()
    if reservation.pool == SlotPool.intention:
        subject = reservation.name or _snippet(reservation.payload)
        own = f"Your mass intention for {subject} has been {word}"
        admin_line = f"Mass intention for {subject} has been {word}"
    else:
        own = f"Your thanksgiving service has been {word}"
        admin_line = f"Thanksgiving service for {reservation.requester_name or reservation.requester_id} has been {word}"
    return [
        ActivityEntry(reservation.requester_id, own, Audience.self_, entity, reservation.reservation_id),
        ActivityEntry(admin.user_id, admin_line, Audience.admin, entity, reservation.reservation_id),
    ]


def _deleted_entries(reservation: Reservation, admin: Actor) -> list[ActivityEntry]:
    entity = ENTITY_TYPES[reservation.pool]
    if reservation.pool == SlotPool.intention:
        line = f"Mass intention for {reservation.name or _snippet(reservation.payload)} has been deleted"
    else:
        line = f"Thanksgiving service for {reservation.requester_name or reservation.requester_id} has been deleted"
    return [ActivityEntry(admin.user_id, line, Audience.admin, entity, reservation.reservation_id)]


# ── Operations ─────────────────────────────────────────────────────


def request_reservation(
    db: Session,
    mass_id: str,
    requester: Actor,
    pool: SlotPool,
    payload: str,
    name: Optional[str] = None,
) -> Reservation:
    """Book one slot from ``pool`` on a mass as a PENDING reservation.

    Raises:
        NotFoundError: The mass does not exist.
        NoAvailableSlotsError: The pool is exhausted (normal under contention).
        AbortedError: A database fault; nothing was written.
    """
    with transaction(db, "request_reservation"):
        remaining = mass_store.try_decrement_capacity(db, mass_id, pool)
        reservation = ledger.create(
            db,
            mass_id=mass_id,
            requester_id=requester.user_id,
            pool=pool,
            payload=payload,
            name=name,
            requester_name=requester.name,
        )
        mass_store.recompute_status(db, mass_id)
        # Detached while the row is known to exist; nothing after commit reloads it.
        db.expunge(reservation)

    logger.info(
        "Reservation %s created on mass %s by %s (%s pool, %d left)",
        reservation.reservation_id, mass_id, requester.user_id, pool.value, remaining,
    )
    _after_commit(
        db,
        ReservationEvent(NOTIFICATION_KINDS[pool], reservation.reservation_id, mass_id, "created"),
        _admins_only,
        _created_entries(reservation, requester),
    )
    return reservation


def update_reservation_status(
    db: Session,
    reservation_id: str,
    new_status: ReservationStatus,
    admin: Actor,
) -> Reservation:
    """Approve or reject a PENDING reservation.

    REJECTED gives the unit back; APPROVED keeps the unit taken at creation.

    Raises:
        ValueError: ``new_status`` is not APPROVED or REJECTED.
        NotFoundError: The reservation does not exist.
        AlreadyFinalizedError: It was already approved or rejected.
        AbortedError: A database fault; nothing was written.
    """
    new_status = ReservationStatus(new_status)
    if new_status == ReservationStatus.pending:
        raise ValueError("A reservation can only be moved to APPROVED or REJECTED")

    with transaction(db, "update_reservation_status"):
        reservation = ledger.get(db, reservation_id)
        if reservation.is_decided:
            raise AlreadyFinalizedError(
                detail=f"Reservation is already {reservation.status.value.lower()}",
                reservation_id=reservation_id,
            )
        if not ledger.set_status(db, reservation_id, new_status, expected=ReservationStatus.pending):
            raise AlreadyFinalizedError(reservation_id=reservation_id)
        if new_status == ReservationStatus.rejected:
            mass_store.increment_capacity(db, reservation.mass_id, reservation.pool)
            mass_store.recompute_status(db, reservation.mass_id)
        db.refresh(reservation)
        db.expunge(reservation)

    logger.info("Reservation %s %s by %s", reservation_id, new_status.value.lower(), admin.user_id)

    requester_id = reservation.requester_id

    def _requester_or_admin(user_id: str, role: str) -> bool:
        return user_id == requester_id or user_id == admin.user_id

    _after_commit(
        db,
        ReservationEvent(
            NOTIFICATION_KINDS[reservation.pool], reservation_id, reservation.mass_id,
            "statusUpdated", new_status.value,
        ),
        _requester_or_admin,
        _status_entries(reservation, new_status, admin),
    )
    return reservation


def delete_reservation(db: Session, reservation_id: str, admin: Actor) -> None:
    """Remove a reservation, releasing its unit unless it was already rejected.

    Raises:
        NotFoundError: The reservation does not exist.
        AlreadyFinalizedError: It changed or vanished while being deleted.
        AbortedError: A database fault; nothing was written.
    """
    with transaction(db, "delete_reservation"):
        reservation = ledger.get(db, reservation_id)
        held = reservation.holds_capacity
        if not ledger.delete(db, reservation_id, expected=reservation.status):
            raise AlreadyFinalizedError(
                detail="Reservation changed while being deleted, reload and retry",
                reservation_id=reservation_id,
            )
        db.expunge(reservation)
        if held:
            mass_store.increment_capacity(db, reservation.mass_id, reservation.pool)
        mass_store.recompute_status(db, reservation.mass_id)

    logger.info(
        "Reservation %s deleted by %s (released=%s)", reservation_id, admin.user_id, held,
    )
    requester_id = reservation.requester_id

    def _requester_or_admins(user_id: str, role: str) -> bool:
        return user_id == requester_id or is_admin_role(role)

    _after_commit(
        db,
        ReservationEvent(NOTIFICATION_KINDS[reservation.pool], reservation_id, reservation.mass_id, "deleted"),
        _requester_or_admins,
        _deleted_entries(reservation, admin),
    )


def resize_pool(db: Session, mass_id: str, pool: SlotPool, new_total: int) -> Mass:
    """Resize one pool inside the caller's transaction (no commit)."""
    mass_store.resize_capacity(db, mass_id, pool, new_total)
    mass_store.recompute_status(db, mass_id)
    return mass_store.get_mass(db, mass_id)


def resize_mass_capacity(
    db: Session,
    mass_id: str,
    pool: SlotPool,
    new_total: int,
    admin: Actor,
) -> Mass:
    """Change a pool's total capacity without orphaning live reservations.

    Raises:
        NotFoundError: The mass does not exist.
        BelowCommittedError: ``new_total`` is below the number of live
            reservations; the error carries that count.
        AbortedError: A database fault; nothing was written.
    """
    with transaction(db, "resize_mass_capacity"):
        mass = resize_pool(db, mass_id, pool, new_total)

    logger.info("Mass %s %s capacity set to %d by %s", mass_id, pool.value, new_total, admin.user_id)
    _after_commit(db, None, None, [ActivityEntry(
        admin.user_id,
        f"Set {pool.value} slots for {mass.title} to {new_total}",
        Audience.admin,
        "Mass",
        mass_id,
    )])
    return mass
