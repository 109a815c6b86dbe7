"""Reservation ledger — row-level CRUD and scoped listings.

Pure data access: nothing here touches mass capacity. The engine pairs every
ledger write with the matching mass_store call inside one transaction.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete as sa_delete, update
from sqlalchemy.orm import Query, Session, contains_eager, joinedload

from parish.auth import Actor
from parish.clock import start_of_today
from parish.errors import NotFoundError
from parish.models.mass import Mass, SlotPool
from parish.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)


def create(
    db: Session,
    mass_id: str,
    requester_id: str,
    pool: SlotPool,
    payload: str,
    name: Optional[str] = None,
    requester_name: Optional[str] = None,
) -> Reservation:
    """Insert a PENDING reservation (flushed, not committed)."""
    reservation = Reservation(
        mass_id=mass_id,
        requester_id=requester_id,
        requester_name=requester_name,
        pool=pool,
        name=name,
        payload=payload,
        status=ReservationStatus.pending,
    )
    db.add(reservation)
    db.flush()
    return reservation


def get(db: Session, reservation_id: str) -> Reservation:
    """Fetch a reservation by id.

    Raises:
        NotFoundError: If it does not exist.
    """
    reservation = (
        db.query(Reservation)
        .options(joinedload(Reservation.mass))
        .filter(Reservation.reservation_id == reservation_id)
        .first()
    )
    if not reservation:
        raise NotFoundError(detail="Reservation not found", reservation_id=reservation_id)
    return reservation


def set_status(
    db: Session,
    reservation_id: str,
    new_status: ReservationStatus,
    expected: ReservationStatus = ReservationStatus.pending,
) -> bool:
    """Write ``new_status`` only if the row still has status ``expected``.

    Returns False when another transaction got there first.
    """
    result = db.execute(
        update(Reservation)
        .where(Reservation.reservation_id == reservation_id, Reservation.status == expected)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def delete(db: Session, reservation_id: str, expected: ReservationStatus) -> bool:
    """Delete the row only if its status is still ``expected``."""
    result = db.execute(
        sa_delete(Reservation)
        .where(Reservation.reservation_id == reservation_id, Reservation.status == expected)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _for_user(db: Session, user_id: str, pool: Optional[SlotPool]) -> Query:
    query = (
        db.query(Reservation)
        .join(Reservation.mass)
        .options(contains_eager(Reservation.mass))
        .filter(Reservation.requester_id == user_id)
    )
    if pool is not None:
        query = query.filter(Reservation.pool == pool)
    return query


def _page(query: Query, page: int, page_size: int) -> list[Reservation]:
    return query.offset((page - 1) * page_size).limit(page_size).all()


def list_upcoming_for_user(
    db: Session,
    user_id: str,
    page: int = 1,
    page_size: int = 5,
    pool: Optional[SlotPool] = None,
    today: Optional[datetime] = None,
) -> list[Reservation]:
    """Reservations on masses from the start of today onward, soonest first."""
    boundary = today or start_of_today()
    query = _for_user(db, user_id, pool).filter(Mass.scheduled_at >= boundary)
    return _page(query.order_by(Mass.scheduled_at.asc(), Reservation.created_at.asc()), page, page_size)


def count_upcoming_for_user(
    db: Session, user_id: str, pool: Optional[SlotPool] = None, today: Optional[datetime] = None,
) -> int:
    boundary = today or start_of_today()
    return _for_user(db, user_id, pool).filter(Mass.scheduled_at >= boundary).count()


def list_past_for_user(
    db: Session,
    user_id: str,
    page: int = 1,
    page_size: int = 5,
    pool: Optional[SlotPool] = None,
    today: Optional[datetime] = None,
) -> list[Reservation]:
    """Reservations on masses before the start of today, most recent first."""
    boundary = today or start_of_today()
    query = _for_user(db, user_id, pool).filter(Mass.scheduled_at < boundary)
    return _page(query.order_by(Mass.scheduled_at.desc(), Reservation.created_at.desc()), page, page_size)


def count_past_for_user(
    db: Session, user_id: str, pool: Optional[SlotPool] = None, today: Optional[datetime] = None,
) -> int:
    boundary = today or start_of_today()
    return _for_user(db, user_id, pool).filter(Mass.scheduled_at < boundary).count()


def list_for_mass(
    db: Session, mass_id: str, actor: Actor, pool: Optional[SlotPool] = None,
) -> list[Reservation]:
    """Reservations on one mass, newest first.

    Administrators see every booking; parishioners only their own.
    """
    query = db.query(Reservation).filter(Reservation.mass_id == mass_id)
    if not actor.is_admin:
        query = query.filter(Reservation.requester_id == actor.user_id)
    if pool is not None:
        query = query.filter(Reservation.pool == pool)
    return query.order_by(Reservation.created_at.desc()).all()


def count_holding(db: Session, mass_id: str, pool: SlotPool) -> int:
    """Reservations on a mass/pool that still hold a capacity unit."""
    return (
        db.query(Reservation)
        .filter(
            Reservation.mass_id == mass_id,
            Reservation.pool == pool,
            Reservation.status != ReservationStatus.rejected,
        )
        .count()
    )


def exists_for_mass(db: Session, mass_id: str) -> bool:
    return db.query(Reservation.reservation_id).filter(Reservation.mass_id == mass_id).first() is not None
