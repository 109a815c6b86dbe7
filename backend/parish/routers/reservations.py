"""Reservation API routes — request, review and release mass slots."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from parish.auth import Actor
from parish.config import settings
from parish.database import get_db
from parish.dependencies import get_actor, require_admin
from parish.errors import ForbiddenError
from parish.models.mass import SlotPool
from parish.models.reservation import ReservationStatus
from parish.schemas.reservation import (
    ReservationCreate,
    ReservationOut,
    ReservationPage,
    ReservationStatusUpdate,
    ReservationWithMassOut,
)
from parish.services import reservation_engine
from parish.services import reservation_ledger as ledger

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def request_reservation(
    payload: ReservationCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Book an intention or thanksgiving slot; 409 when the pool is exhausted."""
    return reservation_engine.request_reservation(
        db,
        mass_id=payload.mass_id,
        requester=actor,
        pool=payload.pool,
        payload=payload.payload,
        name=payload.name,
    )


@router.get("/upcoming", response_model=ReservationPage)
def list_upcoming(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    pool: Optional[SlotPool] = Query(None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """The caller's bookings on masses from today onward."""
    return ReservationPage(
        items=ledger.list_upcoming_for_user(db, actor.user_id, page, page_size, pool=pool),
        total=ledger.count_upcoming_for_user(db, actor.user_id, pool=pool),
        page=page,
        page_size=page_size,
    )


@router.get("/past", response_model=ReservationPage)
def list_past(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    pool: Optional[SlotPool] = Query(None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """The caller's bookings on masses before today."""
    return ReservationPage(
        items=ledger.list_past_for_user(db, actor.user_id, page, page_size, pool=pool),
        total=ledger.count_past_for_user(db, actor.user_id, pool=pool),
        page=page,
        page_size=page_size,
    )


@router.get("/{reservation_id}", response_model=ReservationWithMassOut)
def get_reservation(reservation_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    reservation = ledger.get(db, reservation_id)
    if not actor.is_admin and reservation.requester_id != actor.user_id:
        raise ForbiddenError(detail="Not your reservation")
    return reservation


@router.post("/{reservation_id}/status", response_model=ReservationOut)
def update_status(
    reservation_id: str,
    payload: ReservationStatusUpdate,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending booking; 409 if it was already decided."""
    return reservation_engine.update_reservation_status(
        db, reservation_id, ReservationStatus(payload.status), admin,
    )


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(reservation_id: str, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    reservation_engine.delete_reservation(db, reservation_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
