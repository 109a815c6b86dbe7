"""Mass API routes — scheduling and capacity administration."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from parish.auth import Actor
from parish.database import get_db
from parish.dependencies import get_actor, require_admin
from parish.models.mass import SlotPool
from parish.schemas.mass import CapacityResize, MassCreate, MassOut, MassUpdate
from parish.schemas.reservation import ReservationOut
from parish.services import mass_service, reservation_engine
from parish.services import reservation_ledger as ledger

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=MassOut, status_code=status.HTTP_201_CREATED)
def create_mass(payload: MassCreate, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Schedule a new mass with intention and thanksgiving slot totals."""
    return mass_service.create_mass(
        db,
        actor=admin,
        title=payload.title,
        scheduled_at=payload.scheduled_at,
        location=payload.location,
        intention_slots=payload.intention_slots,
        thanksgiving_slots=payload.thanksgiving_slots,
    )


@router.get("/", response_model=list[MassOut])
def list_masses(include_full: bool = Query(False), db: Session = Depends(get_db)):
    """Upcoming masses, soonest first; full ones only when asked."""
    return mass_service.list_masses_with_availability(db, include_full=include_full)


@router.get("/{mass_id}", response_model=MassOut)
def get_mass(mass_id: str, db: Session = Depends(get_db)):
    return mass_service.get_mass(db, mass_id)


@router.put("/{mass_id}", response_model=MassOut)
def update_mass(
    mass_id: str,
    payload: MassUpdate,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Edit a mass; slot totals below live bookings are refused with 409."""
    return mass_service.update_mass(db, mass_id, admin, payload.model_dump(exclude_unset=True))


@router.patch("/{mass_id}/capacity", response_model=MassOut)
def resize_capacity(
    mass_id: str,
    payload: CapacityResize,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Resize one slot pool."""
    return reservation_engine.resize_mass_capacity(db, mass_id, payload.pool, payload.new_total, admin)


@router.delete("/{mass_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mass(mass_id: str, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    mass_service.delete_mass(db, mass_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{mass_id}/reservations", response_model=list[ReservationOut])
def list_mass_reservations(
    mass_id: str,
    pool: Optional[SlotPool] = Query(None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Bookings on a mass: all of them for admins, the caller's own otherwise."""
    mass_service.get_mass(db, mass_id)
    return ledger.list_for_mass(db, mass_id, actor, pool=pool)
