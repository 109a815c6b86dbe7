"""Mass store — atomic mutation of a mass's slot counters.

Every counter change is a single conditional UPDATE evaluated by the database,
never a read-modify-write from Python. All functions run inside the caller's
transaction and never commit.
"""
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from parish.errors import BelowCommittedError, NoAvailableSlotsError, NotFoundError
from parish.models.mass import Mass, MassStatus, SlotPool

logger = logging.getLogger(__name__)


def _columns(pool: SlotPool):
    """Return the (total, remaining) columns for a pool."""
    if pool == SlotPool.intention:
        return Mass.intention_capacity_total, Mass.intention_capacity_remaining
    return Mass.thanksgiving_capacity_total, Mass.thanksgiving_capacity_remaining


def get_mass(db: Session, mass_id: str, for_update: bool = False) -> Mass:
    """Load a mass with fresh counters.

    Raises:
        NotFoundError: If the mass does not exist.
    """
    db.flush()  # populate_existing would discard unflushed edits
    mass = db.get(Mass, mass_id, populate_existing=True, with_for_update=for_update or None)
    if mass is None:
        raise NotFoundError(detail="Mass not found", mass_id=mass_id)
    return mass


def try_decrement_capacity(db: Session, mass_id: str, pool: SlotPool) -> int:
    """Take one unit from ``pool`` if any remain; return the new remaining count.

    The check and the decrement are one statement, so two callers racing for
    the last unit cannot both succeed.

    Raises:
        NotFoundError: If the mass does not exist.
        NoAvailableSlotsError: If the pool is exhausted.
    """
    _, remaining = _columns(pool)
    result = db.execute(
        update(Mass)
        .where(Mass.mass_id == mass_id, remaining > 0)
        .values({remaining: remaining - 1})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return get_mass(db, mass_id).remaining(pool)

    get_mass(db, mass_id)  # raises NotFoundError when missing
    raise NoAvailableSlotsError(
        detail=f"No available slots for {pool.value}s for this mass",
        mass_id=mass_id,
        pool=pool.value,
    )


def increment_capacity(db: Session, mass_id: str, pool: SlotPool) -> int:
    """Give one unit back to ``pool``; return the new remaining count.

    Never raises remaining above the configured total.

    Raises:
        NotFoundError: If the mass does not exist.
    """
    total, remaining = _columns(pool)
    result = db.execute(
        update(Mass)
        .where(Mass.mass_id == mass_id, remaining < total)
        .values({remaining: remaining + 1})
        .execution_options(synchronize_session=False)
    )
    mass = get_mass(db, mass_id)
    if result.rowcount != 1:
        logger.error(
            "Release on mass %s %s pool ignored: remaining already at total (%d)",
            mass_id, pool.value, mass.total(pool),
        )
    return mass.remaining(pool)


def resize_capacity(db: Session, mass_id: str, pool: SlotPool, new_total: int) -> Mass:
    """Set the pool total, shifting remaining by the same delta.

    The committed count (total - remaining) is preserved; the guard is part of
    the UPDATE so a concurrent booking cannot slip under it.

    Raises:
        ValueError: If ``new_total`` is negative.
        NotFoundError: If the mass does not exist.
        BelowCommittedError: If ``new_total`` is below the committed count.
    """
    if new_total < 0:
        raise ValueError("Capacity cannot be negative")

    total, remaining = _columns(pool)
    result = db.execute(
        update(Mass)
        .where(Mass.mass_id == mass_id, total - remaining <= new_total)
        .ordered_values((remaining, remaining + (new_total - total)), (total, new_total))
        .execution_options(synchronize_session=False)
    )
    mass = get_mass(db, mass_id)
    if result.rowcount != 1:
        raise BelowCommittedError(pool=pool.value, committed=mass.committed(pool))
    return mass


def recompute_status(db: Session, mass_id: str) -> MassStatus:
    """Derive status from both pools: FULL iff neither has a unit left."""
    mass = get_mass(db, mass_id)
    status = (
        MassStatus.full
        if mass.intention_capacity_remaining == 0 and mass.thanksgiving_capacity_remaining == 0
        else MassStatus.available
    )
    if mass.status != status:
        mass.status = status
        db.flush()
    return status
