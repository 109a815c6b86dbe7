"""Tests for the atomic slot counters on a mass.

Covers:
- Conditional decrement (never below zero)
- Release never above the configured total
- Resize keeps the committed count and refuses to go below it
- Status derived from both pools
- Database CHECK constraints keep counters within bounds
"""
import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from parish.errors import BelowCommittedError, NoAvailableSlotsError, NotFoundError
from parish.models.mass import Mass, MassStatus, SlotPool
from parish.services import mass_store
from tests.conftest import create_test_mass


class TestDecrement:
    """try_decrement_capacity."""

    def test_decrement_takes_one_unit(self, db):
        mass = create_test_mass(db, intention_slots=2)
        remaining = mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.intention)
        db.commit()
        assert remaining == 1
        assert mass_store.get_mass(db, mass.mass_id).thanksgiving_capacity_remaining == 2

    def test_exhausted_pool_raises(self, db):
        mass = create_test_mass(db, intention_slots=1)
        mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.intention)
        with pytest.raises(NoAvailableSlotsError) as exc:
            mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.intention)
        assert exc.value.context["pool"] == "intention"
        assert mass_store.get_mass(db, mass.mass_id).intention_capacity_remaining == 0

    def test_zero_capacity_pool_raises(self, db):
        mass = create_test_mass(db, thanksgiving_slots=0)
        with pytest.raises(NoAvailableSlotsError):
            mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.thanksgiving)

    def test_unknown_mass_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            mass_store.try_decrement_capacity(db, "missing", SlotPool.intention)


class TestIncrement:
    """increment_capacity."""

    def test_release_returns_unit(self, db):
        mass = create_test_mass(db, thanksgiving_slots=2)
        mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.thanksgiving)
        assert mass_store.increment_capacity(db, mass.mass_id, SlotPool.thanksgiving) == 2

    def test_release_never_exceeds_total(self, db):
        mass = create_test_mass(db, intention_slots=2)
        assert mass_store.increment_capacity(db, mass.mass_id, SlotPool.intention) == 2
        assert mass_store.get_mass(db, mass.mass_id).intention_capacity_total == 2


class TestResize:
    """resize_capacity."""

    def _book(self, db, mass_id, pool, count):
        for _ in range(count):
            mass_store.try_decrement_capacity(db, mass_id, pool)
        db.commit()

    def test_below_committed_is_refused(self, db):
        mass = create_test_mass(db, intention_slots=5)
        self._book(db, mass.mass_id, SlotPool.intention, 3)
        with pytest.raises(BelowCommittedError) as exc:
            mass_store.resize_capacity(db, mass.mass_id, SlotPool.intention, 2)
        assert exc.value.committed == 3
        assert exc.value.context == {"pool": "intention", "committed": 3}
        db.rollback()
        mass = mass_store.get_mass(db, mass.mass_id)
        assert (mass.intention_capacity_total, mass.intention_capacity_remaining) == (5, 2)

    def test_resize_to_committed_leaves_none_remaining(self, db):
        mass = create_test_mass(db, intention_slots=5)
        self._book(db, mass.mass_id, SlotPool.intention, 3)
        mass = mass_store.resize_capacity(db, mass.mass_id, SlotPool.intention, 3)
        assert (mass.intention_capacity_total, mass.intention_capacity_remaining) == (3, 0)

    def test_grow_shifts_remaining(self, db):
        mass = create_test_mass(db, thanksgiving_slots=2)
        self._book(db, mass.mass_id, SlotPool.thanksgiving, 1)
        mass = mass_store.resize_capacity(db, mass.mass_id, SlotPool.thanksgiving, 6)
        assert (mass.thanksgiving_capacity_total, mass.thanksgiving_capacity_remaining) == (6, 5)
        assert mass.committed(SlotPool.thanksgiving) == 1

    def test_negative_total_rejected(self, db):
        mass = create_test_mass(db)
        with pytest.raises(ValueError):
            mass_store.resize_capacity(db, mass.mass_id, SlotPool.intention, -1)

    def test_unknown_mass_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            mass_store.resize_capacity(db, "missing", SlotPool.intention, 3)


class TestRecomputeStatus:
    """Status is FULL only when both pools are exhausted."""

    def test_full_requires_both_pools(self, db):
        mass = create_test_mass(db, intention_slots=1, thanksgiving_slots=1)
        mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.intention)
        assert mass_store.recompute_status(db, mass.mass_id) == MassStatus.available
        mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.thanksgiving)
        assert mass_store.recompute_status(db, mass.mass_id) == MassStatus.full

    def test_release_with_other_pool_full_flips_back(self, db):
        mass = create_test_mass(db, intention_slots=1, thanksgiving_slots=1)
        mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.intention)
        mass_store.try_decrement_capacity(db, mass.mass_id, SlotPool.thanksgiving)
        mass_store.recompute_status(db, mass.mass_id)
        mass_store.increment_capacity(db, mass.mass_id, SlotPool.intention)
        assert mass_store.recompute_status(db, mass.mass_id) == MassStatus.available

    def test_zero_capacity_mass_starts_full(self, db):
        mass = create_test_mass(db, intention_slots=0, thanksgiving_slots=0)
        assert mass.status == MassStatus.full


class TestConstraints:
    """CHECK constraints on the counters."""

    def test_remaining_above_total_rejected(self, db):
        mass = create_test_mass(db, intention_slots=2)
        with pytest.raises(IntegrityError):
            db.execute(
                update(Mass)
                .where(Mass.mass_id == mass.mass_id)
                .values(intention_capacity_remaining=3)
            )
        db.rollback()

    def test_negative_remaining_rejected(self, db):
        mass = create_test_mass(db, thanksgiving_slots=0)
        with pytest.raises(IntegrityError):
            db.execute(
                update(Mass)
                .where(Mass.mass_id == mass.mass_id)
                .values(thanksgiving_capacity_remaining=-1)
            )
        db.rollback()
