"""No-overbooking under real concurrency.

Many threads, each with its own session, race for a small pool on the same
SQLite file. Exactly ``capacity`` of them may win. A second session also
interleaves with the engine to land writes at the awkward moments: a row
deleted right after commit, a reject between a delete's read and its write.
"""
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

import pytest

from parish import database
from parish.auth import Actor
from parish.errors import AlreadyFinalizedError, NoAvailableSlotsError
from parish.models.mass import MassStatus, SlotPool
from parish.models.reservation import Reservation, ReservationStatus
from parish.services import activity_service, mass_store, reservation_engine
from parish.services import reservation_ledger as ledger
from tests.conftest import ADMIN, PARISHIONER, create_test_mass


def _race(session_factory, mass_id: str, pool: SlotPool, attempts: int) -> list[str]:
    def attempt(i: int) -> str:
        session = session_factory()
        try:
            reservation_engine.request_reservation(
                session, mass_id, Actor(user_id=f"user-{i}"), pool,
                payload=f"Request {i}", name=f"Soul {i}",
            )
            return "ok"
        except NoAvailableSlotsError:
            return "full"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool_executor:
        return list(pool_executor.map(attempt, range(attempts)))


class TestNoOverbooking:
    """Concurrent requests never exceed capacity."""

    def test_exactly_capacity_succeed(self, db, session_factory):
        mass = create_test_mass(db, intention_slots=5, thanksgiving_slots=1)
        outcomes = _race(session_factory, mass.mass_id, SlotPool.intention, attempts=20)

        assert outcomes.count("ok") == 5
        assert outcomes.count("full") == 15
        db.expire_all()
        assert db.query(Reservation).filter(Reservation.pool == SlotPool.intention).count() == 5
        fresh = mass_store.get_mass(db, mass.mass_id)
        assert fresh.intention_capacity_remaining == 0
        assert fresh.status == MassStatus.available  # thanksgiving still free

    def test_concurrent_rejects_release_once(self, db, session_factory):
        mass = create_test_mass(db, intention_slots=2)
        reservation = reservation_engine.request_reservation(
            db, mass.mass_id, Actor(user_id="user-1"), SlotPool.intention, "payload", name="Anna",
        )
        reservation_id = reservation.reservation_id

        def reject(_):
            session = session_factory()
            try:
                reservation_engine.update_reservation_status(
                    session, reservation_id, ReservationStatus.rejected, ADMIN,
                )
                return "ok"
            except Exception as exc:
                return type(exc).__name__
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=4) as executor:
            outcomes = list(executor.map(reject, range(4)))

        assert outcomes.count("ok") == 1
        assert set(outcomes) - {"ok"} <= {"AlreadyFinalizedError"}
        db.expire_all()
        assert mass_store.get_mass(db, mass.mass_id).intention_capacity_remaining == 2


def _purge_after_commit(session_factory):
    """A transaction that, once committed, has every reservation deleted by another session."""
    real = database.transaction

    @contextmanager
    def wrapped(db, operation):
        with real(db, operation):
            yield db
        other = session_factory()
        try:
            other.query(Reservation).delete()
            other.commit()
        finally:
            other.close()

    return wrapped


class TestRowGoneAfterCommit:
    """The engine never reloads its row once the transaction has committed."""

    def test_approve_survives_concurrent_delete(self, db, session_factory, inbox, monkeypatch):
        mass = create_test_mass(db, intention_slots=2)
        reservation = reservation_engine.request_reservation(
            db, mass.mass_id, PARISHIONER, SlotPool.intention, "payload", name="Anna",
        )
        requester_box = inbox(PARISHIONER.user_id, "PARISHIONER")
        monkeypatch.setattr(reservation_engine, "transaction", _purge_after_commit(session_factory))

        approved = reservation_engine.update_reservation_status(
            db, reservation.reservation_id, ReservationStatus.approved, ADMIN,
        )

        assert approved.status == ReservationStatus.approved
        assert approved.reservation_id == reservation.reservation_id
        assert requester_box[0]["data"]["action"] == "statusUpdated"
        lines = activity_service.list_activities(db, PARISHIONER)
        assert lines[0].description == "Your mass intention for Anna has been approved"
        db.expire_all()
        assert db.query(Reservation).count() == 0

    def test_request_survives_concurrent_delete(self, db, session_factory, inbox, monkeypatch):
        mass = create_test_mass(db, intention_slots=2)
        admin_box = inbox(ADMIN.user_id, "ADMIN")
        monkeypatch.setattr(reservation_engine, "transaction", _purge_after_commit(session_factory))

        reservation = reservation_engine.request_reservation(
            db, mass.mass_id, PARISHIONER, SlotPool.intention, "payload", name="Anna",
        )

        assert reservation.status == ReservationStatus.pending
        assert reservation.name == "Anna"
        assert admin_box[0]["data"] == {
            "id": reservation.reservation_id, "action": "created", "massId": mass.mass_id,
        }


class TestDeleteLosesToReject:
    """A reject landing between delete's read and its conditional DELETE."""

    def test_delete_refuses_and_release_happens_once(self, db, session_factory, monkeypatch):
        mass = create_test_mass(db, intention_slots=2)
        reservation = reservation_engine.request_reservation(
            db, mass.mass_id, PARISHIONER, SlotPool.intention, "payload", name="Anna",
        )
        reservation_id = reservation.reservation_id
        real_get = ledger.get
        interleaved = []

        def get_then_reject(session, wanted_id):
            found = real_get(session, wanted_id)
            if not interleaved:
                interleaved.append(wanted_id)
                other = session_factory()
                try:
                    reservation_engine.update_reservation_status(
                        other, wanted_id, ReservationStatus.rejected, ADMIN,
                    )
                finally:
                    other.close()
            return found

        monkeypatch.setattr(ledger, "get", get_then_reject)

        with pytest.raises(AlreadyFinalizedError):
            reservation_engine.delete_reservation(db, reservation_id, ADMIN)

        monkeypatch.undo()
        db.expire_all()
        assert ledger.get(db, reservation_id).status == ReservationStatus.rejected
        assert mass_store.get_mass(db, mass.mass_id).intention_capacity_remaining == 2
