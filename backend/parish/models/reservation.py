"""Reservation ORM model: one booked intention or thanksgiving slot."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.orm import relationship
from parish.database import Base, enum_values
from parish.models.mass import SlotPool
from parish.clock import utcnow


class ReservationStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


# Only PENDING reservations may still be approved or rejected.
DECIDED_STATUSES = frozenset({ReservationStatus.approved, ReservationStatus.rejected})


class Reservation(Base):
    __tablename__ = "reservations"

    reservation_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    mass_id = Column(String(36), ForeignKey("masses.mass_id"), nullable=False)
    requester_id = Column(String(36), nullable=False)
    requester_name = Column(String(255), nullable=True)
    pool = Column(SAEnum(SlotPool, native_enum=False, length=20, values_callable=enum_values), nullable=False)
    name = Column(String(255), nullable=True)  # whom an intention is offered for
    payload = Column(Text, nullable=False)
    status = Column(
        SAEnum(ReservationStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=ReservationStatus.pending,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    mass = relationship("Mass", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_requester_id", "requester_id"),
        Index("ix_reservations_mass_pool", "mass_id", "pool"),
    )

    @property
    def is_decided(self) -> bool:
        return self.status in DECIDED_STATUSES

    @property
    def holds_capacity(self) -> bool:
        return self.status != ReservationStatus.rejected
