"""Mass ORM model: a schedulable event with two independent slot pools."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, CheckConstraint, Index, Enum as SAEnum
from sqlalchemy.orm import relationship
from parish.database import Base, enum_values
from parish.clock import utcnow


class MassStatus(str, enum.Enum):
    available = "AVAILABLE"
    full = "FULL"


class SlotPool(str, enum.Enum):
    intention = "intention"
    thanksgiving = "thanksgiving"


class Mass(Base):
    __tablename__ = "masses"

    mass_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)  # stored as UTC
    location = Column(String(500), nullable=False)
    intention_capacity_total = Column(Integer, nullable=False, default=0)
    intention_capacity_remaining = Column(Integer, nullable=False, default=0)
    thanksgiving_capacity_total = Column(Integer, nullable=False, default=0)
    thanksgiving_capacity_remaining = Column(Integer, nullable=False, default=0)
    status = Column(
        SAEnum(MassStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=MassStatus.available,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    reservations = relationship("Reservation", back_populates="mass")

    __table_args__ = (
        CheckConstraint("intention_capacity_remaining >= 0", name="ck_masses_intention_remaining_non_negative"),
        CheckConstraint(
            "intention_capacity_remaining <= intention_capacity_total",
            name="ck_masses_intention_remaining_lte_total",
        ),
        CheckConstraint("thanksgiving_capacity_remaining >= 0", name="ck_masses_thanksgiving_remaining_non_negative"),
        CheckConstraint(
            "thanksgiving_capacity_remaining <= thanksgiving_capacity_total",
            name="ck_masses_thanksgiving_remaining_lte_total",
        ),
        Index("ix_masses_scheduled_at", "scheduled_at"),
    )

    def total(self, pool: SlotPool) -> int:
        return getattr(self, f"{pool.value}_capacity_total")

    def remaining(self, pool: SlotPool) -> int:
        return getattr(self, f"{pool.value}_capacity_remaining")

    def committed(self, pool: SlotPool) -> int:
        """Units held by PENDING or APPROVED reservations."""
        return self.total(pool) - self.remaining(pool)

    def __repr__(self) -> str:
        return (
            f"<Mass(id={self.mass_id}, intentions={self.intention_capacity_remaining}/"
            f"{self.intention_capacity_total}, thanksgivings={self.thanksgiving_capacity_remaining}/"
            f"{self.thanksgiving_capacity_total}, status={self.status})>"
        )
