"""ActivityRecord ORM model: append-only audit line per state change."""
import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Index, Enum as SAEnum
from parish.database import Base, enum_values
from parish.clock import utcnow


class Audience(str, enum.Enum):
    self_ = "self"
    admin = "admin"


class ActivityRecord(Base):
    __tablename__ = "activity_records"

    activity_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    actor_id = Column(String(36), nullable=False)
    description = Column(String(500), nullable=False)
    audience = Column(SAEnum(Audience, native_enum=False, length=10, values_callable=enum_values), nullable=False)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(String(36), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_activity_records_actor_audience", "actor_id", "audience"),
    )
