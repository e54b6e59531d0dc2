"""
Stalls are the individual physical units of inventory, materialized from a stall type's quantity.
stall_number is unique within an event; status flips available → booked by compare-and-swap.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from stallhub.database import Base


class StallStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"


class Stall(Base):
    __tablename__ = "stalls"
    __table_args__ = (
        UniqueConstraint("event_id", "stall_number", name="uq_stalls_event_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    stall_type_id = Column(Integer, ForeignKey("stall_types.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("property_events.id"), nullable=False, index=True)
    stall_number = Column(Integer, nullable=False)
    status = Column(String(20), default=StallStatus.AVAILABLE.value, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    @property
    def is_available(self) -> bool:
        return self.status == StallStatus.AVAILABLE.value

    def __repr__(self):
        return f"<Stall {self.id} #{self.stall_number} event={self.event_id} status={self.status}>"
