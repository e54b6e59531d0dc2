"""
Stall types: named, priced slices of an event's stall capacity.
Each type owns exactly `quantity` materialized Stall rows.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from stallhub.database import Base


class StallType(Base):
    __tablename__ = "stall_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("property_events.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<StallType {self.id} event={self.event_id} name={self.name} qty={self.quantity}>"
