"""
Builder bookings. stall_id is unique: a stall has at most one booking.
Cancelling a booking deletes the row and reverts the stall to available.
"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey
from stallhub.database import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    stall_id = Column(Integer, ForeignKey("stalls.id"), unique=True, nullable=False)
    builder_id = Column(Integer, nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("property_events.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Booking {self.id} stall={self.stall_id} builder={self.builder_id}>"
