"""
Property exhibition events.
stall_count is the hard ceiling for the quantities of all stall types combined.
"""

from sqlalchemy import Column, Integer, String, Date, Time, DateTime, Text
from stallhub.database import Base


class Event(Base):
    __tablename__ = "property_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(Integer)                  # issuing admin (auth is external)
    event_name = Column(String(200), nullable=False)
    event_type = Column(String(100))
    event_location = Column(String(255))
    city = Column(String(100))
    state = Column(String(100))
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    start_time = Column(Time)
    end_time = Column(Time)
    description = Column(Text)
    contact_name = Column(String(200))
    contact_phone = Column(String(50))
    stall_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Event {self.id} name={self.event_name} stalls={self.stall_count}>"
