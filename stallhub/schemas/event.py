from pydantic import BaseModel, Field
from datetime import date, time, datetime
from typing import Optional


class EventCreate(BaseModel):
    event_name: str = Field(min_length=1, max_length=200)
    event_type: Optional[str] = None
    event_location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    stall_count: int = Field(0, ge=0)
    admin_id: Optional[int] = None


class EventUpdate(BaseModel):
    event_name: Optional[str] = Field(None, min_length=1, max_length=200)
    event_type: Optional[str] = None
    event_location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    stall_count: Optional[int] = Field(None, ge=0)


class EventOut(BaseModel):
    id: int
    admin_id: Optional[int]
    event_name: str
    event_type: Optional[str]
    event_location: Optional[str]
    city: Optional[str]
    state: Optional[str]
    start_date: date
    end_date: date
    start_time: Optional[time]
    end_time: Optional[time]
    description: Optional[str]
    contact_name: Optional[str]
    contact_phone: Optional[str]
    stall_count: int
    booked_count: int = 0
    allocated_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class EventDeleteOut(BaseModel):
    event_id: int
    stalls_removed: int
    status: str
