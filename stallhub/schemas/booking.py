from pydantic import BaseModel, Field
from datetime import datetime


class BookingCreate(BaseModel):
    builder_id: int = Field(ge=1)


class BookingOut(BaseModel):
    id: int
    stall_id: int
    builder_id: int
    event_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class BookingCancelOut(BaseModel):
    booking_id: int
    stall_id: int
    status: str


class EventBookingOut(BaseModel):
    booking_id: int
    stall_id: int
    stall_number: int
    stall_type_name: str
    builder_id: int
    created_at: datetime


class BuilderBookingSummaryOut(BaseModel):
    builder_id: int
    booked_stalls: int
    events: int
