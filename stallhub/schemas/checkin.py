from pydantic import BaseModel
from typing import Optional


class CheckInReferenceOut(BaseModel):
    event_id: int
    stall_id: Optional[int] = None
    reference: str
    url: str


class ResolvedReferenceOut(BaseModel):
    kind: str                     # "stall" | "event"
    event_id: int
    stall_id: Optional[int] = None
    booking_id: Optional[int] = None


class StallCheckInDetailsOut(BaseModel):
    stall_id: int
    event_id: int
    stall_number: int
    stall_type_name: str
    status: str
    builder_id: Optional[int] = None
    booking_id: Optional[int] = None
