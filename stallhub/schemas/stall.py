from pydantic import BaseModel
from decimal import Decimal


class StallOut(BaseModel):
    id: int
    stall_type_id: int
    event_id: int
    stall_number: int
    status: str

    class Config:
        from_attributes = True


class EventStallOut(BaseModel):
    stall_id: int
    stall_number: int
    stall_type_id: int
    stall_type_name: str
    unit_price: Decimal
    is_available: bool


class CapacityOut(BaseModel):
    event_id: int
    stall_count: int
    allocated: int
    remaining_capacity: int


class CapacityCheckOut(BaseModel):
    event_id: int
    quantity: int
    remaining_capacity: int
    can_allocate: bool
