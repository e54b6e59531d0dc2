from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional


# Values are range-checked by the registry so capacity and validation
# errors reach the admin screen in one shape.
class StallTypeCreate(BaseModel):
    name: str
    unit_price: Decimal
    quantity: int


class StallTypeUpdate(BaseModel):
    name: Optional[str] = None
    unit_price: Optional[Decimal] = None
    quantity: Optional[int] = None


class StallTypeOut(BaseModel):
    id: int
    event_id: int
    name: str
    unit_price: Decimal
    quantity: int
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class StallTypeMutationOut(BaseModel):
    stall_type: StallTypeOut
    remaining_capacity: int


class StallTypeAvailabilityOut(BaseModel):
    stall_type_id: int
    name: str
    unit_price: Decimal
    total_stalls: int
    booked_count: int
    available_count: int


class EventStallTypesOut(BaseModel):
    event_id: int
    event_name: str
    stall_count: int
    remaining_capacity: int
    stall_types: list[StallTypeAvailabilityOut]


class StallTypeDeleteOut(BaseModel):
    stall_type_id: int
    event_id: int
    stalls_removed: int
    bookings_cancelled: int
    remaining_capacity: int
