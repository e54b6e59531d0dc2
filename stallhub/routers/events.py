"""Event CRUD + capacity ledger endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from stallhub.database import get_db
from stallhub.schemas.event import EventCreate, EventUpdate, EventOut, EventDeleteOut
from stallhub.schemas.stall import CapacityOut, CapacityCheckOut
from stallhub.services import event_service
from stallhub.services.capacity_ledger import allocated_quantity, get_event_or_404, remaining_capacity

router = APIRouter()


@router.post("/events", response_model=EventOut, status_code=201, summary="Create an event")
def create_event(body: EventCreate, db: Session = Depends(get_db)):
    return event_service.create_event(db, body.model_dump())


@router.get("/events", response_model=list[EventOut])
def list_events(db: Session = Depends(get_db)):
    """All events, newest start date first, with booked and allocated stall counts."""
    return event_service.list_events(db)


@router.get("/events/{event_id}", response_model=EventOut)
def get_event(event_id: int, db: Session = Depends(get_db)):
    return event_service.get_event(db, event_id)


@router.put("/events/{event_id}", response_model=EventOut, summary="Edit an event")
def update_event(event_id: int, body: EventUpdate, db: Session = Depends(get_db)):
    """
    Partial update. Lowering stall_count below what stall types already
    allocate is refused with CAPACITY_EXCEEDED and the overflow in `by`.
    """
    return event_service.update_event(db, event_id, body.model_dump(exclude_unset=True))


@router.delete("/events/{event_id}", response_model=EventDeleteOut)
def delete_event(event_id: int, db: Session = Depends(get_db)):
    return event_service.delete_event(db, event_id)


@router.get("/events/{event_id}/capacity", response_model=CapacityOut,
            summary="Remaining stall capacity")
def get_capacity(event_id: int, exclude_stall_type_id: Optional[int] = None,
                 db: Session = Depends(get_db)):
    """
    Live preview for the stall type form. Pass the type being edited as
    exclude_stall_type_id; the server re-checks when the change is submitted.
    """
    event = get_event_or_404(db, event_id)
    return {
        "event_id": event.id,
        "stall_count": event.stall_count,
        "allocated": allocated_quantity(db, event_id, exclude_stall_type_id),
        "remaining_capacity": remaining_capacity(db, event_id, exclude_stall_type_id),
    }


@router.get("/events/{event_id}/capacity/check", response_model=CapacityCheckOut)
def check_capacity(event_id: int, quantity: int, exclude_stall_type_id: Optional[int] = None,
                   db: Session = Depends(get_db)):
    remaining = remaining_capacity(db, event_id, exclude_stall_type_id)
    return {
        "event_id": event_id,
        "quantity": quantity,
        "remaining_capacity": remaining,
        "can_allocate": quantity <= remaining,
    }
