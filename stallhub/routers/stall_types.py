"""Stall type management for the admin screens."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from stallhub.database import get_db
from stallhub.schemas.stall_type import (
    StallTypeCreate, StallTypeUpdate, StallTypeMutationOut, EventStallTypesOut, StallTypeDeleteOut,
)
from stallhub.services import stall_type_service
from stallhub.services.capacity_ledger import remaining_capacity

router = APIRouter()


@router.get("/events/{event_id}/stall-types", response_model=EventStallTypesOut,
            summary="Stall types with availability")
def list_stall_types(event_id: int, db: Session = Depends(get_db)):
    return stall_type_service.list_stall_types(db, event_id)


@router.post("/events/{event_id}/stall-types", response_model=StallTypeMutationOut, status_code=201)
def create_stall_type(event_id: int, body: StallTypeCreate, db: Session = Depends(get_db)):
    """Create a type and materialize its stalls. Fails with CAPACITY_EXCEEDED (see `by`)."""
    stall_type = stall_type_service.create_stall_type(
        db, event_id, body.name, body.unit_price, body.quantity
    )
    return {"stall_type": stall_type, "remaining_capacity": remaining_capacity(db, event_id)}


@router.put("/stall-types/{stall_type_id}", response_model=StallTypeMutationOut)
def update_stall_type(stall_type_id: int, body: StallTypeUpdate, db: Session = Depends(get_db)):
    stall_type = stall_type_service.update_stall_type(
        db, stall_type_id, name=body.name, unit_price=body.unit_price, quantity=body.quantity
    )
    return {
        "stall_type": stall_type,
        "remaining_capacity": remaining_capacity(db, stall_type.event_id),
    }


@router.delete("/stall-types/{stall_type_id}", response_model=StallTypeDeleteOut)
def delete_stall_type(stall_type_id: int, confirm_cascade: bool = False,
                      db: Session = Depends(get_db)):
    """Refused with HAS_ACTIVE_BOOKINGS while stalls are booked unless confirm_cascade=true."""
    return stall_type_service.delete_stall_type(db, stall_type_id, confirm_cascade=confirm_cascade)
