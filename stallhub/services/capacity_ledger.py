"""
Capacity Ledger: how much of an event's stall_count is still unallocated.
Pure reads; the registry re-checks inside its own transaction before committing.
"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stallhub.models.event import Event
from stallhub.models.stall_type import StallType
from stallhub.services.errors import NotFound


def get_event_or_404(db: Session, event_id: int, for_update: bool = False) -> Event:
    """Load an event, optionally locking its row (no-op on SQLite). Raises NotFound."""
    q = db.query(Event).filter(Event.id == event_id)
    if for_update:
        q = q.with_for_update()
    event = q.first()
    if not event:
        raise NotFound("Event", event_id)
    return event


def allocated_quantity(db: Session, event_id: int,
                       excluding_stall_type_id: Optional[int] = None) -> int:
    """Sum of stall type quantities for an event, optionally skipping one type."""
    q = db.query(func.coalesce(func.sum(StallType.quantity), 0)).filter(
        StallType.event_id == event_id
    )
    if excluding_stall_type_id is not None:
        q = q.filter(StallType.id != excluding_stall_type_id)
    return int(q.scalar() or 0)


def remaining_capacity(db: Session, event_id: int,
                       excluding_stall_type_id: Optional[int] = None) -> int:
    """
    event.stall_count minus the quantities already allocated to stall types.
    Pass the type being edited as excluding_stall_type_id so its current
    quantity does not count against its own candidate quantity.
    """
    event = get_event_or_404(db, event_id)
    return event.stall_count - allocated_quantity(db, event_id, excluding_stall_type_id)


def can_allocate(db: Session, event_id: int, candidate_quantity: int,
                 excluding_stall_type_id: Optional[int] = None) -> bool:
    return candidate_quantity <= remaining_capacity(db, event_id, excluding_stall_type_id)
