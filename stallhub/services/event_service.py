"""
Event management: create, list, edit and delete property exhibition events.
Editing stall_count is gated by the capacity already allocated to stall types.
"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from stallhub.models.booking import Booking
from stallhub.models.event import Event
from stallhub.models.stall import Stall, StallStatus
from stallhub.models.stall_type import StallType
from stallhub.services.capacity_ledger import allocated_quantity, get_event_or_404
from stallhub.services.errors import CapacityExceeded, HasActiveBookings, ValidationError
from stallhub.utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = {
    "admin_id", "event_name", "event_type", "event_location", "city", "state",
    "start_date", "end_date", "start_time", "end_time", "description",
    "contact_name", "contact_phone", "stall_count",
}
REQUIRED_FIELDS = ("event_name", "start_date", "end_date", "stall_count")


def _validate(event: Event):
    for field in REQUIRED_FIELDS:
        if getattr(event, field) is None:
            raise ValidationError(f"{field} is required", field=field)
    if not event.event_name.strip():
        raise ValidationError("Event name must not be empty", field="event_name")
    if event.stall_count < 0:
        raise ValidationError("stall_count must be zero or greater", field="stall_count")
    if event.end_date < event.start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")


def _attach_counts(db: Session, events: list[Event]) -> list[Event]:
    ids = [e.id for e in events]
    if not ids:
        return events
    booked = dict(
        db.query(Stall.event_id, func.count(Stall.id))
        .filter(Stall.event_id.in_(ids), Stall.status == StallStatus.BOOKED.value)
        .group_by(Stall.event_id)
        .all()
    )
    allocated = dict(
        db.query(StallType.event_id, func.sum(StallType.quantity))
        .filter(StallType.event_id.in_(ids))
        .group_by(StallType.event_id)
        .all()
    )
    for e in events:
        e.booked_count = booked.get(e.id, 0)
        e.allocated_count = int(allocated.get(e.id) or 0)
    return events


def create_event(db: Session, data: dict) -> Event:
    unknown = set(data) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown event fields: {sorted(unknown)}")
    event = Event(**data)
    if event.stall_count is None:
        event.stall_count = 0
    _validate(event)
    event.event_name = event.event_name.strip()
    event.created_at = datetime.utcnow()

    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"[EVENT] created {event.id} '{event.event_name}' with {event.stall_count} stalls")
    return _attach_counts(db, [event])[0]


def get_event(db: Session, event_id: int) -> Event:
    return _attach_counts(db, [get_event_or_404(db, event_id)])[0]


def list_events(db: Session) -> list[Event]:
    events = db.query(Event).order_by(Event.start_date.desc(), Event.id.desc()).all()
    return _attach_counts(db, events)


def update_event(db: Session, event_id: int, changes: dict) -> Event:
    """Partial update. Lowering stall_count below the allocated quantity is refused."""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown event fields: {sorted(unknown)}")

    try:
        event = get_event_or_404(db, event_id, for_update=True)
        for field, value in changes.items():
            setattr(event, field, value)
        _validate(event)

        if "stall_count" in changes:
            allocated = allocated_quantity(db, event.id)
            if event.stall_count < allocated:
                raise CapacityExceeded(by=allocated - event.stall_count,
                                       requested=allocated, remaining=event.stall_count)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(event)
    logger.info(f"[EVENT] updated {event.id}: fields={sorted(changes)}")
    return _attach_counts(db, [event])[0]


def delete_event(db: Session, event_id: int) -> dict:
    """Remove an event with its stall types and stalls. Refused while any stall is booked."""
    try:
        event = get_event_or_404(db, event_id, for_update=True)
        booked = db.query(func.count(Booking.id)).filter(Booking.event_id == event.id).scalar()
        if booked:
            raise HasActiveBookings(f"Event '{event.event_name}'", booked)

        removed = db.query(Stall).filter(Stall.event_id == event.id).delete(synchronize_session=False)
        db.query(StallType).filter(StallType.event_id == event.id).delete(synchronize_session=False)
        db.delete(event)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"[EVENT] deleted {event_id} ({removed} stall(s) removed)")
    return {"event_id": event_id, "stalls_removed": removed, "status": "deleted"}
