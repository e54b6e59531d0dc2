"""
Stall Assignment & Booking.

A booking flips its stall from available to booked with a compare-and-swap UPDATE and
inserts the Booking row in the same transaction; bookings.stall_id is UNIQUE, so a
second writer loses either at the CAS or at the insert and gets AlreadyBooked.
Losers fail fast; nothing here waits on a lock.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stallhub.config import settings
from stallhub.models.booking import Booking
from stallhub.models.stall import Stall, StallStatus
from stallhub.models.stall_type import StallType
from stallhub.services.capacity_ledger import get_event_or_404
from stallhub.services.errors import AlreadyBooked, NotFound, ValidationError
from stallhub.utils.logger import get_logger

logger = get_logger(__name__)


def _get_event_stall_type(db: Session, event_id: int, stall_type_id: int) -> StallType:
    stall_type = db.query(StallType).filter(
        StallType.id == stall_type_id, StallType.event_id == event_id
    ).first()
    if not stall_type:
        raise NotFound("Stall type", stall_type_id)
    return stall_type


def list_available_stalls(db: Session, event_id: int, stall_type_id: Optional[int] = None):
    """Available stalls of an event (optionally one type), by stall number."""
    get_event_or_404(db, event_id)
    q = db.query(Stall).filter(Stall.event_id == event_id,
                               Stall.status == StallStatus.AVAILABLE.value)
    if stall_type_id is not None:
        _get_event_stall_type(db, event_id, stall_type_id)
        q = q.filter(Stall.stall_type_id == stall_type_id)
    return q.order_by(Stall.stall_number).all()


def list_event_stalls(db: Session, event_id: int) -> list[dict]:
    """Every stall of an event with its type and an availability flag."""
    get_event_or_404(db, event_id)
    rows = (
        db.query(Stall, StallType)
        .join(StallType, Stall.stall_type_id == StallType.id)
        .filter(Stall.event_id == event_id)
        .order_by(Stall.stall_number)
        .all()
    )
    return [
        {
            "stall_id": stall.id,
            "stall_number": stall.stall_number,
            "stall_type_id": stall_type.id,
            "stall_type_name": stall_type.name,
            "unit_price": stall_type.unit_price,
            "is_available": stall.is_available,
        }
        for stall, stall_type in rows
    ]


def book_stall(db: Session, stall_id: int, builder_id: int) -> Booking:
    if builder_id is None or builder_id < 1:
        raise ValidationError("A valid builder id is required", field="builder_id")

    stall = db.query(Stall).filter(Stall.id == stall_id).first()
    if not stall:
        raise NotFound("Stall", stall_id)
    if not stall.is_available:
        raise AlreadyBooked(stall_id)
    event_id = stall.event_id

    try:
        swapped = (
            db.query(Stall)
            .filter(Stall.id == stall_id, Stall.status == StallStatus.AVAILABLE.value)
            .update({Stall.status: StallStatus.BOOKED.value}, synchronize_session=False)
        )
        if swapped != 1:
            raise AlreadyBooked(stall_id)
        booking = Booking(stall_id=stall_id, builder_id=builder_id, event_id=event_id,
                          created_at=datetime.utcnow())
        db.add(booking)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"[BOOKING] stall {stall_id} lost race at insert (builder {builder_id})")
        raise AlreadyBooked(stall_id) from e
    except AlreadyBooked:
        db.rollback()
        logger.warning(f"[BOOKING] stall {stall_id} lost race at status swap (builder {builder_id})")
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"[BOOKING] {booking.id}: builder {builder_id} booked stall {stall_id} (event {event_id})")
    return booking


def book_next_available(db: Session, event_id: int, stall_type_id: int, builder_id: int) -> Booking:
    """
    Book the lowest-numbered available stall of a type. A lost race silently
    moves on to the next available stall, up to BOOKING_RETRY_ATTEMPTS retries.
    """
    get_event_or_404(db, event_id)
    _get_event_stall_type(db, event_id, stall_type_id)

    lost = set()
    for _ in range(settings.BOOKING_RETRY_ATTEMPTS + 1):
        q = db.query(Stall).filter(Stall.stall_type_id == stall_type_id,
                                   Stall.status == StallStatus.AVAILABLE.value)
        if lost:
            q = q.filter(Stall.id.notin_(list(lost)))
        stall = q.order_by(Stall.stall_number).first()
        if not stall:
            raise AlreadyBooked(None, "No available stalls for this type")
        try:
            return book_stall(db, stall.id, builder_id)
        except AlreadyBooked:
            lost.add(stall.id)
            logger.info(f"[BOOKING] re-offering next stall of type {stall_type_id} to builder {builder_id}")

    raise AlreadyBooked(None, f"Could not book a stall after {len(lost)} attempts; please retry")


def cancel_booking(db: Session, booking_id: int) -> dict:
    """Delete the booking and revert its stall to available."""
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound("Booking", booking_id)
    stall_id = booking.stall_id

    try:
        deleted = db.query(Booking).filter(Booking.id == booking_id).delete(synchronize_session=False)
        if deleted != 1:
            raise NotFound("Booking", booking_id)
        db.query(Stall).filter(Stall.id == stall_id).update(
            {Stall.status: StallStatus.AVAILABLE.value}, synchronize_session=False
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.expire_all()
    logger.info(f"[BOOKING] {booking_id} cancelled, stall {stall_id} available again")
    return {"booking_id": booking_id, "stall_id": stall_id, "status": "cancelled"}


def list_event_bookings(db: Session, event_id: int) -> list[dict]:
    """Admin view: every booking of an event with stall number and type name."""
    get_event_or_404(db, event_id)
    rows = (
        db.query(Booking, Stall, StallType)
        .join(Stall, Booking.stall_id == Stall.id)
        .join(StallType, Stall.stall_type_id == StallType.id)
        .filter(Booking.event_id == event_id)
        .order_by(Stall.stall_number)
        .all()
    )
    return [
        {
            "booking_id": booking.id,
            "stall_id": stall.id,
            "stall_number": stall.stall_number,
            "stall_type_name": stall_type.name,
            "builder_id": booking.builder_id,
            "created_at": booking.created_at,
        }
        for booking, stall, stall_type in rows
    ]


def count_builder_bookings(db: Session, builder_id: int) -> dict:
    booked, events = db.query(
        func.count(Booking.id), func.count(func.distinct(Booking.event_id))
    ).filter(Booking.builder_id == builder_id).one()
    return {"builder_id": builder_id, "booked_stalls": booked or 0, "events": events or 0}
