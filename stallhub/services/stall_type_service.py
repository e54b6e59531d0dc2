"""
Stall Type Registry: CRUD over named stall types with capacity enforcement.

Every mutation keeps the type row and its materialized Stall set in step:
  create   → insert type + `quantity` available stalls numbered after the event's highest
  increase → insert (new - old) available stalls
  decrease → delete (old - new) available stalls, highest numbers first; never a booked one
  delete   → refused while stalls are booked unless the caller confirms the cascade
Either the whole change commits or the session is rolled back.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stallhub.models.booking import Booking
from stallhub.models.stall import Stall, StallStatus
from stallhub.models.stall_type import StallType
from stallhub.services.capacity_ledger import allocated_quantity, get_event_or_404
from stallhub.services.errors import (
    CapacityExceeded, HasActiveBookings, InsufficientAvailableStalls, NotFound, ValidationError,
)
from stallhub.utils.logger import get_logger

logger = get_logger(__name__)


# ── Validation ───────────────────────────────────────────────────────────────

def _clean_name(name) -> str:
    if name is None or not str(name).strip():
        raise ValidationError("Stall type name must not be empty", field="name")
    return str(name).strip()


def _clean_price(unit_price) -> Decimal:
    try:
        price = Decimal(str(unit_price))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid unit price: {unit_price!r}", field="unit_price")
    if not price.is_finite() or price < 0:
        raise ValidationError("Unit price must be zero or greater", field="unit_price")
    return price


def _clean_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"Quantity must be a whole number, got {quantity!r}", field="quantity")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")
    return quantity


# ── Stall materialization ────────────────────────────────────────────────────

def _materialize_stalls(db: Session, stall_type: StallType, count: int):
    """Add `count` available stalls, numbered sequentially after the event's highest number."""
    highest = db.query(func.coalesce(func.max(Stall.stall_number), 0)).filter(
        Stall.event_id == stall_type.event_id
    ).scalar()
    now = datetime.utcnow()
    db.add_all([
        Stall(stall_type_id=stall_type.id, event_id=stall_type.event_id,
              stall_number=highest + i, status=StallStatus.AVAILABLE.value, created_at=now)
        for i in range(1, count + 1)
    ])
    db.flush()


def _remove_available_stalls(db: Session, stall_type: StallType, count: int):
    """Delete `count` available stalls of the type, highest stall numbers first."""
    candidates = (
        db.query(Stall.id)
        .filter(Stall.stall_type_id == stall_type.id,
                Stall.status == StallStatus.AVAILABLE.value)
        .order_by(Stall.stall_number.desc())
        .limit(count)
        .all()
    )
    if len(candidates) < count:
        raise InsufficientAvailableStalls(required=count, available=len(candidates))

    ids = [row.id for row in candidates]
    deleted = (
        db.query(Stall)
        .filter(Stall.id.in_(ids), Stall.status == StallStatus.AVAILABLE.value)
        .delete(synchronize_session=False)
    )
    if deleted < count:
        # a stall was booked between the select and the delete
        raise InsufficientAvailableStalls(required=count, available=deleted)


def _check_capacity(db: Session, event, quantity: int, excluding_stall_type_id: Optional[int] = None):
    remaining = event.stall_count - allocated_quantity(db, event.id, excluding_stall_type_id)
    if quantity > remaining:
        raise CapacityExceeded(by=quantity - remaining, requested=quantity, remaining=max(remaining, 0))


# ── Queries ──────────────────────────────────────────────────────────────────

def _lock_stall_type(db: Session, stall_type_id: int):
    """
    Lock the owning event row, then reload the type from the database so its
    quantity reflects any edit committed before the lock was taken.
    """
    event_id = db.query(StallType.event_id).filter(StallType.id == stall_type_id).scalar()
    if event_id is None:
        raise NotFound("Stall type", stall_type_id)
    event = get_event_or_404(db, event_id, for_update=True)
    stall_type = (
        db.query(StallType)
        .filter(StallType.id == stall_type_id)
        .populate_existing()
        .with_for_update()
        .first()
    )
    if not stall_type:
        raise NotFound("Stall type", stall_type_id)
    return stall_type, event


def count_booked_stalls(db: Session, stall_type_id: int) -> int:
    return db.query(func.count(Stall.id)).filter(
        Stall.stall_type_id == stall_type_id, Stall.status == StallStatus.BOOKED.value
    ).scalar()


def list_stall_types(db: Session, event_id: int) -> dict:
    """All stall types of an event with booked/available counts and remaining capacity."""
    event = get_event_or_404(db, event_id)
    booked_by_type = dict(
        db.query(Stall.stall_type_id, func.count(Stall.id))
        .filter(Stall.event_id == event_id, Stall.status == StallStatus.BOOKED.value)
        .group_by(Stall.stall_type_id)
        .all()
    )
    types = (
        db.query(StallType)
        .filter(StallType.event_id == event_id)
        .order_by(StallType.unit_price, StallType.name)
        .all()
    )
    rows = []
    for t in types:
        booked = booked_by_type.get(t.id, 0)
        rows.append({
            "stall_type_id": t.id,
            "name": t.name,
            "unit_price": t.unit_price,
            "total_stalls": t.quantity,
            "booked_count": booked,
            "available_count": t.quantity - booked,
        })
    return {
        "event_id": event.id,
        "event_name": event.event_name,
        "stall_count": event.stall_count,
        "remaining_capacity": event.stall_count - sum(t.quantity for t in types),
        "stall_types": rows,
    }


# ── Mutations ────────────────────────────────────────────────────────────────

def create_stall_type(db: Session, event_id: int, name, unit_price, quantity) -> StallType:
    name = _clean_name(name)
    price = _clean_price(unit_price)
    quantity = _clean_quantity(quantity)

    try:
        event = get_event_or_404(db, event_id, for_update=True)
        _check_capacity(db, event, quantity)

        now = datetime.utcnow()
        stall_type = StallType(event_id=event.id, name=name, unit_price=price,
                               quantity=quantity, created_at=now, updated_at=now)
        db.add(stall_type)
        db.flush()
        _materialize_stalls(db, stall_type, quantity)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(stall_type)
    logger.info(f"[STALL-TYPE] created {stall_type.id} '{name}' x{quantity} @ {price} for event {event_id}")
    return stall_type


def update_stall_type(db: Session, stall_type_id: int, name=None, unit_price=None,
                      quantity=None) -> StallType:
    """Partial update. A quantity change grows or shrinks the stall set; rejected in full on failure."""
    if name is not None:
        name = _clean_name(name)
    if unit_price is not None:
        unit_price = _clean_price(unit_price)
    if quantity is not None:
        quantity = _clean_quantity(quantity)

    try:
        stall_type, event = _lock_stall_type(db, stall_type_id)
        old_quantity = stall_type.quantity

        if quantity is not None and quantity != old_quantity:
            _check_capacity(db, event, quantity, excluding_stall_type_id=stall_type.id)
            if quantity > old_quantity:
                _materialize_stalls(db, stall_type, quantity - old_quantity)
            else:
                _remove_available_stalls(db, stall_type, old_quantity - quantity)
            stall_type.quantity = quantity

        if name is not None:
            stall_type.name = name
        if unit_price is not None:
            stall_type.unit_price = unit_price
        stall_type.updated_at = datetime.utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(stall_type)
    logger.info(f"[STALL-TYPE] updated {stall_type.id}: qty {old_quantity} → {stall_type.quantity}")
    return stall_type


def delete_stall_type(db: Session, stall_type_id: int, confirm_cascade: bool = False) -> dict:
    """
    Remove a stall type and all its stalls. Booked stalls block the delete
    (HasActiveBookings) unless confirm_cascade is set, which cancels those bookings too.

    Without confirmation only available stalls are deleted, so a booking that
    commits after the booked count is still caught by the stall delete itself.
    """
    try:
        stall_type, event = _lock_stall_type(db, stall_type_id)
        booked = count_booked_stalls(db, stall_type.id)
        if booked and not confirm_cascade:
            raise HasActiveBookings(f"Stall type '{stall_type.name}'", booked)

        total = db.query(func.count(Stall.id)).filter(Stall.stall_type_id == stall_type.id).scalar()
        cancelled = 0
        if confirm_cascade:
            stall_ids = select(Stall.id).where(Stall.stall_type_id == stall_type.id)
            cancelled = (
                db.query(Booking)
                .filter(Booking.stall_id.in_(stall_ids))
                .delete(synchronize_session=False)
            )
            removed = (
                db.query(Stall)
                .filter(Stall.stall_type_id == stall_type.id)
                .delete(synchronize_session=False)
            )
        else:
            removed = (
                db.query(Stall)
                .filter(Stall.stall_type_id == stall_type.id,
                        Stall.status == StallStatus.AVAILABLE.value)
                .delete(synchronize_session=False)
            )
            if removed < total:
                raise HasActiveBookings(f"Stall type '{stall_type.name}'", total - removed)

        db.delete(stall_type)
        db.flush()
        remaining = event.stall_count - allocated_quantity(db, event.id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if cancelled:
        logger.warning(f"[STALL-TYPE] {stall_type_id} deleted with {cancelled} booking(s) cancelled")
    logger.info(f"[STALL-TYPE] deleted {stall_type_id}: {removed} stall(s) removed")
    return {
        "stall_type_id": stall_type_id,
        "event_id": event.id,
        "stalls_removed": removed,
        "bookings_cancelled": cancelled,
        "remaining_capacity": remaining,
    }
