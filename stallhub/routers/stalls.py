"""Stall listing and builder booking endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from stallhub.database import get_db
from stallhub.schemas.stall import StallOut, EventStallOut
from stallhub.schemas.booking import (
    BookingCreate, BookingOut, BookingCancelOut, EventBookingOut, BuilderBookingSummaryOut,
)
from stallhub.services import booking_service

router = APIRouter()


@router.get("/events/{event_id}/stalls", response_model=list[EventStallOut])
def list_event_stalls(event_id: int, db: Session = Depends(get_db)):
    return booking_service.list_event_stalls(db, event_id)


@router.get("/events/{event_id}/stalls/available", response_model=list[StallOut])
def list_available_stalls(event_id: int, stall_type_id: Optional[int] = None,
                          db: Session = Depends(get_db)):
    """Available stalls by stall number, optionally for one stall type."""
    return booking_service.list_available_stalls(db, event_id, stall_type_id)


@router.post("/stalls/{stall_id}/book", response_model=BookingOut, status_code=201,
             summary="Book a specific stall")
def book_stall(stall_id: int, body: BookingCreate, db: Session = Depends(get_db)):
    """On ALREADY_BOOKED re-list available stalls and pick another one."""
    return booking_service.book_stall(db, stall_id, body.builder_id)


@router.post("/events/{event_id}/stall-types/{stall_type_id}/book", response_model=BookingOut,
             status_code=201, summary="Book the next available stall of a type")
def book_next_available(event_id: int, stall_type_id: int, body: BookingCreate,
                        db: Session = Depends(get_db)):
    return booking_service.book_next_available(db, event_id, stall_type_id, body.builder_id)


@router.delete("/bookings/{booking_id}", response_model=BookingCancelOut)
def cancel_booking(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.cancel_booking(db, booking_id)


@router.get("/events/{event_id}/bookings", response_model=list[EventBookingOut])
def list_event_bookings(event_id: int, db: Session = Depends(get_db)):
    return booking_service.list_event_bookings(db, event_id)


@router.get("/builders/{builder_id}/bookings/summary", response_model=BuilderBookingSummaryOut)
def builder_booking_summary(builder_id: int, db: Session = Depends(get_db)):
    return booking_service.count_builder_bookings(db, builder_id)
