"""
Check-in references for QR codes.
The frontend renders `url` as a QR image; the scan page calls /checkin/resolve
and marks attendance on its own participant records.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from stallhub.database import get_db
from stallhub.schemas.checkin import CheckInReferenceOut, ResolvedReferenceOut, StallCheckInDetailsOut
from stallhub.services import checkin_service

router = APIRouter()


@router.get("/events/{event_id}/checkin", response_model=CheckInReferenceOut,
            summary="Event-level attendance reference")
def event_checkin(event_id: int, db: Session = Depends(get_db)):
    return checkin_service.event_checkin(db, event_id)


@router.get("/events/{event_id}/stalls/{stall_id}/checkin", response_model=CheckInReferenceOut,
            summary="Stall-level check-in reference")
def stall_checkin(event_id: int, stall_id: int, db: Session = Depends(get_db)):
    return checkin_service.stall_checkin(db, event_id, stall_id)


@router.get("/checkin/resolve", response_model=ResolvedReferenceOut)
def resolve_reference(ref: str, db: Session = Depends(get_db)):
    """Accepts a bare reference or the full check-in URL."""
    return checkin_service.resolve_reference(db, ref)


@router.get("/stalls/{stall_id}/checkin-details", response_model=StallCheckInDetailsOut)
def stall_checkin_details(stall_id: int, db: Session = Depends(get_db)):
    return checkin_service.get_stall_checkin_details(db, stall_id)
