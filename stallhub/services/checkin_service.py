"""
Check-in identity issuance.

A reference is `<payload>.<signature>`:
  payload   = base64url(ids XOR keystream), unpadded, where ids is "<event_id>" or
              "<event_id>:<stall_id>" and the keystream is HMAC-SHA256(CHECKIN_SECRET, "checkin-mask:<n>")
  signature = first CHECKIN_SIGNATURE_LENGTH hex chars of HMAC-SHA256(CHECKIN_SECRET, "<kind>:<ids>")
Issuing is a pure function of the ids, so re-rendering a QR code never invalidates a
printed one. Resolving verifies the signature and that the event/stall still exist.
"""

import base64
import binascii
import hashlib
import hmac
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse

from sqlalchemy.orm import Session

from stallhub.config import settings
from stallhub.models.booking import Booking
from stallhub.models.event import Event
from stallhub.models.stall import Stall
from stallhub.models.stall_type import StallType
from stallhub.services.capacity_ledger import get_event_or_404
from stallhub.services.errors import InvalidReference, NotFound
from stallhub.utils.logger import get_logger

logger = get_logger(__name__)

STALL_KIND = "stall"
EVENT_KIND = "event"


def _sign(kind: str, ids: str, secret: Optional[str] = None) -> str:
    key = (secret or settings.CHECKIN_SECRET).encode("utf-8")
    digest = hmac.new(key, f"{kind}:{ids}".encode("utf-8"), hashlib.sha256).hexdigest()
    return digest[:settings.CHECKIN_SIGNATURE_LENGTH]


def _mask(data: bytes, secret: Optional[str] = None) -> bytes:
    """XOR `data` with a keystream derived from the secret. Applying it twice restores the input."""
    key = (secret or settings.CHECKIN_SECRET).encode("utf-8")
    stream = b""
    block = 0
    while len(stream) < len(data):
        stream += hmac.new(key, f"checkin-mask:{block}".encode("utf-8"), hashlib.sha256).digest()
        block += 1
    return bytes(a ^ b for a, b in zip(data, stream))


def _encode(ids: str, secret: Optional[str] = None) -> str:
    masked = _mask(ids.encode("ascii"), secret)
    return base64.urlsafe_b64encode(masked).decode("ascii").rstrip("=")


def _decode(payload: str, secret: Optional[str] = None) -> str:
    padded = payload + "=" * (-len(payload) % 4)
    masked = base64.urlsafe_b64decode(padded.encode("ascii"))
    return _mask(masked, secret).decode("ascii")


def issue_stall_checkin_reference(event_id: int, stall_id: int, secret: Optional[str] = None) -> str:
    ids = f"{int(event_id)}:{int(stall_id)}"
    return f"{_encode(ids, secret)}.{_sign(STALL_KIND, ids, secret)}"


def issue_event_checkin_reference(event_id: int, secret: Optional[str] = None) -> str:
    ids = f"{int(event_id)}"
    return f"{_encode(ids, secret)}.{_sign(EVENT_KIND, ids, secret)}"


def build_stall_checkin_url(event_id: int, stall_id: int) -> str:
    ref = issue_stall_checkin_reference(event_id, stall_id)
    base = settings.FRONTEND_BASE_URL.rstrip("/")
    return f"{base}/buyer-dashboard/stall-checkin/{event_id}/{stall_id}?{urlencode({'ref': ref})}"


def build_event_checkin_url(event_id: int) -> str:
    ref = issue_event_checkin_reference(event_id)
    base = settings.FRONTEND_BASE_URL.rstrip("/")
    return f"{base}/buyer-dashboard/event-checkin/{event_id}?{urlencode({'ref': ref})}"


def parse_reference(reference: str, secret: Optional[str] = None) -> tuple[int, Optional[int]]:
    """
    Verify a reference (or a check-in URL carrying ?ref=) and return (event_id, stall_id).
    Does not touch the database. Raises InvalidReference.
    """
    if not reference or not reference.strip():
        raise InvalidReference("Empty check-in reference")
    reference = reference.strip()

    if "://" in reference or reference.startswith("/"):
        refs = parse_qs(urlparse(reference).query).get("ref")
        if not refs:
            raise InvalidReference("Check-in URL carries no reference")
        reference = refs[0]

    payload, sep, signature = reference.rpartition(".")
    if not sep or not payload or not signature:
        raise InvalidReference("Malformed check-in reference")
    try:
        ids = _decode(payload, secret)
    except (binascii.Error, ValueError, UnicodeError):
        raise InvalidReference("Malformed check-in reference")

    parts = ids.split(":")
    if len(parts) not in (1, 2) or not all(p.isdigit() for p in parts):
        raise InvalidReference("Malformed check-in reference")

    kind = STALL_KIND if len(parts) == 2 else EVENT_KIND
    if not hmac.compare_digest(signature, _sign(kind, ids, secret)):
        raise InvalidReference("Check-in reference signature mismatch")

    event_id = int(parts[0])
    stall_id = int(parts[1]) if kind == STALL_KIND else None
    return event_id, stall_id


def resolve_reference(db: Session, reference: str) -> dict:
    """Resolve a reference back to its event (and stall). Raises InvalidReference."""
    event_id, stall_id = parse_reference(reference)

    if not db.query(Event.id).filter(Event.id == event_id).first():
        logger.warning(f"[CHECKIN] reference for deleted event {event_id}")
        raise InvalidReference("Event no longer exists")

    result = {"kind": EVENT_KIND, "event_id": event_id, "stall_id": None, "booking_id": None}
    if stall_id is None:
        return result

    stall = db.query(Stall).filter(Stall.id == stall_id, Stall.event_id == event_id).first()
    if not stall:
        logger.warning(f"[CHECKIN] reference for missing stall {stall_id} (event {event_id})")
        raise InvalidReference("Stall no longer exists for this event")

    booking = db.query(Booking.id).filter(Booking.stall_id == stall.id).first()
    result.update(kind=STALL_KIND, stall_id=stall.id, booking_id=booking.id if booking else None)
    return result


def stall_checkin(db: Session, event_id: int, stall_id: int) -> dict:
    """Reference and URL for a stall that must exist in the event."""
    get_event_or_404(db, event_id)
    if not db.query(Stall.id).filter(Stall.id == stall_id, Stall.event_id == event_id).first():
        raise NotFound("Stall", stall_id)
    return {
        "event_id": event_id,
        "stall_id": stall_id,
        "reference": issue_stall_checkin_reference(event_id, stall_id),
        "url": build_stall_checkin_url(event_id, stall_id),
    }


def event_checkin(db: Session, event_id: int) -> dict:
    get_event_or_404(db, event_id)
    return {
        "event_id": event_id,
        "stall_id": None,
        "reference": issue_event_checkin_reference(event_id),
        "url": build_event_checkin_url(event_id),
    }


def get_stall_checkin_details(db: Session, stall_id: int) -> dict:
    """What the scan page shows before attendance is marked."""
    row = (
        db.query(Stall, StallType, Booking)
        .join(StallType, Stall.stall_type_id == StallType.id)
        .outerjoin(Booking, Booking.stall_id == Stall.id)
        .filter(Stall.id == stall_id)
        .first()
    )
    if not row:
        raise NotFound("Stall", stall_id)
    stall, stall_type, booking = row
    return {
        "stall_id": stall.id,
        "event_id": stall.event_id,
        "stall_number": stall.stall_number,
        "stall_type_name": stall_type.name,
        "status": stall.status,
        "builder_id": booking.builder_id if booking else None,
        "booking_id": booking.id if booking else None,
    }
