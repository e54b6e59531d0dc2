"""Unit tests for check-in reference issuance and resolution."""

import base64
import pytest
from stallhub.services import checkin_service
from stallhub.services.booking_service import book_next_available, list_available_stalls
from stallhub.services.checkin_service import (
    build_event_checkin_url, build_stall_checkin_url, get_stall_checkin_details,
    issue_event_checkin_reference, issue_stall_checkin_reference, parse_reference,
    resolve_reference, stall_checkin,
)
from stallhub.services.errors import InvalidReference, NotFound
from stallhub.services.stall_type_service import delete_stall_type


@pytest.fixture
def booked_stall(db, make_event, make_stall_type):
    event = make_event(stall_count=5)
    stall_type = make_stall_type(event.id, "Premium", 5000, 2)
    booking = book_next_available(db, event.id, stall_type.id, 21)
    return event, stall_type, booking


class TestIssuance:
    def test_stall_reference_is_deterministic(self):
        assert issue_stall_checkin_reference(3, 42) == issue_stall_checkin_reference(3, 42)

    def test_references_are_distinct_per_pair(self):
        refs = {
            issue_stall_checkin_reference(3, 42),
            issue_stall_checkin_reference(42, 3),
            issue_stall_checkin_reference(3, 4),
            issue_event_checkin_reference(3),
            issue_event_checkin_reference(342),
        }
        assert len(refs) == 5

    def test_reference_is_url_safe(self):
        ref = issue_stall_checkin_reference(123456, 987654)
        assert all(c.isalnum() or c in "-_." for c in ref)

    def test_payload_hides_ids(self):
        payload = issue_stall_checkin_reference(3, 42).split(".")[0]
        raw = base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4))
        assert b"3:42" not in raw
        assert payload != issue_stall_checkin_reference(3, 42, secret="another-deployment").split(".")[0]

    def test_parse_round_trip(self):
        assert parse_reference(issue_stall_checkin_reference(3, 42)) == (3, 42)
        assert parse_reference(issue_event_checkin_reference(3)) == (3, None)

    def test_urls(self, monkeypatch):
        monkeypatch.setattr(checkin_service.settings, "FRONTEND_BASE_URL", "https://nest.example/")
        stall_url = build_stall_checkin_url(3, 42)
        assert stall_url.startswith("https://nest.example/buyer-dashboard/stall-checkin/3/42?ref=")
        assert stall_url.endswith(issue_stall_checkin_reference(3, 42))
        assert build_event_checkin_url(3).startswith("https://nest.example/buyer-dashboard/event-checkin/3?ref=")


class TestParseRejects:
    @pytest.mark.parametrize("reference", [
        "", "   ", "no-dot-here", ".abc", "abc.", "!!!.deadbeef", "Mzpmb28.deadbeef",
    ])
    def test_malformed(self, reference):
        with pytest.raises(InvalidReference):
            parse_reference(reference)

    def test_tampered_ids(self):
        genuine = issue_stall_checkin_reference(3, 42)
        forged_payload = issue_stall_checkin_reference(3, 43).split(".")[0]
        with pytest.raises(InvalidReference):
            parse_reference(f"{forged_payload}.{genuine.split('.')[1]}")

    def test_event_signature_does_not_validate_stall(self):
        stall_payload = issue_stall_checkin_reference(3, 42).split(".")[0]
        event_sig = issue_event_checkin_reference(3).split(".")[1]
        with pytest.raises(InvalidReference):
            parse_reference(f"{stall_payload}.{event_sig}")

    def test_other_secret_rejected(self):
        ref = issue_stall_checkin_reference(3, 42, secret="another-deployment")
        with pytest.raises(InvalidReference):
            parse_reference(ref)

    def test_url_without_ref(self):
        with pytest.raises(InvalidReference):
            parse_reference("https://nest.example/buyer-dashboard/stall-checkin/3/42")


class TestResolve:
    def test_round_trip_for_booked_stall(self, db, booked_stall):
        event, stall_type, booking = booked_stall
        ref = issue_stall_checkin_reference(event.id, booking.stall_id)
        resolved = resolve_reference(db, ref)
        assert resolved["event_id"] == event.id
        assert resolved["stall_id"] == booking.stall_id
        assert resolved["booking_id"] == booking.id
        assert resolved["kind"] == "stall"

    def test_resolves_full_url(self, db, booked_stall):
        event, stall_type, booking = booked_stall
        resolved = resolve_reference(db, build_stall_checkin_url(event.id, booking.stall_id))
        assert (resolved["event_id"], resolved["stall_id"]) == (event.id, booking.stall_id)

    def test_event_reference(self, db, booked_stall):
        event, stall_type, booking = booked_stall
        resolved = resolve_reference(db, issue_event_checkin_reference(event.id))
        assert resolved == {"kind": "event", "event_id": event.id, "stall_id": None, "booking_id": None}

    def test_unbooked_stall_resolves_without_booking(self, db, booked_stall):
        event, stall_type, booking = booked_stall
        free = list_available_stalls(db, event.id)[0]
        resolved = resolve_reference(db, issue_stall_checkin_reference(event.id, free.id))
        assert resolved["booking_id"] is None

    def test_deleted_stall_no_longer_resolves(self, db, booked_stall):
        event, stall_type, booking = booked_stall
        ref = issue_stall_checkin_reference(event.id, booking.stall_id)
        delete_stall_type(db, stall_type.id, confirm_cascade=True)
        with pytest.raises(InvalidReference):
            resolve_reference(db, ref)

    def test_stall_paired_with_wrong_event(self, db, booked_stall, make_event):
        event, stall_type, booking = booked_stall
        other = make_event(stall_count=1)
        with pytest.raises(InvalidReference):
            resolve_reference(db, issue_stall_checkin_reference(other.id, booking.stall_id))

    def test_unknown_event(self, db):
        with pytest.raises(InvalidReference):
            resolve_reference(db, issue_event_checkin_reference(999))


class TestCheckinHelpers:
    def test_stall_checkin_requires_stall_in_event(self, db, booked_stall, make_event):
        event, stall_type, booking = booked_stall
        out = stall_checkin(db, event.id, booking.stall_id)
        assert out["reference"] == issue_stall_checkin_reference(event.id, booking.stall_id)
        other = make_event(stall_count=1)
        with pytest.raises(NotFound):
            stall_checkin(db, other.id, booking.stall_id)

    def test_details(self, db, booked_stall):
        event, stall_type, booking = booked_stall
        details = get_stall_checkin_details(db, booking.stall_id)
        assert details["stall_number"] == 1
        assert details["stall_type_name"] == "Premium"
        assert details["builder_id"] == 21
        assert details["status"] == "booked"
        with pytest.raises(NotFound):
            get_stall_checkin_details(db, 9999)
