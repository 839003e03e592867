"""Route tests for /api/v1/timeslots."""

from app.core.config import settings
from app.core.enums import SlotStatus, Sport
from app.core.ulid_helper import generate_ulid
from app.services.slot_reservation_service import SlotReservationService
from tests.helpers.factories import add_slot

BASE = "/api/v1/timeslots"
FAR_DATE = "2031-05-01"


def slot_date(slot) -> str:
    return slot.start_time.astimezone(settings.tzinfo).date().isoformat()


class TestGenerate:
    def test_generates_blocked_day(self, client, auth_headers, sub_venue):
        response = client.post(
            f"{BASE}/generate",
            json={"sub_venue_id": sub_venue.id, "date": FAR_DATE},
            headers=auth_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["sub_venue_id"] == sub_venue.id
        assert body["date"] == FAR_DATE
        assert len(body["slots"]) == 24
        assert {s["status"] for s in body["slots"]} == {"blocked"}
        assert body["slots"][0]["prices"] == {}

    def test_duplicate_day(self, client, auth_headers, sub_venue):
        payload = {"sub_venue_id": sub_venue.id, "date": FAR_DATE}
        created = client.post(f"{BASE}/generate", json=payload, headers=auth_headers).json()

        response = client.post(f"{BASE}/generate", json=payload, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_DAY_EXISTS"
        assert response.json()["errors"] == {"slot_day_id": created["id"]}

    def test_bad_date_format(self, client, auth_headers, sub_venue):
        response = client.post(
            f"{BASE}/generate",
            json={"sub_venue_id": sub_venue.id, "date": "01/05/2031"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DATE"

    def test_requires_authentication(self, client, sub_venue):
        response = client.post(f"{BASE}/generate", json={"sub_venue_id": sub_venue.id, "date": FAR_DATE})

        assert response.status_code == 401


class TestGetDay:
    def test_returns_slots(self, client, auth_headers, sub_venue, slot):
        response = client.get(
            f"{BASE}/sub-venues/{sub_venue.id}", params={"date": slot_date(slot)}, headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == slot.day_id
        assert body["slots"][0]["id"] == slot.id
        assert body["slots"][0]["prices"] == {"Cricket": "1000"}
        assert body["slots"][0]["status"] == "available"

    def test_missing_day_is_empty(self, client, auth_headers, sub_venue):
        response = client.get(
            f"{BASE}/sub-venues/{sub_venue.id}", params={"date": FAR_DATE}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "id": None,
            "sub_venue_id": sub_venue.id,
            "date": FAR_DATE,
            "slots": [],
        }

    def test_date_is_required(self, client, auth_headers, sub_venue):
        response = client.get(f"{BASE}/sub-venues/{sub_venue.id}", headers=auth_headers)

        assert response.status_code == 400


class TestUpdateSlot:
    def test_open_slot_with_prices(self, client, db, auth_headers, sub_venue):
        blocked = add_slot(db, sub_venue, status=SlotStatus.BLOCKED, prices={})

        response = client.patch(
            f"{BASE}/slots/{blocked.id}",
            json={"prices": {"Football": "1800"}, "status": "available"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["slot_day_id"] == blocked.day_id
        assert body["slot"]["status"] == "available"
        assert body["slot"]["prices"] == {"Football": "1800"}

    def test_timing_change_is_rejected(self, client, auth_headers, slot):
        response = client.patch(
            f"{BASE}/slots/{slot.id}",
            json={"start_time": "2031-05-01T06:00:00Z"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "SLOT_TIMING_IMMUTABLE"
        assert response.json()["detail"] == "Cannot modify startTime or endTime of slot"

    def test_booked_slot_status_is_locked(self, client, db, auth_headers, slot):
        SlotReservationService(db).claim_slot(slot.day_id, slot.id, Sport.CRICKET, generate_ulid())

        response = client.patch(
            f"{BASE}/slots/{slot.id}", json={"status": "blocked"}, headers=auth_headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_BOOKED"


class TestDeleteDay:
    def test_deletes_day(self, client, auth_headers, sub_venue, slot):
        response = client.delete(
            f"{BASE}/sub-venues/{sub_venue.id}", params={"date": slot_date(slot)}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Timeslots deleted successfully",
            "slot_day_id": slot.day_id,
        }

    def test_missing_day(self, client, auth_headers, sub_venue):
        response = client.delete(
            f"{BASE}/sub-venues/{sub_venue.id}", params={"date": FAR_DATE}, headers=auth_headers
        )

        assert response.status_code == 404
