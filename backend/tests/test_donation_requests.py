"""Donation request screens and mutations through the API."""

import logging

import pytest
from httpx import AsyncClient

from portal.main import app
from tests.conftest import auth_headers
from tests.fake_backend import ADMIN, BLOCKED, DONOR, OTHER, VOLUNTEER, FakeBackend

BASE = "/api/v1/donation-requests"


def _form(**overrides) -> dict:
    form = {
        "recipientName": "Rahim Uddin",
        "recipientDistrict": "Dhaka",
        "recipientUpazila": "Savar",
        "hospitalName": "Dhaka General Hospital",
        "fullAddress": "Road 1, Savar",
        "bloodGroup": "A+",
        "donationDate": "2026-11-02",
        "donationTime": "10:30",
        "requestMessage": "Urgent surgery",
    }
    form.update(overrides)
    return form


# -- public list -----------------------------------------------------------


@pytest.mark.asyncio
async def test_public_list_shows_pending_sorted_by_date(client: AsyncClient):
    response = await client.get(BASE)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["page_size"] == 8
    assert [r["_id"] for r in data["items"]] == ["r3", "r1", "r2"]
    assert data["stale"] is False


@pytest.mark.asyncio
async def test_public_list_filters_and_sorts(client: AsyncClient):
    response = await client.get(BASE, params={"blood_group": "A+", "sort_order": "desc"})
    assert [r["_id"] for r in response.json()["items"]] == ["r1", "r3"]

    response = await client.get(BASE, params={"search": "sylhet"})
    assert [r["_id"] for r in response.json()["items"]] == ["r3"]


@pytest.mark.asyncio
async def test_public_list_degrades_when_backend_fails(
    client: AsyncClient, fake_backend: FakeBackend
):
    fake_backend.failing.add("/donation-requests")
    response = await client.get(BASE)
    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["stale"] is True


# -- my requests -------------------------------------------------------------


@pytest.mark.asyncio
async def test_my_requests_only_lists_own(client: AsyncClient, donor_headers: dict):
    response = await client.get(f"{BASE}/mine", headers=donor_headers)
    assert response.status_code == 200
    data = response.json()
    assert {r["_id"] for r in data["items"]} == {"r1", "r4", "r6"}
    assert data["page_size"] == 5
    assert data["status_counts"] == {"pending": 1, "inprogress": 1, "done": 1, "canceled": 0}


@pytest.mark.asyncio
async def test_my_requests_are_cached_until_refresh(
    client: AsyncClient, fake_backend: FakeBackend, donor_headers: dict
):
    await client.get(f"{BASE}/mine", headers=donor_headers)
    response = await client.get(f"{BASE}/mine", params={"status": "done"}, headers=donor_headers)
    assert [r["_id"] for r in response.json()["items"]] == ["r6"]
    assert fake_backend.calls_to("GET", "/donation-requests") == 1

    await client.get(f"{BASE}/mine", params={"refresh": True}, headers=donor_headers)
    assert fake_backend.calls_to("GET", "/donation-requests") == 2


@pytest.mark.asyncio
async def test_my_requests_requires_auth(client: AsyncClient):
    response = await client.get(f"{BASE}/mine")
    assert response.status_code == 401


# -- all requests ------------------------------------------------------------


@pytest.mark.asyncio
async def test_all_requests_forbidden_for_donor(client: AsyncClient, donor_headers: dict):
    response = await client.get(f"{BASE}/all", headers=donor_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_all_requests_paginates_by_six(client: AsyncClient, admin_headers: dict):
    response = await client.get(f"{BASE}/all", headers=admin_headers)
    data = response.json()
    assert data["total"] == 7
    assert data["page_count"] == 2
    assert len(data["items"]) == 6

    response = await client.get(f"{BASE}/all", params={"page": 2}, headers=admin_headers)
    assert len(response.json()["items"]) == 1


@pytest.mark.asyncio
async def test_all_requests_clamps_page(client: AsyncClient, volunteer_headers: dict):
    response = await client.get(f"{BASE}/all", params={"page": 5}, headers=volunteer_headers)
    assert response.json()["page"] == 2


@pytest.mark.asyncio
async def test_filter_change_restarts_at_first_page(client: AsyncClient, admin_headers: dict):
    await client.get(f"{BASE}/all", params={"page": 2}, headers=admin_headers)
    response = await client.get(
        f"{BASE}/all", params={"page": 2, "status": "pending"}, headers=admin_headers
    )
    data = response.json()
    assert data["page"] == 1
    assert data["total"] == 3
    assert data["page_count"] == 1


@pytest.mark.asyncio
async def test_all_requests_search_blood_group(client: AsyncClient, admin_headers: dict):
    response = await client.get(f"{BASE}/all", params={"search": "A+"}, headers=admin_headers)
    assert {r["_id"] for r in response.json()["items"]} == {"r1", "r3"}


# -- detail ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_detail_includes_related_pending(client: AsyncClient):
    response = await client.get(f"{BASE}/r1")
    assert response.status_code == 200
    data = response.json()
    assert data["request"]["_id"] == "r1"
    assert [r["_id"] for r in data["related"]] == ["r3"]


@pytest.mark.asyncio
async def test_detail_unknown_request_is_404(client: AsyncClient):
    response = await client.get(f"{BASE}/nope")
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")


# -- create ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_request_is_pending_and_owned(
    client: AsyncClient, fake_backend: FakeBackend, donor_headers: dict
):
    before = await client.get(f"{BASE}/mine", headers=donor_headers)
    assert before.json()["total"] == 3

    response = await client.post(BASE, json=_form(), headers=donor_headers)
    assert response.status_code == 201, response.text
    inserted_id = response.json()["inserted_id"]
    stored = fake_backend.requests[inserted_id]
    assert stored["status"] == "pending"
    assert stored["requesterEmail"] == DONOR
    assert stored["donationDate"] == "2026-11-02"

    after = await client.get(f"{BASE}/mine", headers=donor_headers)
    assert after.json()["total"] == 4


@pytest.mark.asyncio
async def test_create_rejects_upazila_outside_district(client: AsyncClient, donor_headers: dict):
    response = await client.post(
        BASE, json=_form(recipientUpazila="Paba"), headers=donor_headers
    )
    assert response.status_code == 422
    assert response.json()["title"] == "Invalid Location"


@pytest.mark.asyncio
async def test_create_rejects_bad_time(client: AsyncClient, donor_headers: dict):
    response = await client.post(BASE, json=_form(donationTime="25:00"), headers=donor_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_blocked_user_gets_access_denied(client: AsyncClient):
    response = await client.post(BASE, json=_form(), headers=auth_headers(BLOCKED))
    assert response.status_code == 403
    body = response.json()
    assert body["title"] == "Access Denied"
    assert "blocked" in body["detail"]


# -- status workflow ---------------------------------------------------------


@pytest.mark.asyncio
async def test_requester_marks_inprogress_done_and_cache_is_patched(
    client: AsyncClient, fake_backend: FakeBackend, donor_headers: dict
):
    await client.get(f"{BASE}/mine", headers=donor_headers)
    response = await client.patch(
        f"{BASE}/r4/status", json={"status": "done"}, headers=donor_headers
    )
    assert response.status_code == 200
    assert response.json() == {"modified": True, "message": "Status: done"}
    assert fake_backend.requests["r4"]["status"] == "done"

    listing = await client.get(f"{BASE}/mine", headers=donor_headers)
    assert listing.json()["status_counts"]["done"] == 2
    # Patched in place, not refetched
    assert fake_backend.calls_to("GET", "/donation-requests") == 1


@pytest.mark.asyncio
async def test_requester_cannot_finish_pending_request(client: AsyncClient, donor_headers: dict):
    response = await client.patch(
        f"{BASE}/r1/status", json={"status": "done"}, headers=donor_headers
    )
    assert response.status_code == 422
    assert response.json()["detail"]["allowed"] == ["canceled"]


@pytest.mark.asyncio
async def test_requester_cannot_touch_others_request(client: AsyncClient, donor_headers: dict):
    response = await client.patch(
        f"{BASE}/r2/status", json={"status": "canceled"}, headers=donor_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_may_finish_pending_request(
    client: AsyncClient, fake_backend: FakeBackend, admin_headers: dict
):
    response = await client.patch(
        f"{BASE}/r1/status", json={"status": "done"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert fake_backend.requests["r1"]["status"] == "done"


@pytest.mark.asyncio
async def test_unchanged_status_is_a_noop(client: AsyncClient, admin_headers: dict):
    response = await client.patch(
        f"{BASE}/r6/status", json={"status": "done"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json() == {"modified": False, "message": None}


@pytest.mark.asyncio
async def test_reopening_finished_request_is_logged(
    client: AsyncClient, admin_headers: dict, caplog
):
    await client.get(f"{BASE}/all", headers=admin_headers)
    with caplog.at_level(logging.WARNING, logger="portal.services.request_workflow"):
        response = await client.patch(
            f"{BASE}/r6/status", json={"status": "pending"}, headers=admin_headers
        )
    assert response.status_code == 200
    assert "reopened request r6" in caplog.text


@pytest.mark.asyncio
async def test_reopening_uncached_request_is_logged(
    client: AsyncClient, fake_backend: FakeBackend, admin_headers: dict, caplog
):
    with caplog.at_level(logging.WARNING, logger="portal.services.request_workflow"):
        response = await client.patch(
            f"{BASE}/r6/status", json={"status": "pending"}, headers=admin_headers
        )
    assert response.status_code == 200
    assert "reopened request r6: done -> pending" in caplog.text
    assert fake_backend.calls_to("GET", "/donation-requests/r6") == 1


@pytest.mark.asyncio
async def test_unknown_status_rejected(client: AsyncClient, admin_headers: dict):
    response = await client.patch(
        f"{BASE}/r1/status", json={"status": "archived"}, headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_concurrent_mutation_is_rejected(client: AsyncClient, admin_headers: dict):
    guard = app.state.inflight
    assert await guard.acquire("donation-request:r1")
    try:
        response = await client.patch(
            f"{BASE}/r1/status", json={"status": "canceled"}, headers=admin_headers
        )
    finally:
        await guard.release("donation-request:r1")
    assert response.status_code == 409
    assert response.json()["title"] == "Mutation In Progress"

    response = await client.patch(
        f"{BASE}/r1/status", json={"status": "canceled"}, headers=admin_headers
    )
    assert response.status_code == 200


# -- claim -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_claim_pending_request(
    client: AsyncClient, fake_backend: FakeBackend, volunteer_headers: dict
):
    response = await client.post(f"{BASE}/r2/claim", headers=volunteer_headers)
    assert response.status_code == 200
    stored = fake_backend.requests["r2"]
    assert stored["status"] == "inprogress"
    assert stored["donorEmail"] == VOLUNTEER

    again = await client.post(f"{BASE}/r2/claim", headers=auth_headers(OTHER))
    assert again.status_code == 409


# -- edit --------------------------------------------------------------------


@pytest.mark.asyncio
async def test_edit_own_pending_request(
    client: AsyncClient, fake_backend: FakeBackend, donor_headers: dict
):
    response = await client.patch(
        f"{BASE}/r1", json=_form(hospitalName="Square Hospital"), headers=donor_headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Request Updated!"
    assert fake_backend.requests["r1"]["hospitalName"] == "Square Hospital"


@pytest.mark.asyncio
async def test_edit_without_changes_is_a_noop(client: AsyncClient, donor_headers: dict):
    response = await client.patch(f"{BASE}/r1", json=_form(), headers=donor_headers)
    assert response.json() == {"modified": False, "message": None}


@pytest.mark.asyncio
async def test_volunteer_cannot_edit_others_request(
    client: AsyncClient, fake_backend: FakeBackend, volunteer_headers: dict
):
    response = await client.patch(
        f"{BASE}/r2", json=_form(hospitalName="Square Hospital"), headers=volunteer_headers
    )
    assert response.status_code == 403
    assert fake_backend.requests["r2"]["hospitalName"] == "Gazipur General Hospital"


@pytest.mark.asyncio
async def test_admin_edits_any_request(
    client: AsyncClient, fake_backend: FakeBackend, admin_headers: dict
):
    response = await client.patch(
        f"{BASE}/r5", json=_form(hospitalName="Square Hospital"), headers=admin_headers
    )
    assert response.status_code == 200
    assert fake_backend.requests["r5"]["hospitalName"] == "Square Hospital"


@pytest.mark.asyncio
async def test_edit_locked_once_in_progress(client: AsyncClient, donor_headers: dict):
    response = await client.patch(
        f"{BASE}/r4", json=_form(recipientUpazila="Dhamrai"), headers=donor_headers
    )
    assert response.status_code == 409


# -- delete ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_requires_confirmation(client: AsyncClient, donor_headers: dict):
    response = await client.delete(f"{BASE}/r6", headers=donor_headers)
    assert response.status_code == 428


@pytest.mark.asyncio
async def test_owner_deletes_and_view_drops_record(
    client: AsyncClient, fake_backend: FakeBackend, donor_headers: dict
):
    await client.get(f"{BASE}/mine", headers=donor_headers)
    response = await client.delete(
        f"{BASE}/r6", params={"confirm": True}, headers=donor_headers
    )
    assert response.status_code == 200
    assert response.json()["modified"] is True
    assert "r6" not in fake_backend.requests

    listing = await client.get(f"{BASE}/mine", headers=donor_headers)
    assert listing.json()["total"] == 2


@pytest.mark.asyncio
async def test_delete_twice_is_a_noop(client: AsyncClient, admin_headers: dict):
    first = await client.delete(f"{BASE}/r7", params={"confirm": True}, headers=admin_headers)
    second = await client.delete(f"{BASE}/r7", params={"confirm": True}, headers=admin_headers)
    assert first.json()["modified"] is True
    assert second.status_code == 200
    assert second.json() == {"modified": False, "message": None}


@pytest.mark.asyncio
async def test_non_owner_cannot_delete(client: AsyncClient, donor_headers: dict):
    response = await client.delete(
        f"{BASE}/r2", params={"confirm": True}, headers=donor_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_volunteer_cannot_delete_others_request(
    client: AsyncClient, volunteer_headers: dict
):
    response = await client.delete(
        f"{BASE}/r2", params={"confirm": True}, headers=volunteer_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_request_id_forwarded_to_backend(
    client: AsyncClient, fake_backend: FakeBackend
):
    response = await client.get(BASE, headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"
    assert fake_backend.last_headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_admin_session_role_from_backend(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers=auth_headers(ADMIN))
    assert response.json()["role"] == "admin"
