"""Integration tests for case submission and moderation endpoints."""

import pytest

from tests.conftest import MINUTE_MS, T0_CASE_ID, T0_DATE_KEY, player_headers

pytestmark = pytest.mark.integration

CASE_TEXT = "My coworker microwaves fish in the shared office kitchen every single day."


async def _submit(client, user_id: str = "carol", **overrides):
    payload = {"text": CASE_TEXT, "title": "Fish Friday"}
    payload.update(overrides)
    return await client.post("/api/submit-case", json=payload, headers=player_headers(user_id))


class TestSubmitCase:
    async def test_creates_pending_submission(self, client):
        response = await _submit(client)
        assert response.status_code == 201
        submission = response.json()["submission"]
        assert submission["status"] == "pending"
        assert submission["user_id"] == "carol"
        assert submission["username"] == "carol-name"
        assert submission["submission_id"].startswith("sub-")

    async def test_requires_login(self, client):
        response = await client.post(
            "/api/submit-case", json={"text": CASE_TEXT}, headers={"X-Community-Id": "testsub"}
        )
        assert response.status_code == 401

    async def test_rejects_contact_details(self, client):
        response = await _submit(client, text=f"{CASE_TEXT} Call me at 555-123-4567.")
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_input"
        assert body["details"]["reason"] == "prohibited_content"

    async def test_rejects_short_text(self, client):
        response = await _submit(client, text="Too short.")
        assert response.status_code == 400
        assert response.json()["details"]["reason"] == "too_short"

    async def test_rejects_wrong_label_count(self, client):
        response = await _submit(client, labels_override=["Yes", "No"])
        assert response.status_code == 400

    async def test_daily_limit(self, client):
        for _ in range(3):
            assert (await _submit(client)).status_code == 201
        response = await _submit(client)
        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"

    async def test_limit_is_per_user(self, client):
        for _ in range(3):
            await _submit(client, user_id="carol")
        assert (await _submit(client, user_id="dave")).status_code == 201


class TestModeration:
    async def test_non_moderator_is_forbidden(self, client):
        response = await client.get("/api/mod/pending", headers=player_headers("carol"))
        assert response.status_code == 403
        assert response.json()["error"] == "moderator_required"

    async def test_pending_queue_oldest_first(self, client, clock, platform):
        first = (await _submit(client, user_id="carol")).json()["submission"]
        clock.advance(minutes=1)
        second = (await _submit(client, user_id="dave")).json()["submission"]
        platform.is_moderator.return_value = True

        response = await client.get("/api/mod/pending", headers=player_headers("mod"))

        assert response.status_code == 200
        ids = [item["submission_id"] for item in response.json()["submissions"]]
        assert ids == [first["submission_id"], second["submission_id"]]

    async def test_approved_submission_becomes_the_case(self, client, platform):
        submission = (await _submit(client)).json()["submission"]
        platform.is_moderator.return_value = True

        approved = await client.post(
            "/api/mod/approve",
            json={"submission_id": submission["submission_id"], "date_key": T0_DATE_KEY},
            headers=player_headers("mod"),
        )
        assert approved.status_code == 200
        assert approved.json()["submission"]["status"] == "approved"
        assert approved.json()["submission"]["reviewed_by"] == "mod"

        case = (await client.get("/api/today", headers=player_headers("alice"))).json()["case"]
        assert case["source"] == "user"
        assert case["title"] == "Fish Friday"
        assert case["text"] == CASE_TEXT
        assert case["created_by"] == "carol"

        pending = await client.get("/api/mod/pending", headers=player_headers("mod"))
        assert pending.json()["submissions"] == []

    async def test_approve_rejects_bad_date(self, client, platform):
        submission = (await _submit(client)).json()["submission"]
        platform.is_moderator.return_value = True
        response = await client.post(
            "/api/mod/approve",
            json={"submission_id": submission["submission_id"], "date_key": "2026-03-04"},
            headers=player_headers("mod"),
        )
        assert response.status_code == 400

    async def test_reject_then_review_again_conflicts(self, client, platform):
        submission = (await _submit(client)).json()["submission"]
        platform.is_moderator.return_value = True
        payload = {"submission_id": submission["submission_id"], "reason": "Off topic"}

        rejected = await client.post("/api/mod/reject", json=payload, headers=player_headers("mod"))
        again = await client.post("/api/mod/reject", json=payload, headers=player_headers("mod"))

        assert rejected.status_code == 200
        assert rejected.json()["submission"]["status"] == "rejected"
        assert rejected.json()["submission"]["reject_reason"] == "Off topic"
        assert again.status_code == 409
        assert again.json()["error"] == "already_reviewed"

    async def test_other_community_submission_is_not_found(self, client, platform):
        submission = (await _submit(client)).json()["submission"]
        platform.is_moderator.return_value = True
        response = await client.post(
            "/api/mod/reject",
            json={"submission_id": submission["submission_id"]},
            headers=player_headers("mod", sub_id="othersub"),
        )
        assert response.status_code == 404

    async def test_unknown_submission(self, client, platform):
        platform.is_moderator.return_value = True
        response = await client.post(
            "/api/mod/approve",
            json={"submission_id": "sub-missing", "date_key": T0_DATE_KEY},
            headers=player_headers("mod"),
        )
        assert response.status_code == 404


class TestDeleteCase:
    async def test_replaces_open_case_and_discards_votes(self, client, clock, platform):
        await client.get("/api/today", headers=player_headers("alice"))
        await client.post(
            "/api/vote",
            json={"case_id": T0_CASE_ID, "verdict_index": 0, "prediction_index": 0},
            headers=player_headers("alice"),
        )
        clock.advance(minutes=2)
        platform.is_moderator.return_value = True

        response = await client.post(
            "/api/mod/delete-case", json={"case_id": T0_CASE_ID}, headers=player_headers("mod")
        )

        assert response.status_code == 200
        case = response.json()["case"]
        assert case["case_id"] == T0_CASE_ID
        assert case["source"] == "seed"
        assert case["close_ts"] == clock.now + 4 * MINUTE_MS

        today = (await client.get("/api/today", headers=player_headers("alice"))).json()
        assert today["vote"] is None

    async def test_closed_case_cannot_be_replaced(self, client, clock, platform):
        await client.get("/api/today", headers=player_headers("alice"))
        clock.advance(minutes=4)
        platform.is_moderator.return_value = True
        response = await client.post(
            "/api/mod/delete-case", json={"case_id": T0_CASE_ID}, headers=player_headers("mod")
        )
        assert response.status_code == 409

    async def test_requires_moderator(self, client):
        await client.get("/api/today", headers=player_headers("alice"))
        response = await client.post(
            "/api/mod/delete-case", json={"case_id": T0_CASE_ID}, headers=player_headers("alice")
        )
        assert response.status_code == 403
