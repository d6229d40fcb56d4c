"""Integration tests for the activity history endpoint."""
import pytest

from tests.utils import make_poll, poll_payload


@pytest.mark.integration
class TestHistoryApi:
    """Test GET /api/v1/history."""

    def test_requires_session(self, client):
        assert client.get("/api/v1/history").status_code == 401

    def test_full_poll_lifecycle(self, member_client, member):
        poll_id = member_client.post("/api/v1/polls", json=poll_payload()).json()["id"]
        option_id = member_client.get(f"/api/v1/polls/{poll_id}").json()["options"][0]["id"]
        member_client.post(f"/api/v1/polls/{poll_id}/votes", json={"option_ids": [option_id]})
        member_client.put(f"/api/v1/polls/{poll_id}", json=poll_payload(title="Venue 2026"))
        member_client.delete(f"/api/v1/polls/{poll_id}")

        history = member_client.get("/api/v1/history").json()

        assert [item["type"] for item in history] == [
            "vote_deleted",
            "vote_updated",
            "vote_submitted",
            "vote_created",
        ]
        assert history[1]["description"] == 'Updated poll "Venue 2026"'
        assert all(item["user_id"] == member.user_id for item in history)
        assert all(item["target_id"] == poll_id for item in history)

    def test_limit(self, member_client, db_session, member):
        for title in ("One", "Two", "Three"):
            member_client.post("/api/v1/polls", json=poll_payload(title=title))

        history = member_client.get("/api/v1/history?limit=2").json()

        assert [item["target_title"] for item in history] == ["Three", "Two"]

    def test_limit_out_of_range(self, member_client):
        response = member_client.get("/api/v1/history?limit=0")

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("limit: ")

    def test_direct_service_writes_not_recorded(self, member_client, db_session, member):
        make_poll(db_session, member)

        assert member_client.get("/api/v1/history").json() == []
