"""Integration tests for the enrollment HTTP surface."""

import pytest
from rest_framework.test import APIClient

from events import models as orm


@pytest.fixture
def admin_client(db) -> APIClient:
    orm.Member.objects.create(uid="admin-1", email="admin@example.com", name="Admin", role="admin")
    orm.Member.objects.create(uid="U", email="u@example.com", name="Ursula", rm="42")
    client = APIClient()
    client.credentials(HTTP_X_USER_ID="admin-1")
    return client


def create_event(client, name, day="2024-05-10", start="10:00", end="11:00", capacity=1):
    response = client.post(
        "/api/events",
        {
            "name": name,
            "visibility": "public",
            "sessions": [{"date": day, "start_time": start, "end_time": end, "capacity": capacity}],
        },
        format="json",
    )
    assert response.status_code == 201, response.data
    return response.json()


def enroll(client, user_id, event):
    return client.post(
        "/api/enrollments",
        {"event_id": event["id"], "session_id": event["sessions"][0]["id"]},
        format="json",
        HTTP_X_USER_ID=user_id,
    )


def filled(client, event):
    return client.get(f"/api/events/{event['id']}").json()["sessions"][0]["filled"]


@pytest.mark.django_db
class TestCreateEnrollment:
    def test_session_full_then_released(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Session A")

        first = enroll(api_client, "U", event)
        assert first.status_code == 201
        assert first.json()["id"] == f"U_{event['id']}"
        assert filled(api_client, event) == 1

        full = enroll(api_client, "V", event)
        assert full.status_code == 409
        assert full.json()["code"] == "SESSION_FULL"

        cancel = api_client.delete(f"/api/enrollments/{first.json()['id']}", HTTP_X_USER_ID="U")
        assert cancel.status_code == 204
        assert filled(api_client, event) == 0

        assert enroll(api_client, "V", event).status_code == 201

    def test_schedule_conflict_details(self, api_client: APIClient, admin_client: APIClient):
        x = create_event(admin_client, "Event X", start="09:00", end="10:30")
        y = create_event(admin_client, "Event Y", start="10:00", end="11:00")
        assert enroll(api_client, "U", x).status_code == 201

        response = enroll(api_client, "U", y)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "SCHEDULE_CONFLICT"
        assert body["details"] == {"event_name": "Event X", "time_range": "09:00 - 10:30"}

    def test_duplicate(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Once", capacity=5)
        enroll(api_client, "U", event)

        response = enroll(api_client, "U", event)

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_ENROLLMENT"

    def test_unknown_session(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Lonely")

        response = api_client.post(
            "/api/enrollments",
            {"event_id": event["id"], "session_id": "not-a-session"},
            format="json",
            HTTP_X_USER_ID="U",
        )

        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    def test_requires_caller(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Anyone")
        response = api_client.post(
            "/api/enrollments",
            {"event_id": event["id"], "session_id": event["sessions"][0]["id"]},
            format="json",
        )
        assert response.status_code == 401


@pytest.mark.django_db
class TestCancelEnrollment:
    def test_cancel_is_idempotent(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Twice", capacity=3)
        enrollment_id = enroll(api_client, "U", event).json()["id"]

        for _ in range(2):
            response = api_client.delete(f"/api/enrollments/{enrollment_id}", HTTP_X_USER_ID="U")
            assert response.status_code == 204

        assert filled(api_client, event) == 0

    def test_cannot_cancel_someone_else(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Mine", capacity=3)
        enrollment_id = enroll(api_client, "U", event).json()["id"]

        response = api_client.delete(f"/api/enrollments/{enrollment_id}", HTTP_X_USER_ID="V")

        assert response.status_code == 403
        assert filled(api_client, event) == 1

    def test_user_id_prefix_does_not_grant_ownership(
        self, api_client: APIClient, admin_client: APIClient
    ):
        event = create_event(admin_client, "Shared prefix", capacity=3)
        enrollment_id = enroll(api_client, "a_b", event).json()["id"]

        response = api_client.delete(f"/api/enrollments/{enrollment_id}", HTTP_X_USER_ID="a")

        assert response.status_code == 403
        assert filled(api_client, event) == 1

    def test_admin_cancels_any_enrollment(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Managed", capacity=3)
        enrollment_id = enroll(api_client, "U", event).json()["id"]

        assert admin_client.delete(f"/api/enrollments/{enrollment_id}").status_code == 204
        assert filled(api_client, event) == 0


@pytest.mark.django_db
class TestEnrollmentListings:
    def test_my_enrollments(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Pottery")
        enroll(api_client, "U", event)

        response = api_client.get("/api/enrollments", HTTP_X_USER_ID="U")

        assert response.status_code == 200
        [detail] = response.json()
        assert detail["event_name"] == "Pottery"
        assert detail["session_date"] == "2024-05-10"
        assert detail["session_time"] == "10:00 - 11:00"

    def test_roster_for_admin(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Choir", capacity=5)
        enroll(api_client, "U", event)
        enroll(api_client, "stranger", event)

        response = admin_client.get(f"/api/events/{event['id']}/enrollments")

        assert response.status_code == 200
        names = {entry["user"]["uid"]: entry["user"]["name"] for entry in response.json()}
        assert names == {"U": "Ursula", "stranger": "Unknown"}

    def test_roster_hidden_from_members(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Secret")
        response = api_client.get(f"/api/events/{event['id']}/enrollments", HTTP_X_USER_ID="U")
        assert response.status_code == 403

    def test_available_marks_enrollment(self, api_client: APIClient, admin_client: APIClient):
        event = create_event(admin_client, "Marked")
        enroll(api_client, "U", event)

        body = api_client.get("/api/events/available", HTTP_X_USER_ID="U").json()

        [item] = body["events"]
        assert item["enrolled_session_id"] == event["sessions"][0]["id"]
