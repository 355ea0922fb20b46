"""End-to-end tests for the HTTP endpoints."""

import asyncio
import json
from datetime import timedelta
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio

from conftest import create_scenario, make_email_client
from main import app
from repositories.application import ApplicationRepository
from repositories.auth import UserRepository
from repositories.event import EventRepository
from repositories.notification import NotificationRepository
from services.notifications import NotificationDispatcher
from services.scheduler import SweepScheduler
from services.sweeper import ExpiredEventSweeper
from services.transitions import ApplicationTransitionService
from utils.dates import utcnow


@pytest.fixture
def sent_emails():
    return []


@pytest_asyncio.fixture
async def client(db, sent_emails):
    """HTTP client bound to the app, with the email provider faked."""

    def handler(request: httpx.Request) -> httpx.Response:
        sent_emails.append(json.loads(request.content))
        return httpx.Response(200, json={"id": f"msg-{len(sent_emails)}"})

    original_state = (app.state.transition_service, app.state.sweep_scheduler)
    email_client = make_email_client(handler)
    app.state.transition_service = ApplicationTransitionService(NotificationDispatcher(email_client))
    app.state.sweep_scheduler = SweepScheduler(ExpiredEventSweeper())

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client

    await app.state.sweep_scheduler.wait_idle()
    await app.state.transition_service.drain()
    await email_client.aclose()
    app.state.transition_service, app.state.sweep_scheduler = original_state


async def auth_headers(profile) -> dict:
    token = await UserRepository.create_user_session(profile.id)
    return {"Authorization": f"Bearer {token}"}


class TestManageApplication:
    """Test POST /applications/manage."""

    @pytest.mark.asyncio
    async def test_approve_returns_camel_case_record(self, client, sent_emails):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/manage",
            json={"action": "approve", "applicationId": scenario["application"].id},
            headers=await auth_headers(scenario["organization"]),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["notificationStatus"] == "sent"
        application = body["data"]["application"]
        assert application["status"] == "approved"
        assert application["eventId"] == scenario["event"].id
        assert application["volunteer"]["name"] == "Ana Silva"
        assert application["event"]["organization"]["id"] == scenario["organization"].id
        assert "appliedAt" in application
        assert sent_emails[0]["to"] == ["ana.silva@example.pt"]

    @pytest.mark.asyncio
    async def test_actor_id_must_match_session(self, client):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/manage",
            json={
                "action": "approve",
                "applicationId": scenario["application"].id,
                "actorId": scenario["organization"].id,
            },
            headers=await auth_headers(scenario["volunteer"]),
        )

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": "Não tem permissão para gerir esta candidatura.",
            "code": "forbidden",
        }

    @pytest.mark.asyncio
    async def test_volunteer_cannot_approve(self, client):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/manage",
            json={"action": "approve", "applicationId": scenario["application"].id},
            headers=await auth_headers(scenario["volunteer"]),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Não tem permissão para atualizar esta candidatura."

    @pytest.mark.asyncio
    async def test_unknown_application(self, client):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/manage",
            json={"action": "cancel", "applicationId": "does-not-exist"},
            headers=await auth_headers(scenario["volunteer"]),
        )

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    @pytest.mark.asyncio
    async def test_unknown_action_is_rejected(self, client):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/manage",
            json={"action": "archive", "applicationId": scenario["application"].id},
            headers=await auth_headers(scenario["volunteer"]),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_reapply_on_pending_is_invalid_state(self, client):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/manage",
            json={"action": "reapply", "applicationId": scenario["application"].id},
            headers=await auth_headers(scenario["volunteer"]),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_state"

    @pytest.mark.asyncio
    async def test_invalid_session_token(self, client):
        response = await client.post(
            "/applications/manage",
            json={"action": "cancel", "applicationId": "x"},
            headers={"Authorization": "Bearer not-a-session"},
        )

        assert response.status_code == 401


class TestApplicationsApi:
    @pytest.mark.asyncio
    async def test_create_notifies_organization_and_refuses_duplicates(self, client, sent_emails):
        organization = await UserRepository.create_profile("Cruz Verde", "organization", email="geral@cruzverde.pt")
        volunteer = await UserRepository.create_profile("Rui Costa", "volunteer", email="rui@example.pt")
        event = await EventRepository.create_event(
            organization.id, "Apoio ao lar", utcnow() + timedelta(days=2), duration="3h"
        )
        headers = await auth_headers(volunteer)

        created = await client.post(
            "/applications/create",
            json={"eventId": event.id, "message": "Disponível ao fim de semana"},
            headers=headers,
        )
        duplicate = await client.post("/applications/create", json={"eventId": event.id}, headers=headers)

        assert created.status_code == 200
        assert created.json()["status"] == "pending"
        assert duplicate.status_code == 400
        assert duplicate.json()["error"] == "Já se candidatou a este evento."
        assert sent_emails[0]["to"] == ["geral@cruzverde.pt"]
        notifications, _ = await NotificationRepository.get_user_notifications(
            organization.id, unread_only=False, page=1, page_size=10
        )
        assert notifications[0].type == "application_submitted"

    @pytest.mark.asyncio
    async def test_organization_cannot_apply(self, client):
        scenario = await create_scenario()

        response = await client.post(
            "/applications/create",
            json={"eventId": scenario["event"].id},
            headers=await auth_headers(scenario["organization"]),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_my_applications(self, client):
        scenario = await create_scenario()

        response = await client.get("/applications/my-applications", headers=await auth_headers(scenario["volunteer"]))

        assert response.status_code == 200
        body = response.json()
        assert body["totalCount"] == 1
        assert body["applications"][0]["event"]["title"] == "Limpeza da praia"

    @pytest.mark.asyncio
    async def test_event_applications_only_for_owner(self, client):
        scenario = await create_scenario()
        other = await UserRepository.create_profile("Outra", "organization")

        owner_response = await client.get(
            f"/applications/event/{scenario['event'].id}", headers=await auth_headers(scenario["organization"])
        )
        other_response = await client.get(
            f"/applications/event/{scenario['event'].id}", headers=await auth_headers(other)
        )

        assert owner_response.status_code == 200
        assert owner_response.json()[0]["volunteer"]["email"] == "ana.silva@example.pt"
        assert other_response.status_code == 403

    @pytest.mark.asyncio
    async def test_application_details_visibility(self, client):
        scenario = await create_scenario()
        stranger = await UserRepository.create_profile("Estranho", "volunteer")
        path = f"/applications/{scenario['application'].id}"

        assert (await client.get(path, headers=await auth_headers(scenario["volunteer"]))).status_code == 200
        assert (await client.get(path, headers=await auth_headers(scenario["organization"]))).status_code == 200
        assert (await client.get(path, headers=await auth_headers(stranger))).status_code == 403


class TestEventsApi:
    """Test event reads and the expired-event sweep endpoint."""

    @pytest.mark.asyncio
    async def test_process_expired_dry_run_then_apply(self, client):
        organization = await UserRepository.create_profile("Cruz Verde", "organization")
        event = await EventRepository.create_event(
            organization.id, "Recolha", utcnow() - timedelta(hours=5), duration="2h"
        )
        headers = await auth_headers(organization)

        dry_run = await client.post("/events/process-expired", json={"dryRun": True}, headers=headers)
        assert dry_run.status_code == 200
        assert dry_run.json()["completedEventIds"] == [event.id]
        assert (await EventRepository.get_event_by_id(event.id)).status == "open"

        applied = await client.post("/events/process-expired", headers=headers)
        assert applied.status_code == 200
        assert applied.json()["completedCount"] == 1
        assert (await EventRepository.get_event_by_id(event.id)).status == "completed"

    @pytest.mark.asyncio
    async def test_listing_events_completes_expired_ones(self, client):
        organization = await UserRepository.create_profile("Cruz Verde", "organization")
        expired = await EventRepository.create_event(
            organization.id, "Passado", utcnow() - timedelta(days=1), duration="1h 30m"
        )
        upcoming = await EventRepository.create_event(
            organization.id, "Futuro", utcnow() + timedelta(days=1), duration="45m"
        )

        response = await client.get("/events")

        assert response.status_code == 200
        events = {event["id"]: event for event in response.json()["events"]}
        assert events[expired.id]["status"] == "completed"
        assert events[expired.id]["durationLabel"] == "1h 30m"
        assert events[upcoming.id]["status"] == "open"
        assert "endsAt" in events[upcoming.id]

    @pytest.mark.asyncio
    async def test_impossible_duration_has_no_end(self, client):
        organization = await UserRepository.create_profile("Cruz Verde", "organization")
        event = await EventRepository.create_event(
            organization.id, "Maratona", utcnow() - timedelta(days=1), duration="100000000h"
        )

        listed = await client.get("/events")
        detail = await client.get(f"/events/{event.id}")

        assert listed.status_code == 200
        assert listed.json()["events"][0]["endsAt"] is None
        assert detail.status_code == 200
        assert detail.json()["status"] == "open"

    @pytest.mark.asyncio
    async def test_unknown_event(self, client):
        response = await client.get("/events/does-not-exist")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestNotificationsApi:
    @pytest.mark.asyncio
    async def test_list_and_mark_read(self, client):
        scenario = await create_scenario()
        notification = await NotificationRepository.create_notification(
            user_id=scenario["volunteer"].id,
            type="application_approved",
            title="Candidatura aprovada",
            message="Aprovada",
        )
        headers = await auth_headers(scenario["volunteer"])

        listed = await client.get("/notifications", headers=headers)
        marked = await client.post(f"/notifications/{notification.id}/read", headers=headers)
        after = await client.get("/notifications", params={"unread_only": True}, headers=headers)
        foreign = await client.post(
            f"/notifications/{notification.id}/read", headers=await auth_headers(scenario["organization"])
        )

        assert listed.json()["unreadCount"] == 1
        assert listed.json()["notifications"][0]["title"] == "Candidatura aprovada"
        assert marked.json() == {"success": True}
        assert after.json()["notifications"] == []
        assert foreign.status_code == 404


class TestSlowStore:
    @pytest.mark.asyncio
    async def test_slow_details_read_returns_503(self, client):
        scenario = await create_scenario()
        headers = await auth_headers(scenario["volunteer"])

        async def slow_read(application_id):
            await asyncio.sleep(1)

        app.state.transition_service.read_timeout = 0.01
        with patch.object(ApplicationRepository, "get_application_with_details", slow_read):
            response = await client.get(f"/applications/{scenario['application'].id}", headers=headers)

        assert response.status_code == 503
        assert response.json()["code"] == "persistence_error"
