"""Meetings, history and calendar endpoints, including role gating."""
from datetime import date, time

import pytest
from httpx import AsyncClient

from advisor_desk.db.enums import ActivityAction
from advisor_desk.db.models import ActivityLog, ScheduledMeeting

from conftest import make_client, make_org


def _meeting_body(client_id, **overrides):
    body = {
        "client_id": str(client_id),
        "meeting_type": "online",
        "start_date": "2099-06-15",
        "start_time": "11:30:00",
        "meeting_link": "https://meet.example.com/abc",
        "alert_type": "remind",
        "reminder_minutes": 45,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_editor_creates_meeting(editor_client: AsyncClient, test_client_record):
    response = await editor_client.post("/meetings", json=_meeting_body(test_client_record.id))

    assert response.status_code == 201
    data = response.json()
    assert data["location"] == "Online"
    assert data["client_name"] == "Asha Mehta"
    assert data["reminder_minutes"] == 45


@pytest.mark.asyncio
async def test_viewer_cannot_create_meeting(viewer_client: AsyncClient, test_client_record):
    response = await viewer_client.post("/meetings", json=_meeting_body(test_client_record.id))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_face_to_face_without_location_is_rejected(editor_client: AsyncClient, test_client_record):
    response = await editor_client.post(
        "/meetings",
        json=_meeting_body(test_client_record.id, meeting_type="face_to_face", location="  "),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_manager_deletes_meeting(
    editor_client: AsyncClient, manager_client: AsyncClient, test_client_record
):
    created = await editor_client.post("/meetings", json=_meeting_body(test_client_record.id))
    meeting_id = created.json()["id"]

    denied = await editor_client.delete(f"/meetings/{meeting_id}")
    assert denied.status_code == 403

    allowed = await manager_client.delete(f"/meetings/{meeting_id}")
    assert allowed.status_code == 204
    assert (await manager_client.get(f"/meetings/{meeting_id}")).status_code == 404


@pytest.mark.asyncio
async def test_mutation_without_csrf_header_is_refused(
    editor_client: AsyncClient, test_client_record
):
    response = await editor_client.post(
        "/meetings",
        json=_meeting_body(test_client_record.id),
        headers={"X-Requested-With": ""},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_other_org_meeting_is_not_found(manager_client: AsyncClient, db):
    other = make_org(db, name="Elsewhere")
    meeting = ScheduledMeeting(
        organization_id=other.id,
        client_id=make_client(db, other).id,
        meeting_type="on_call",
        start_date=date(2099, 1, 1),
        start_time=time(10, 0),
        location="On Call",
        attachments=[],
        created_by_name="Someone",
    )
    db.add(meeting)
    db.flush()

    response = await manager_client.get(f"/meetings/{meeting.id}")
    assert response.status_code == 404

    listed = await manager_client.get("/meetings")
    assert all(m["id"] != str(meeting.id) for m in listed.json())


@pytest.mark.asyncio
async def test_listing_archives_past_meetings(
    manager_client: AsyncClient, db, test_org, test_client_record
):
    past = ScheduledMeeting(
        organization_id=test_org.id,
        client_id=test_client_record.id,
        meeting_type="on_call",
        start_date=date(2021, 3, 1),
        start_time=time(10, 0),
        location="On Call",
        attachments=[],
        created_by_name="Test Manager",
    )
    db.add(past)
    db.flush()
    past_id = str(past.id)

    listed = await manager_client.get("/meetings")
    assert all(m["id"] != past_id for m in listed.json())

    history = await manager_client.get("/history")
    assert [h["original_meeting_id"] for h in history.json()] == [past_id]

    archived = (
        db.query(ActivityLog)
        .filter(ActivityLog.action_type == ActivityAction.ARCHIVE.value)
        .one()
    )
    assert archived.username == "system"


@pytest.mark.asyncio
async def test_manual_sync_reports_count(manager_client: AsyncClient):
    response = await manager_client.post("/history/sync")

    assert response.status_code == 200
    assert response.json() == {"archived": 0}


@pytest.mark.asyncio
async def test_attachment_download_through_signed_url(
    editor_client: AsyncClient, test_client_record
):
    created = await editor_client.post("/meetings", json=_meeting_body(test_client_record.id))
    meeting_id = created.json()["id"]

    uploaded = await editor_client.post(
        f"/meetings/{meeting_id}/attachments",
        files={"file": ("agenda.pdf", b"%PDF-1.4 agenda", "application/pdf")},
    )
    assert uploaded.status_code == 200
    path = uploaded.json()["attachments"][0]["path"]

    signed = await editor_client.get(f"/meetings/{meeting_id}/attachments/url", params={"path": path})
    assert signed.status_code == 200
    url = signed.json()["url"]
    assert url.startswith("/files/local/")

    download = await editor_client.get(url)
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 agenda"


@pytest.mark.asyncio
async def test_unknown_attachment_path_is_not_found(editor_client: AsyncClient, test_client_record):
    created = await editor_client.post("/meetings", json=_meeting_body(test_client_record.id))
    meeting_id = created.json()["id"]

    response = await editor_client.get(
        f"/meetings/{meeting_id}/attachments/url", params={"path": "meeting-attachments/x/y.pdf"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_tampered_file_token_is_forbidden(client: AsyncClient):
    response = await client.get("/files/local/not-a-token")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_calendar_month(manager_client: AsyncClient, test_client_record):
    await manager_client.post("/meetings", json=_meeting_body(test_client_record.id))
    await manager_client.post(
        "/payments",
        json={
            "client_id": str(test_client_record.id),
            "frequency": "quarterly",
            "due_dates": ["2099-03-15"],
            "amounts": ["2500.00"],
        },
    )

    response = await manager_client.get("/calendar/2099/6")

    assert response.status_code == 200
    data = response.json()
    assert [m["start_date"] for m in data["meetings"]] == ["2099-06-15"]
    assert [p["due_date"] for p in data["payments"]] == ["2099-06-15"]


@pytest.mark.asyncio
async def test_calendar_rejects_month_out_of_range(manager_client: AsyncClient):
    response = await manager_client.get("/calendar/2099/13")
    assert response.status_code == 422
