"""Active schedule: creation rules, rescheduling and attachments."""
import io
import os
from datetime import date, time

import pytest
from sqlalchemy.exc import SQLAlchemyError

from advisor_desk.core.permissions import PermissionDeniedError
from advisor_desk.db.enums import AlertType, JobType, MeetingType
from advisor_desk.db.models import Job
from advisor_desk.schemas.meeting import MeetingCreate
from advisor_desk.services import meeting_service, storage_service
from advisor_desk.services.storage_service import StorageError


def _create(db, session, client, **overrides):
    data = {
        "client_id": client.id,
        "meeting_type": MeetingType.FACE_TO_FACE,
        "start_date": date(2030, 5, 1),
        "start_time": time(11, 30),
        "location": "Bandra office",
    }
    data.update(overrides)
    return meeting_service.create_meeting(db, session, MeetingCreate(**data))


def _upload(db, session, meeting, name="agenda.pdf", content=b"%PDF-1.4 agenda"):
    return meeting_service.add_attachment(
        db, session, meeting, name, "application/pdf", io.BytesIO(content), len(content)
    )


def test_online_meeting_gets_fixed_location_and_keeps_link(db, editor_session, test_client_record):
    meeting = _create(
        db,
        editor_session,
        test_client_record,
        meeting_type=MeetingType.ONLINE,
        location="ignored",
        meeting_link="https://meet.example.com/abc",
    )

    assert meeting.location == "Online"
    assert meeting.meeting_link == "https://meet.example.com/abc"


def test_on_call_meeting_drops_link(db, editor_session, test_client_record):
    meeting = _create(
        db,
        editor_session,
        test_client_record,
        meeting_type=MeetingType.ON_CALL,
        meeting_link="https://meet.example.com/abc",
    )

    assert meeting.location == "On Call"
    assert meeting.meeting_link is None


def test_face_to_face_requires_location(db, editor_session, test_client_record):
    with pytest.raises(ValueError):
        _create(db, editor_session, test_client_record, location="   ")


def test_reminder_minutes_default_and_override(db, editor_session, test_client_record):
    default = _create(db, editor_session, test_client_record, alert_type=AlertType.REMIND)
    custom = _create(
        db, editor_session, test_client_record, alert_type=AlertType.REMIND, reminder_minutes=90
    )
    notify = _create(
        db, editor_session, test_client_record, alert_type=AlertType.NOTIFY, reminder_minutes=90
    )

    assert default.reminder_minutes == 30
    assert custom.reminder_minutes == 90
    assert notify.reminder_minutes == 30


def test_viewer_cannot_create_meeting(db, viewer_session, test_client_record):
    with pytest.raises(PermissionDeniedError):
        _create(db, viewer_session, test_client_record)


def test_reschedule_rearms_reminder(db, editor_session, test_client_record):
    meeting = _create(db, editor_session, test_client_record, alert_type=AlertType.REMIND)
    meeting.reminder_sent = True
    db.flush()

    meeting_service.reschedule_meeting(db, editor_session, meeting, date(2030, 6, 2), time(15, 0))

    assert meeting.start_date == date(2030, 6, 2)
    assert meeting.start_time == time(15, 0)
    assert meeting.reminder_sent is False


def test_list_meetings_orders_by_date_and_time(db, editor_session, test_client_record):
    late = _create(db, editor_session, test_client_record, start_time=time(16, 0))
    early = _create(db, editor_session, test_client_record, start_time=time(9, 0))
    other_day = _create(db, editor_session, test_client_record, start_date=date(2030, 4, 1))

    meetings = meeting_service.list_meetings(db, editor_session.org_id)

    assert [m.id for m in meetings] == [other_day.id, early.id, late.id]


def test_attachment_upload_records_entry_and_blob(db, editor_session, test_client_record):
    meeting = _create(db, editor_session, test_client_record)

    _upload(db, editor_session, meeting)

    [entry] = meeting.attachments
    assert entry["name"] == "agenda.pdf"
    assert entry["size"] == len(b"%PDF-1.4 agenda")
    assert entry["path"].startswith(f"meeting-attachments/{editor_session.org_id}/")
    assert os.path.isfile(storage_service.local_path(entry["path"]))


def test_attachment_with_disallowed_extension_rejected(db, editor_session, test_client_record):
    meeting = _create(db, editor_session, test_client_record)

    with pytest.raises(ValueError):
        _upload(db, editor_session, meeting, name="payload.exe")
    assert meeting.attachments == []


def test_attachment_metadata_failure_removes_blob(db, editor_session, test_client_record, monkeypatch, local_storage):
    meeting = _create(db, editor_session, test_client_record)

    def fail(*args, **kwargs):
        raise SQLAlchemyError("write failed")

    monkeypatch.setattr(meeting_service.activity_service, "log_activity", fail)

    with pytest.raises(SQLAlchemyError):
        _upload(db, editor_session, meeting)

    prefix_dir = local_storage / "meeting-attachments" / str(editor_session.org_id)
    assert not prefix_dir.exists() or list(prefix_dir.iterdir()) == []


def test_delete_meeting_removes_attachment_blobs(db, editor_session, manager_session, test_client_record):
    meeting = _create(db, editor_session, test_client_record)
    _upload(db, editor_session, meeting)
    path = storage_service.local_path(meeting.attachments[0]["path"])

    meeting_service.delete_meeting(db, manager_session, meeting)

    assert not os.path.exists(path)
    assert meeting_service.get_meeting(db, manager_session.org_id, meeting.id) is None


def test_blob_delete_failure_queues_cleanup_job(db, editor_session, manager_session, test_client_record, monkeypatch):
    meeting = _create(db, editor_session, test_client_record)
    _upload(db, editor_session, meeting)
    key = meeting.attachments[0]["path"]

    def broken_delete(storage_key):
        raise StorageError("backend unavailable")

    monkeypatch.setattr(storage_service, "delete_blob", broken_delete)
    meeting_service.delete_meeting(db, manager_session, meeting)

    job = db.query(Job).filter(Job.job_type == JobType.STORAGE_CLEANUP.value).one()
    assert job.payload == {"storage_key": key}


def test_attachment_url_only_for_recorded_keys(db, editor_session, test_client_record):
    meeting = _create(db, editor_session, test_client_record)
    _upload(db, editor_session, meeting)
    key = meeting.attachments[0]["path"]

    assert meeting_service.attachment_url(meeting, key).startswith("/files/local/")
    assert meeting_service.attachment_url(meeting, "meeting-attachments/other/file.pdf") is None
