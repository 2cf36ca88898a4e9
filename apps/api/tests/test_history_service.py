"""Meeting history listing and minutes-of-meeting files."""
import io
import os
import uuid
from datetime import date, time

import pytest

from advisor_desk.core.permissions import PermissionDeniedError
from advisor_desk.db.enums import AlertType, HistoryPeriod, MeetingType
from advisor_desk.db.models import MeetingHistory
from advisor_desk.services import history_service, storage_service


def _history(db, org, client, day: date, **kwargs) -> MeetingHistory:
    history = MeetingHistory(
        organization_id=org.id,
        original_meeting_id=uuid.uuid4(),
        client_id=client.id,
        client_name=kwargs.pop("client_name", client.name),
        meeting_type=kwargs.pop("meeting_type", MeetingType.FACE_TO_FACE.value),
        start_date=day,
        start_time=kwargs.pop("start_time", time(10, 0)),
        location=kwargs.pop("location", "Bandra office"),
        agenda=kwargs.pop("agenda", None),
        alert_type=AlertType.NONE.value,
        attachments=[],
        mom_files=[],
        created_by_name="Test Manager",
    )
    db.add(history)
    db.flush()
    return history


def _upload_mom(db, session, history, name="minutes.docx", content=b"minutes of the meeting"):
    return history_service.add_mom_file(
        db, session, history, name, "application/octet-stream", io.BytesIO(content), len(content)
    )


def test_list_history_most_recent_first(db, test_org, test_client_record):
    older = _history(db, test_org, test_client_record, date(2025, 1, 5))
    newer = _history(db, test_org, test_client_record, date(2025, 2, 5))

    rows = history_service.list_history(db, test_org.id)

    assert [h.id for h in rows] == [newer.id, older.id]


def test_list_history_search_matches_agenda_and_location(db, test_org, test_client_record):
    review = _history(db, test_org, test_client_record, date(2025, 1, 5), agenda="Portfolio review")
    _history(db, test_org, test_client_record, date(2025, 1, 6), location="Pune branch")

    assert [h.id for h in history_service.list_history(db, test_org.id, search="portfolio")] == [review.id]
    assert len(history_service.list_history(db, test_org.id, search="PUNE")) == 1


def test_list_history_this_week_runs_sunday_to_saturday(db, test_org, test_client_record):
    # 2025-03-12 is a Wednesday; its week is Sun 9th .. Sat 15th
    sunday = _history(db, test_org, test_client_record, date(2025, 3, 9))
    saturday = _history(db, test_org, test_client_record, date(2025, 3, 15))
    _history(db, test_org, test_client_record, date(2025, 3, 8))
    _history(db, test_org, test_client_record, date(2025, 3, 16))

    rows = history_service.list_history(
        db, test_org.id, period=HistoryPeriod.THIS_WEEK, today=date(2025, 3, 12)
    )

    assert {h.id for h in rows} == {sunday.id, saturday.id}


def test_list_history_this_month_and_type_filter(db, test_org, test_client_record):
    online = _history(db, test_org, test_client_record, date(2025, 3, 1), meeting_type=MeetingType.ONLINE.value, location="Online")
    _history(db, test_org, test_client_record, date(2025, 3, 31))
    _history(db, test_org, test_client_record, date(2025, 4, 1), meeting_type=MeetingType.ONLINE.value, location="Online")

    month = history_service.list_history(db, test_org.id, period=HistoryPeriod.THIS_MONTH, today=date(2025, 3, 20))
    online_month = history_service.list_history(
        db, test_org.id, period=HistoryPeriod.THIS_MONTH, meeting_type=MeetingType.ONLINE, today=date(2025, 3, 20)
    )

    assert len(month) == 2
    assert [h.id for h in online_month] == [online.id]


def test_history_is_scoped_to_org(db, test_org, other_org, test_client_record):
    _history(db, test_org, test_client_record, date(2025, 1, 5))

    assert history_service.list_history(db, other_org.id) == []


def test_mom_upload_leaves_attachments_untouched(db, editor_session, test_org, test_client_record):
    history = _history(db, test_org, test_client_record, date(2025, 1, 5))

    _upload_mom(db, editor_session, history)

    [entry] = history.mom_files
    assert entry["name"] == "minutes.docx"
    assert entry["path"].startswith(f"mom-files/{test_org.id}/")
    assert history.attachments == []
    assert os.path.isfile(storage_service.local_path(entry["path"]))


def test_viewer_cannot_upload_mom(db, viewer_session, test_org, test_client_record):
    history = _history(db, test_org, test_client_record, date(2025, 1, 5))

    with pytest.raises(PermissionDeniedError):
        _upload_mom(db, viewer_session, history)


def test_remove_mom_requires_manager(db, editor_session, manager_session, test_org, test_client_record):
    history = _history(db, test_org, test_client_record, date(2025, 1, 5))
    _upload_mom(db, editor_session, history)
    key = history.mom_files[0]["path"]

    with pytest.raises(PermissionDeniedError):
        history_service.remove_mom_file(db, editor_session, history, key)

    history_service.remove_mom_file(db, manager_session, history, key)
    assert history.mom_files == []
    assert not os.path.exists(storage_service.local_path(key))


def test_remove_unknown_mom_file(db, manager_session, test_org, test_client_record):
    history = _history(db, test_org, test_client_record, date(2025, 1, 5))

    with pytest.raises(LookupError):
        history_service.remove_mom_file(db, manager_session, history, "mom-files/nope.pdf")


def test_file_url_covers_mom_files_and_archived_attachments(db, editor_session, test_org, test_client_record):
    history = _history(db, test_org, test_client_record, date(2025, 1, 5))
    history.attachments = [{"name": "a.pdf", "path": "meeting-attachments/x/a.pdf", "size": 1, "uploaded_at": "2025-01-01"}]
    db.flush()
    _upload_mom(db, editor_session, history)

    assert history_service.file_url(history, history.mom_files[0]["path"])
    assert history_service.file_url(history, "meeting-attachments/x/a.pdf")
    assert history_service.file_url(history, "mom-files/unknown.pdf") is None
