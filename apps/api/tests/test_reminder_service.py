"""Reminder selection and the due-reminder sweep."""
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from advisor_desk.db.enums import AlertType, MeetingType
from advisor_desk.db.models import ScheduledMeeting
from advisor_desk.services import reminder_service

KOLKATA = ZoneInfo("Asia/Kolkata")
NOW = datetime(2025, 3, 10, 10, 0, tzinfo=KOLKATA)


def _meeting(db, org, client, at: time, day=date(2025, 3, 10), alert=AlertType.REMIND, minutes=30):
    meeting = ScheduledMeeting(
        organization_id=org.id,
        client_id=client.id,
        meeting_type=MeetingType.ONLINE.value,
        start_date=day,
        start_time=at,
        location="Online",
        alert_type=alert.value,
        reminder_minutes=minutes,
        attachments=[],
        created_by_name="Test Manager",
    )
    db.add(meeting)
    db.flush()
    return meeting


def test_upcoming_reminders_within_window(db, test_org, test_client_record):
    soon = _meeting(db, test_org, test_client_record, time(11, 0))
    _meeting(db, test_org, test_client_record, time(11, 0), alert=AlertType.NOTIFY)
    _meeting(db, test_org, test_client_record, time(9, 0))
    _meeting(db, test_org, test_client_record, time(12, 0), day=date(2025, 3, 12))

    notices = reminder_service.upcoming_reminders(db, test_org.id, now=NOW, window=timedelta(hours=24))

    assert [n.meeting.id for n in notices] == [soon.id]
    assert notices[0].remind_at == datetime(2025, 3, 10, 10, 30, tzinfo=KOLKATA)


def test_sweep_flags_due_reminders_once(db, test_org, test_client_record):
    due = _meeting(db, test_org, test_client_record, time(10, 20))
    later = _meeting(db, test_org, test_client_record, time(15, 0))

    first = reminder_service.sweep_due_reminders(db, now=NOW)
    second = reminder_service.sweep_due_reminders(db, now=NOW)

    assert [n.meeting.id for n in first] == [due.id]
    assert second == []
    assert due.reminder_sent is True
    assert later.reminder_sent is False


def test_sweep_ignores_started_meetings(db, test_org, test_client_record):
    started = _meeting(db, test_org, test_client_record, time(9, 50))

    assert reminder_service.sweep_due_reminders(db, now=NOW) == []
    assert started.reminder_sent is False


def test_long_lead_reminder_for_tomorrow(db, test_org, test_client_record):
    tomorrow = _meeting(db, test_org, test_client_record, time(9, 0), day=date(2025, 3, 11), minutes=24 * 60)

    notices = reminder_service.sweep_due_reminders(db, now=NOW)

    assert [n.meeting.id for n in notices] == [tomorrow.id]
