"""Tests for appointment records."""
import pytest
import pytz
from datetime import date, datetime

from backend.appointment import (
    Appointment, AppointmentDetail, QuickCreatePayload, MalformedAppointmentError,
    DEFAULT_APPOINTMENT_COLOR, status_label, location_label
)
from backend.timezone_utils import set_timezone


class TestAppointmentFromApi:
    """Tests for parsing calendar endpoint records."""

    def test_full_record(self, api_record):
        """Test every field is mapped."""
        appointment = Appointment.from_api(api_record)

        assert appointment.id == "a1b2"
        assert appointment.title == "Intake call"
        assert appointment.start == pytz.UTC.localize(datetime(2024, 3, 15, 9, 30))
        assert appointment.end == pytz.UTC.localize(datetime(2024, 3, 15, 10, 30))
        assert appointment.status == "confirmed"
        assert appointment.assignee_name == "Dana Reyes"
        assert appointment.contact_name == "Sam Lee"
        assert appointment.location == "virtual"
        assert appointment.color == "#16a34a"
        assert not appointment.is_recurring

    def test_missing_color_uses_default(self, api_record):
        """Test records without a color get the default."""
        api_record["color"] = None
        assert Appointment.from_api(api_record).color == DEFAULT_APPOINTMENT_COLOR
        del api_record["color"]
        assert Appointment.from_api(api_record).color == DEFAULT_APPOINTMENT_COLOR

    def test_numeric_id(self, api_record):
        """Test numeric ids become strings."""
        api_record["id"] = 42
        assert Appointment.from_api(api_record).id == "42"

    def test_offset_timestamp(self, api_record):
        """Test timestamps with an explicit offset."""
        api_record["start_datetime"] = "2024-03-15T09:30:00+02:00"
        appointment = Appointment.from_api(api_record)
        assert appointment.start.astimezone(pytz.UTC).hour == 7

    def test_recurring_series(self, api_record):
        """Test series masters and their occurrences are recurring."""
        api_record["recurrence_pattern"] = "weekly"
        assert Appointment.from_api(api_record).is_recurring

        api_record["recurrence_pattern"] = "none"
        api_record["parent_appointment"] = "root-1"
        occurrence = Appointment.from_api(api_record)
        assert occurrence.is_recurring
        assert occurrence.parent_id == "root-1"

    @pytest.mark.parametrize("field,value", [
        ("start_datetime", None),
        ("end_datetime", "not a date"),
        ("id", None),
    ])
    def test_malformed(self, api_record, field, value):
        """Test records that cannot be placed are rejected."""
        api_record[field] = value
        with pytest.raises(MalformedAppointmentError):
            Appointment.from_api(api_record)

    def test_end_before_start(self, api_record):
        """Test inverted time ranges are rejected."""
        api_record["end_datetime"] = "2024-03-15T08:00:00Z"
        with pytest.raises(MalformedAppointmentError):
            Appointment.from_api(api_record)

    def test_local_times(self, api_record):
        """Test local start follows the configured timezone."""
        set_timezone("Europe/Berlin")
        appointment = Appointment.from_api(api_record)
        assert appointment.local_start.hour == 10
        assert appointment.local_date == date(2024, 3, 15)


class TestLabels:
    """Tests for display labels."""

    def test_status_label(self):
        """Test known and unknown statuses."""
        assert status_label("in_progress") == "In Progress"
        assert status_label("on_hold") == "On Hold"

    def test_location_label(self):
        """Test known and unknown locations."""
        assert location_label("client_site") == "Client Site"
        assert location_label("garden") == "garden"
        assert location_label("") == ""


class TestAppointmentDetail:
    """Tests for the detail endpoint record."""

    @pytest.fixture
    def detail_record(self):
        return {
            "id": "a1b2",
            "title": "Intake call",
            "start_datetime": "2024-03-15T09:30:00Z",
            "end_datetime": "2024-03-15T10:30:00Z",
            "status": "scheduled",
            "location": "office",
            "description": "First meeting",
            "notes": "Bring forms",
            "contact": {"id": "c1", "first_name": "Sam", "last_name": "Lee"},
            "assigned_to": {"id": "u1", "full_name": "Dana Reyes"},
            "case": {"id": "k1", "case_number": "CASE-7", "title": "Custody review"},
            "recurrence_pattern": "weekly",
            "recurrence_end_date": "2024-04-30",
            "reminder_at": "2024-03-15T09:00:00Z",
        }

    def test_nested_objects(self, detail_record):
        """Test contact, assignee and case are flattened."""
        detail = AppointmentDetail.from_api(detail_record)

        assert detail.appointment.contact_name == "Sam Lee"
        assert detail.appointment.assignee_name == "Dana Reyes"
        assert detail.case_label == "CASE-7 - Custody review"
        assert detail.description == "First meeting"
        assert detail.notes == "Bring forms"
        assert detail.reminder_at == pytz.UTC.localize(datetime(2024, 3, 15, 9, 0))

    def test_recurrence_text(self, detail_record):
        """Test the recurrence summary."""
        detail = AppointmentDetail.from_api(detail_record)
        assert detail.recurrence_text == "Repeats weekly until Apr 30, 2024"

    def test_no_recurrence(self, detail_record):
        """Test single appointments have no recurrence text."""
        detail_record["recurrence_pattern"] = "none"
        detail_record["case"] = None
        detail = AppointmentDetail.from_api(detail_record)
        assert detail.recurrence_text == ""
        assert detail.case_label == ""


class TestQuickCreatePayload:
    """Tests for the quick-create request body."""

    def test_to_api(self):
        """Test body fields and ISO timestamps."""
        payload = QuickCreatePayload(
            title="Follow-up",
            contact="c1",
            start=pytz.UTC.localize(datetime(2024, 3, 15, 14, 15)),
            end=pytz.UTC.localize(datetime(2024, 3, 15, 14, 45)),
        )
        body = payload.to_api()
        assert body == {
            "title": "Follow-up",
            "contact": "c1",
            "start_datetime": "2024-03-15T14:15:00+00:00",
            "end_datetime": "2024-03-15T14:45:00+00:00",
            "location": "office",
            "color": "#2563eb",
        }

    def test_assignee_included_when_set(self):
        """Test assigned_to is only sent when chosen."""
        payload = QuickCreatePayload(
            title="Follow-up",
            contact="c1",
            start=pytz.UTC.localize(datetime(2024, 3, 15, 14, 15)),
            end=pytz.UTC.localize(datetime(2024, 3, 15, 14, 45)),
            assigned_to="u1",
        )
        assert payload.to_api()["assigned_to"] == "u1"
