"""Tests for the quick-create and detail panel flows."""
import pytest
import pytz
from datetime import datetime
from unittest.mock import Mock

from backend.flows import (
    QuickCreateForm, QuickCreateFlow, DetailPanelFlow, validate_form, build_payload,
    MISSING_FIELDS_MESSAGE, END_BEFORE_START_MESSAGE, CREATE_FAILED_MESSAGE, SUBMIT_PENDING_MESSAGE,
    DETAIL_KIND
)
from backend.timezone_utils import set_timezone


def valid_form(**overrides):
    values = dict(
        title="Follow-up",
        contact="c1",
        start=datetime(2024, 3, 15, 14, 15),
        end=datetime(2024, 3, 15, 14, 45),
    )
    values.update(overrides)
    return QuickCreateForm(**values)


class TestValidation:
    """Tests for quick-create form validation."""

    @pytest.mark.parametrize("overrides", [
        {"title": ""},
        {"title": "   "},
        {"contact": ""},
        {"start": None},
        {"end": None},
    ])
    def test_missing_fields(self, overrides):
        """Test required fields."""
        assert validate_form(valid_form(**overrides)) == MISSING_FIELDS_MESSAGE

    @pytest.mark.parametrize("end", [datetime(2024, 3, 15, 14, 15), datetime(2024, 3, 15, 13, 0)])
    def test_end_not_after_start(self, end):
        """Test the end must be strictly after the start."""
        assert validate_form(valid_form(end=end)) == END_BEFORE_START_MESSAGE

    def test_valid(self):
        """Test a complete form passes."""
        assert validate_form(valid_form()) is None

    def test_payload_in_utc(self):
        """Test local form times are sent as UTC."""
        set_timezone("Europe/Berlin")
        payload = build_payload(valid_form(title="  Follow-up  ", assigned_to=" u1 "))

        assert payload.start == pytz.UTC.localize(datetime(2024, 3, 15, 13, 15))
        assert payload.end == pytz.UTC.localize(datetime(2024, 3, 15, 13, 45))
        assert payload.title == "Follow-up"
        assert payload.assigned_to == "u1"
        assert payload.location == "office"
        assert payload.color == "#2563eb"


class TestQuickCreateFlow:
    """Tests for submitting the quick-create form."""

    @pytest.fixture
    def client(self):
        return Mock()

    @pytest.fixture
    def flow(self, client, worker):
        return QuickCreateFlow(client, worker)

    def test_invalid_form_not_submitted(self, flow, worker):
        """Test validation errors are returned and nothing is sent."""
        assert flow.submit(valid_form(contact="")) == MISSING_FIELDS_MESSAGE
        assert worker.submitted == []
        assert not flow.is_submitting

    def test_submit_and_created(self, flow, client, worker):
        """Test a valid form is posted and created is emitted."""
        created = []
        flow.created.connect(created.append)

        assert flow.submit(valid_form()) is None
        operation_id, func, args, _ = worker.submitted[-1]
        assert operation_id == "create:1"
        assert func is client.create_appointment
        assert args[0].title == "Follow-up"
        assert flow.is_submitting

        result = object()
        worker.resolve(operation_id, result)
        assert created == [result]
        assert not flow.is_submitting

    def test_failure_message(self, flow, worker):
        """Test API failures become a user-facing message."""
        failed = []
        flow.failed.connect(failed.append)
        flow.submit(valid_form())
        worker.fail(worker.last_operation_id, "ApiError: contact: invalid")
        assert failed == [CREATE_FAILED_MESSAGE]
        assert not flow.is_submitting

    def test_second_submit_refused_while_pending(self, flow, worker):
        """Test only one create request is in flight at a time."""
        created = []
        flow.created.connect(created.append)
        assert flow.submit(valid_form()) is None
        assert flow.current_sequence == 1

        assert flow.submit(valid_form(title="Second")) == SUBMIT_PENDING_MESSAGE
        assert [op for op, *_ in worker.submitted] == ["create:1"]
        assert flow.current_sequence == 1

        worker.resolve("create:1", "first")
        assert created == ["first"]
        assert flow.submit(valid_form(title="Second")) is None
        assert worker.last_operation_id == "create:2"

    def test_stale_response_ignored(self, flow, worker):
        """Test a response for an older sequence does not count."""
        created = []
        flow.created.connect(created.append)
        flow.submit(valid_form())
        worker.resolve("create:1", "first")
        flow.submit(valid_form())

        worker.resolve("create:1", "again")
        assert created == ["first"]
        assert flow.is_submitting


class TestDetailPanelFlow:
    """Tests for loading appointment details."""

    @pytest.fixture
    def client(self):
        return Mock()

    @pytest.fixture
    def flow(self, client, worker):
        return DetailPanelFlow(client, worker)

    @pytest.fixture
    def appointment(self, make_appointment):
        return make_appointment(pytz.UTC.localize(datetime(2024, 3, 15, 9, 0)), id="a1")

    def test_open_requests_detail(self, flow, client, worker, appointment):
        """Test opening an appointment shows it and requests its detail."""
        loading = []
        flow.loading.connect(loading.append)

        flow.open_appointment(appointment)

        assert loading == [appointment]
        assert flow.current is appointment
        operation_id, func, args, _ = worker.submitted[-1]
        assert operation_id == "detail:1"
        assert func is client.fetch_appointment_detail
        assert args == ("a1",)
        assert DETAIL_KIND in worker.cancelled_kinds

    def test_loaded(self, flow, worker, appointment):
        """Test the detail is delivered."""
        loaded = []
        flow.loaded.connect(loaded.append)
        flow.open_appointment(appointment)
        worker.resolve(worker.last_operation_id, "detail")
        assert loaded == ["detail"]

    def test_switching_appointments(self, flow, worker, appointment, make_appointment):
        """Test the detail of a previously clicked appointment is dropped."""
        loaded = []
        flow.loaded.connect(loaded.append)
        flow.open_appointment(appointment)
        first = worker.last_operation_id
        flow.open_appointment(make_appointment(pytz.UTC.localize(datetime(2024, 3, 15, 11, 0))))

        worker.resolve(first, "stale")
        assert loaded == []

    def test_cleared(self, flow, worker, appointment):
        """Test nothing is delivered after the panel is closed."""
        loaded = []
        flow.loaded.connect(loaded.append)
        flow.open_appointment(appointment)
        flow.clear()
        worker.resolve(worker.last_operation_id, "detail")
        assert loaded == []
        assert flow.current is None

    def test_failure(self, flow, worker, appointment):
        """Test a failed detail request."""
        failed = []
        flow.failed.connect(failed.append)
        flow.open_appointment(appointment)
        worker.fail(worker.last_operation_id)
        assert failed == [DetailPanelFlow.LOAD_FAILED_MESSAGE]
