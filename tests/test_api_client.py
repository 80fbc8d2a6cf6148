"""Tests for the appointments REST client."""
import pytest
import pytz
import requests
from datetime import date, datetime
from unittest.mock import Mock

from backend.api_client import AppointmentsClient, ApiError, parse_appointments
from backend.appointment import Appointment, AppointmentDetail, QuickCreatePayload


def make_response(body=None, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


@pytest.fixture
def client(session):
    return AppointmentsClient("http://crm.test/", token="secret", timeout=12, session=session)


class TestFetchAppointments:
    """Tests for the calendar range request."""

    def test_request_parameters(self, client, session, api_record):
        """Test the range and assignee are sent as query parameters."""
        session.request.return_value = make_response([api_record])

        appointments = client.fetch_appointments(date(2024, 2, 25), date(2024, 4, 6), assignee="17")

        session.request.assert_called_once_with(
            'GET', 'http://crm.test/api/v1/appointments/calendar/', timeout=12,
            params={'start_date': '2024-02-25', 'end_date': '2024-04-06', 'assigned_to': '17'}
        )
        assert [a.id for a in appointments] == ["a1b2"]

    def test_no_assignee(self, client, session):
        """Test assigned_to is left out when no filter is set."""
        session.request.return_value = make_response([])

        client.fetch_appointments(date(2024, 3, 10), date(2024, 3, 16))

        params = session.request.call_args.kwargs['params']
        assert 'assigned_to' not in params

    def test_auth_headers(self, client, session):
        """Test the bearer token and accept headers."""
        assert session.headers['Authorization'] == "Bearer secret"
        assert session.headers['Accept'] == "application/json"
        assert client.base_url == "http://crm.test"

    def test_no_token(self, session):
        """Test no Authorization header without a token."""
        AppointmentsClient("http://crm.test", session=session)
        assert 'Authorization' not in session.headers

    def test_paginated_body(self, client, session, api_record):
        """Test DRF paginated bodies are unwrapped."""
        session.request.return_value = make_response({"count": 1, "results": [api_record]})
        assert len(client.fetch_appointments(date(2024, 3, 10), date(2024, 3, 16))) == 1

    def test_http_error(self, client, session):
        """Test non-2xx responses raise ApiError with the server detail."""
        session.request.return_value = make_response({"detail": "Authentication failed."}, 401)

        with pytest.raises(ApiError) as exc_info:
            client.fetch_appointments(date(2024, 3, 10), date(2024, 3, 16))

        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "Authentication failed."

    def test_connection_error(self, client, session):
        """Test transport failures raise ApiError."""
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ApiError):
            client.fetch_appointments(date(2024, 3, 10), date(2024, 3, 16))

    def test_invalid_json(self, client, session):
        """Test unparseable bodies raise ApiError."""
        response = make_response()
        response.json.side_effect = ValueError("Expecting value")
        session.request.return_value = response

        with pytest.raises(ApiError):
            client.fetch_appointments(date(2024, 3, 10), date(2024, 3, 16))


class TestParseAppointments:
    """Tests for record list parsing."""

    def test_malformed_records_skipped(self, api_record):
        """Test bad records are dropped and the rest kept."""
        broken = dict(api_record, id="bad", start_datetime=None)
        appointments = parse_appointments([broken, api_record])
        assert [a.id for a in appointments] == ["a1b2"]

    def test_empty(self):
        """Test empty and missing bodies."""
        assert parse_appointments([]) == []
        assert parse_appointments(None) == []


class TestCreateAndDetail:
    """Tests for quick-create and the detail request."""

    def test_create_posts_payload(self, client, session, api_record):
        """Test quick-create sends the payload body and parses the result."""
        session.request.return_value = make_response(api_record, 201)
        payload = QuickCreatePayload(
            title="Intake call",
            contact="c1",
            start=pytz.UTC.localize(datetime(2024, 3, 15, 9, 30)),
            end=pytz.UTC.localize(datetime(2024, 3, 15, 10, 30)),
        )

        created = client.create_appointment(payload)

        session.request.assert_called_once_with(
            'POST', 'http://crm.test/api/v1/appointments/quick-create/', timeout=12,
            json=payload.to_api()
        )
        assert isinstance(created, Appointment)
        assert created.id == "a1b2"

    def test_create_validation_error(self, client, session):
        """Test field errors are joined into the message."""
        session.request.return_value = make_response({"contact": ["This field is required."]}, 400)
        payload = QuickCreatePayload(
            title="x", contact="",
            start=pytz.UTC.localize(datetime(2024, 3, 15, 9, 30)),
            end=pytz.UTC.localize(datetime(2024, 3, 15, 10, 30)),
        )

        with pytest.raises(ApiError) as exc_info:
            client.create_appointment(payload)

        assert str(exc_info.value) == "contact: This field is required."

    def test_detail(self, client, session, api_record):
        """Test the detail path and result type."""
        session.request.return_value = make_response(dict(api_record, description="Notes here"))

        detail = client.fetch_appointment_detail("a1b2")

        assert session.request.call_args.args == ('GET', 'http://crm.test/api/v1/appointments/a1b2/')
        assert isinstance(detail, AppointmentDetail)
        assert detail.description == "Notes here"

    def test_close(self, client, session):
        """Test close() closes the session."""
        client.close()
        session.close.assert_called_once()
