"""
Client for the CRM appointments REST API.

All calls are blocking and meant to run on the NetworkWorker thread pool.
Failures of any kind surface as ApiError.
"""

from datetime import date
from typing import Optional

import requests

from .appointment import (
    Appointment, AppointmentDetail, QuickCreatePayload, MalformedAppointmentError
)
from .diagnostics import make_debug_printer


_debug_print = make_debug_printer("API")

CALENDAR_PATH = "/api/v1/appointments/calendar/"
QUICK_CREATE_PATH = "/api/v1/appointments/quick-create/"
DETAIL_PATH = "/api/v1/appointments/{id}/"


class ApiError(Exception):
    """A request to the appointments API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def _error_message(response: requests.Response) -> str:
    """Best-effort message from a DRF error body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        if 'detail' in body:
            return str(body['detail'])
        parts = []
        for key, value in body.items():
            if isinstance(value, list):
                value = " ".join(str(v) for v in value)
            parts.append(f"{key}: {value}")
        if parts:
            return "; ".join(parts)
    return f"HTTP {response.status_code}"


def parse_appointments(records) -> list[Appointment]:
    """Parse calendar records, skipping the ones that cannot be placed."""
    if isinstance(records, dict) and 'results' in records:
        records = records['results']
    appointments = []
    for record in records or []:
        try:
            appointments.append(Appointment.from_api(record))
        except MalformedAppointmentError as e:
            _debug_print(f"Skipping malformed appointment: {e}")
    return appointments


class AppointmentsClient:
    """
    Blocking client for the appointment endpoints the calendar needs.

    Args:
        base_url: Backend root, e.g. "https://crm.example.com"
        token: Optional bearer token
        timeout: Request timeout in seconds
        session: Optional pre-configured requests.Session
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            'User-Agent': 'CRM-Calendar/1.0',
            'Accept': 'application/json',
        })
        if token:
            self._session.headers['Authorization'] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"{method} {path} failed: {e}") from e
        if not response.ok:
            raise ApiError(_error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _json(response: requests.Response):
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from server: {e}", status_code=response.status_code) from e

    def fetch_appointments(self, start: date, end: date,
                           assignee: Optional[str] = None) -> list[Appointment]:
        """
        Appointments whose start lies in [start, end], both dates inclusive.
        """
        params = {
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
        }
        if assignee:
            params['assigned_to'] = assignee
        response = self._request('GET', CALENDAR_PATH, params=params)
        appointments = parse_appointments(self._json(response))
        _debug_print(f"fetch {start} .. {end} assignee={assignee or '-'}: {len(appointments)} appointments")
        return appointments

    def create_appointment(self, payload: QuickCreatePayload) -> Appointment:
        """Create an appointment through the quick-create endpoint."""
        response = self._request('POST', QUICK_CREATE_PATH, json=payload.to_api())
        data = self._json(response)
        _debug_print(f"created appointment {data.get('id') if isinstance(data, dict) else '?'}")
        try:
            return Appointment.from_api(data)
        except MalformedAppointmentError as e:
            raise ApiError(f"Server returned an unusable appointment: {e}") from e

    def fetch_appointment_detail(self, appointment_id: str) -> AppointmentDetail:
        """Full record for the detail panel."""
        response = self._request('GET', DETAIL_PATH.format(id=appointment_id))
        try:
            return AppointmentDetail.from_api(self._json(response))
        except MalformedAppointmentError as e:
            raise ApiError(f"Server returned an unusable appointment: {e}") from e

    def close(self) -> None:
        self._session.close()
