"""
Pytest configuration file for the Coldesthetic test suite.

This file defines shared fixtures used across the test files. It includes:
- `FakeHttp`, a stand-in for `requests.Session` that answers from a routing table
  and records every call, so tests never reach a real backend.
- Fixtures wiring an `ApiClient`, `ClinicService`, `SessionStore` and
  `RegistrationWizard` to that fake, with a controllable clock and a fixed "today".
"""
import datetime
import json

import pytest

from clinic.api import ApiClient
from clinic.config import API_PREFIX
from clinic.services import ClinicService
from clinic.session import SessionStore
from clinic.wizard import RegistrationWizard

BASE_URL = "http://backend.test"
TODAY = datetime.date(2025, 6, 15)

ADMIN_USER = {"id": 1, "name": "Clínica Coldesthetic", "email": "admin@coldesthetic.co", "role": "ADMIN",
              "status": "active"}
REMITENTE_USER = {"id": 7, "name": "Dr. Ruiz", "email": "ruiz@correo.co", "role": "REMITENTE",
                  "status": "active"}


class FakeResponse:
    """The subset of `requests.Response` the client reads."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.content = b"" if payload is None else json.dumps(payload).encode("utf-8")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.content)


class FakeHttp:
    """Answers requests from a `(method, path)` routing table and records them.

    Paths are relative to the API prefix ("patients/3"), except absolute ones
    such as "/sanctum/csrf-cookie". Unrouted requests get a 404.
    """

    def __init__(self):
        self.headers = {}
        self.cookies = {}
        self.routes = {}
        self.calls = []

    def add(self, method, path, payload=None, status=200, raises=None, cookies=None):
        self.routes[(method, path)] = (status, payload, raises, cookies or {})

    def request(self, method, url, params=None, json=None, data=None, files=None, headers=None, timeout=None):
        path = url[len(BASE_URL):]
        if path.startswith(API_PREFIX + "/"):
            path = path[len(API_PREFIX) + 1:]
        self.calls.append({
            "method": method,
            "path": path,
            "params": params,
            "json": json,
            "data": data,
            "files": files,
            "headers": dict(headers or {}),
        })
        route = self.routes.get((method, path))
        if route is None:
            return FakeResponse(404, {"message": "Not Found"})
        status, payload, raises, cookies = route
        if raises is not None:
            raise raises
        self.cookies.update(cookies)
        return FakeResponse(status, payload)

    def paths(self, method=None):
        return [call["path"] for call in self.calls if method is None or call["method"] == method]


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def http():
    """Provides an empty `FakeHttp`; tests add the routes they need."""
    return FakeHttp()


@pytest.fixture
def api(http):
    return ApiClient(base_url=BASE_URL, http=http)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(api, clock):
    return ClinicService(api, ttl=30, clock=clock)


@pytest.fixture
def session_store(api):
    return SessionStore(api)


@pytest.fixture
def wizard():
    """A wizard whose notion of "today" is fixed to 2025-06-15."""
    return RegistrationWizard(today=lambda: TODAY)


@pytest.fixture
def complete_wizard(wizard):
    """A wizard filled in on every step and positioned on the last one."""
    wizard.first_name = "Ana"
    wizard.last_name = "Gómez"
    wizard.date_of_birth = datetime.date(1990, 3, 2)
    wizard.cedula = "1020304050"
    wizard.cellphone = "300 123 4567"
    wizard.biological_sex = "Femenino"
    wizard.weight = "65"
    wizard.height = "1,62"
    wizard.medical_background = "Sin antecedentes"
    wizard.toggle_procedure("Drenaje linfático")
    wizard.set_price("Drenaje linfático", "150000")
    wizard.notes = "Control en 8 días"
    wizard.go_to(2)
    return wizard
