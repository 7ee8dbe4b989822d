"""Shared upstream fixtures for pipeline tests."""

import httpx
import pytest

from zdravniki.clients.sledilnik import SledilnikClient

BASE = "https://data.example.com/csv"
DOCTORS_URL = f"{BASE}/doctors.csv"
INSTITUTIONS_URL = f"{BASE}/institutions.csv"
DOCTORS_TS_URL = f"{BASE}/doctors.csv.timestamp"
INSTITUTIONS_TS_URL = f"{BASE}/institutions.csv.timestamp"

DOCTOR_COLUMNS = [
    "doctor", "type", "id_inst", "accepts", "availability", "load",
    "email", "phone", "website", "address", "city", "municipality",
    "municipalityPart", "post", "lat", "lon",
]
INSTITUTION_COLUMNS = [
    "id_inst", "zzzsSt", "name", "unit", "address", "post", "city",
    "municipality", "municipalityPart", "phone", "website", "email", "lat", "lon",
]


def csv_text(columns: list[str], rows: list[dict[str, str]]) -> str:
    """Render rows as CSV, leaving unspecified columns empty."""
    lines = [",".join(columns)]
    lines += [",".join(row.get(c, "") for c in columns) for row in rows]
    return "\n".join(lines) + "\n"


DOCTORS_CSV = csv_text(DOCTOR_COLUMNS, [
    {"doctor": "Ana Novak", "type": "gp", "id_inst": "100", "accepts": "y",
     "availability": "1", "load": "0.85"},
    {"doctor": "Bor Kos", "type": "den", "id_inst": "100", "accepts": "n",
     "availability": "0.5", "load": "120", "email": "bor@zd.si"},
    {"doctor": "Cene Zupan", "type": "ped", "id_inst": "999", "accepts": "y",
     "availability": "1", "load": "1"},
    {"doctor": "Broken Row", "type": "gp", "id_inst": "100", "accepts": "y",
     "availability": "", "load": "1"},
])

INSTITUTIONS_CSV = csv_text(INSTITUTION_COLUMNS, [
    {"id_inst": "100", "zzzsSt": "01234", "name": "ZD Ljubljana", "unit": "Center",
     "address": "Metelkova 9", "post": "1000 Ljubljana", "city": "Ljubljana",
     "municipality": "Ljubljana", "lat": "46.05", "lon": "14.5"},
    {"id_inst": "200", "zzzsSt": "05678", "name": "ZD Kranj", "unit": "",
     "address": "Gosposvetska 10", "post": "4000 Kranj", "city": "Kranj",
     "municipality": "Kranj"},
])


class StepClock:
    """Clock advancing a fixed step on every read."""

    def __init__(self, step: float = 0.25) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_client() -> SledilnikClient:
    return SledilnikClient(
        doctors_url=DOCTORS_URL,
        institutions_url=INSTITUTIONS_URL,
        doctors_ts_url=DOCTORS_TS_URL,
        institutions_ts_url=INSTITUTIONS_TS_URL,
    )


@pytest.fixture
def upstream(respx_mock):
    """Mock all four upstream resources; returns the routes by name."""
    return {
        "doctors_ts": respx_mock.get(DOCTORS_TS_URL).mock(
            return_value=httpx.Response(200, text="1700000000")
        ),
        "institutions_ts": respx_mock.get(INSTITUTIONS_TS_URL).mock(
            return_value=httpx.Response(200, text="1700000100")
        ),
        "doctors": respx_mock.get(DOCTORS_URL).mock(
            return_value=httpx.Response(200, text=DOCTORS_CSV)
        ),
        "institutions": respx_mock.get(INSTITUTIONS_URL).mock(
            return_value=httpx.Response(200, text=INSTITUTIONS_CSV)
        ),
    }


@pytest.fixture
def client_factory():
    return make_client


@pytest.fixture
def step_clock():
    return StepClock()


@pytest.fixture
def fake_clock():
    return FakeClock()
