"""OEE Floor Dashboard - Pytest Configuration & Fixtures.

Provides an in-memory testing environment with:
1. Sample factories for building device telemetry.
2. Fake telemetry reader and machine catalog standing in for the database.
3. AsyncClient for testing FastAPI endpoints with the fakes wired in.

Usage:
    async def test_my_endpoint(client, reader, make_sample):
        reader.samples.append(make_sample(0, {"MC_STATUS": 1}))
        response = await client.get("/api/v1/device_data/DEV-1/...")
        assert response.status_code == 200
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from oee_dashboard.main import app
from oee_dashboard.api.v1.machines import get_dashboard_service
from oee_dashboard.models.machine import MachinePart, MachineResponse
from oee_dashboard.models.telemetry import Sample
from oee_dashboard.services.dashboard_service import DashboardService

BASE_TIME = datetime(2024, 3, 4, 8, 0, 0)


# =============================================================================
# Fakes
# =============================================================================

def _project(sample: Sample, keys: Optional[Sequence[str]]) -> Sample:
    if keys is None:
        return sample
    attributes = {key: sample.attributes.get(key) for key in keys}
    return Sample(device_id=sample.device_id, timestamp=sample.timestamp, attributes=attributes)


class FakeTelemetryReader:
    """In-memory stand-in for TelemetryReader."""

    def __init__(self):
        self.samples: List[Sample] = []
        self.latest_samples: Dict[Any, Sample] = {}
        self.error: Optional[Exception] = None
        self.calls: List[str] = []
        self.requested_keys: Optional[Sequence[str]] = None

    async def read(self, device_id, start, end):
        return (await self.read_devices([device_id], start, end))[device_id]

    async def read_devices(self, device_ids, start, end, keys=None):
        self.calls.append("read_devices")
        self.requested_keys = keys
        if self.error:
            raise self.error
        return {
            device_id: sorted(
                (_project(s, keys) for s in self.samples if s.device_id == device_id and start <= s.timestamp <= end),
                key=lambda s: s.timestamp,
            )
            for device_id in device_ids
        }

    async def latest(self, device_ids, lookback_minutes=15):
        self.calls.append("latest")
        if self.error:
            raise self.error
        return {d: self.latest_samples[d] for d in device_ids if d in self.latest_samples}


class FakeMachineCatalog:
    """In-memory stand-in for MachineCatalog."""

    def __init__(self, machines: List[MachineResponse]):
        self.machines = machines
        self.error: Optional[Exception] = None

    async def machines_for_company(self, company_id):
        if self.error:
            raise self.error
        return [m for m in self.machines if str(m.company_id) == str(company_id)]

    async def machine_by_uid(self, machine_uid):
        if self.error:
            raise self.error
        return next((m for m in self.machines if str(m.machine_uid) == str(machine_uid)), None)


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_sample():
    """Build a Sample `minutes` after BASE_TIME (or at an explicit `at`)."""
    def _make(minutes: float = 0.0, attributes: Optional[Dict[str, Any]] = None,
              device_id: str = "DEV-1", at: Optional[datetime] = None) -> Sample:
        timestamp = at if at is not None else BASE_TIME + timedelta(minutes=minutes)
        return Sample(device_id=device_id, timestamp=timestamp, attributes=attributes or {})
    return _make


@pytest.fixture
def machines() -> List[MachineResponse]:
    return [
        MachineResponse(
            machine_uid="a1",
            machine_id="DEV-1",
            machine_name="Drawing Line 1",
            machine_plant="Plant A",
            machine_model="DL-400",
            machine_customer="Acme Wire",
            machine_location="Hall 1",
            machine_longitude=72.87,
            machine_latitude=19.07,
            machine_type_name="Wire Drawing",
            company_id=1,
            model_data=[MachinePart(machine_part_id=10, machine_part_name="Capstan", machine_part_serial_no="CP-1")],
        ),
        MachineResponse(
            machine_uid="a2",
            machine_id="DEV-2",
            machine_name="Drawing Line 2",
            machine_type_name="Wire Drawing",
            company_id=1,
        ),
        MachineResponse(
            machine_uid="b1",
            machine_id="DEV-9",
            machine_name="Spooler",
            machine_type_name="Spooler",
            company_id=2,
        ),
    ]


@pytest.fixture
def reader() -> FakeTelemetryReader:
    return FakeTelemetryReader()


@pytest.fixture
def catalog(machines) -> FakeMachineCatalog:
    return FakeMachineCatalog(machines)


@pytest.fixture
def service(reader, catalog) -> DashboardService:
    return DashboardService(reader=reader, catalog=catalog)


@pytest.fixture
def window():
    return BASE_TIME, BASE_TIME + timedelta(hours=1)


# =============================================================================
# HTTP Client
# =============================================================================

@pytest_asyncio.fixture
async def client(service):
    """AsyncClient against the app with the dashboard service overridden."""
    app.dependency_overrides[get_dashboard_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.pop(get_dashboard_service, None)
