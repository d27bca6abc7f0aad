"""Shared fixtures: deterministic clock, memory backend, services, API client."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from appro.main import create_app
from appro.repositories.memory import MemoryBackend
from appro.services.procurement import ProcurementService

from tests.factories import StepClock


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return StepClock(datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def service(memory_backend, clock):
    return ProcurementService(memory_backend.repositories, clock=clock)


@pytest.fixture
def client():
    app = create_app(MemoryBackend())
    with TestClient(app) as c:
        yield c
