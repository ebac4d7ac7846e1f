"""Pytest fixtures for leasetrack tests."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from leasetrack.main import app
from leasetrack.services.project_access import ProjectAccessResult


class FakeSessionFactory:
    """Stands in for async_sessionmaker: ``async with factory() as db`` yields one AsyncMock."""

    def __init__(self):
        self.db = AsyncMock()
        self.db.add = MagicMock()
        self.opened = 0

    def __call__(self):
        self.opened += 1
        return self

    async def __aenter__(self):
        return self.db

    async def __aexit__(self, *exc):
        return False


def all_projects_visible(project_ids):
    return {pid: ProjectAccessResult(is_valid=True, exists=True, has_access=True) for pid in project_ids}


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def open_validator():
    """Access validator stub that finds every project."""
    validator = MagicMock()
    validator.validate_many = AsyncMock(side_effect=all_projects_visible)
    return validator
