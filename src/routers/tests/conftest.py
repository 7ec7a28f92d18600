"""Shared fixtures for API tests."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from src.config import Settings
from src.main import create_app

USER_ID = "user-123"


@pytest.fixture
def settings() -> Settings:
    return Settings(rate_limit_enabled=False)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """A client against a fresh app, with its own empty period store."""
    with TestClient(create_app(settings=settings)) as c:
        yield c


@pytest.fixture
def logged_history(client: TestClient) -> list[dict]:
    """Two periods 28 days apart, the last one starting 2024-01-10."""
    created = []
    for start, end in (("2023-12-13", "2023-12-17"), ("2024-01-10", "2024-01-14")):
        resp = client.post(
            f"/api/periods/{USER_ID}",
            json={"startDate": start, "endDate": end, "flow": "medium"},
        )
        assert resp.status_code == 201
        created.append(resp.json())
    return created
