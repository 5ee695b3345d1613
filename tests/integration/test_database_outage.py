"""Integration tests for requests made while the database is unreachable."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from backoffice.api.deps import get_db_session
from backoffice.api.main import app
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from tests.utils import ADMIN_ONE, SUPERADMIN, auth_headers


class UnreachableSession:
    """Session double whose every round trip fails like a dropped connection."""

    def _fail(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    async def execute(self, *args, **kwargs):
        self._fail()

    async def scalar(self, *args, **kwargs):
        self._fail()

    async def scalars(self, *args, **kwargs):
        self._fail()

    async def get(self, *args, **kwargs):
        self._fail()

    async def flush(self, *args, **kwargs):
        self._fail()

    async def commit(self) -> None:
        self._fail()

    async def rollback(self) -> None:
        return None

    async def close(self) -> None:
        return None

    def add(self, instance) -> None:
        return None


@pytest.fixture
def database_down(async_client: AsyncClient) -> AsyncClient:
    async def unreachable_session() -> AsyncIterator[UnreachableSession]:
        yield UnreachableSession()

    app.dependency_overrides[get_db_session] = unreachable_session
    return async_client


async def test_listing_notifications_reports_dependency_error(database_down: AsyncClient) -> None:
    response = await database_down.get("/notifications", headers=auth_headers(SUPERADMIN))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    body = response.json()
    assert body["kind"] == "dependency_error"
    assert body["detail"] == "Database is unavailable"
    assert "SELECT" not in body["detail"]


async def test_store_listing_reports_dependency_error(database_down: AsyncClient) -> None:
    response = await database_down.get("/stores", headers=auth_headers(ADMIN_ONE))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["kind"] == "dependency_error"
