"""
Shared test fixtures.

No real network: the client talks to the record service in-process
through httpx.ASGITransport, wrapped so tests can cut the "network".
"""

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from expense_tracker.config import ClientSettings, ServerSettings
from expense_tracker.models import Expense, ExpenseCategory, ExpenseFields
from expense_tracker.orchestrator import create_app_components
from expense_tracker.server import create_app
from expense_tracker.services.storage import (
    InMemoryExpenseRepository,
    SqlAlchemyLocalStore,
)


class SwitchableTransport(httpx.AsyncBaseTransport):
    """
    ASGI transport with an on/off switch.

    While offline every request fails with httpx.ConnectError, the way an
    unreachable host does. Every request that reaches the app is recorded
    as (method, path, json_body). Methods listed in `lose_responses_for`
    reach the app, but their response is lost to an httpx.ReadTimeout.
    """

    def __init__(self, app):
        self._inner = httpx.ASGITransport(app=app)
        self.online = True
        self.requests: list[tuple[str, str, object]] = []
        self.lose_responses_for: set[str] = set()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not self.online:
            raise httpx.ConnectError("network unreachable", request=request)
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        response = await self._inner.handle_async_request(request)
        if request.method in self.lose_responses_for:
            await response.aclose()
            raise httpx.ReadTimeout("response lost", request=request)
        return response

    def calls(self, method: str) -> list[tuple[str, str, object]]:
        return [r for r in self.requests if r[0] == method]


@pytest.fixture
def coffee_fields():
    return ExpenseFields(
        amount=Decimal("12.50"),
        description="Coffee",
        category=ExpenseCategory.FOOD,
        date=date(2024, 1, 15),
    )


@pytest.fixture
def coffee_expense(coffee_fields):
    return Expense(id="1", **coffee_fields.model_dump())


@pytest.fixture
def repository():
    return InMemoryExpenseRepository()


@pytest.fixture
def transport(repository):
    return SwitchableTransport(create_app(repository=repository, settings=ServerSettings()))


@pytest.fixture
def client_settings():
    return ClientSettings(
        api_base="http://testserver",
        local_db_url="sqlite://",
        offline_after_failures=2,
    )


@pytest.fixture
def components(client_settings, transport):
    return create_app_components(settings=client_settings, transport=transport)


@pytest.fixture
def local_store():
    return SqlAlchemyLocalStore.from_url("sqlite://")
