"""
Remote Record Service Client

Thin async client for the /expenses endpoints.

DESIGN DECISION: A fresh httpx.AsyncClient is opened per call. The UI
runs each action in its own short-lived event loop, and a pooled client
cannot outlive the loop that created it. Requests are small and rare,
so connection reuse buys nothing here.

Error mapping:
- transport failure / timeout  -> RemoteUnavailableError
- 404                          -> RemoteNotFoundError
- any other non-2xx, bad body  -> RemoteRejectedError
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from expense_tracker.models.expense import Expense


logger = structlog.get_logger(__name__)

EXPENSES_PATH = "/expenses"


class RemoteError(Exception):
    """Base exception for record service calls."""
    pass


class RemoteUnavailableError(RemoteError):
    """The service could not be reached (network error or timeout)."""
    pass


class RemoteNotFoundError(RemoteError):
    """The service does not know the requested record."""
    pass


class RemoteRejectedError(RemoteError):
    """The service answered, but refused or garbled the request."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text


class RemoteExpenseClient:
    """
    Client for the remote record service.

    Args:
        base_url: Service root, e.g. http://localhost:3001
        timeout: Timeout for CRUD requests (seconds)
        probe_timeout: Timeout for the reachability probe (seconds)
        transport: Optional httpx transport (tests inject mock or ASGI transports)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        probe_timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._probe_timeout = probe_timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=self._transport,
        )

    def _expense_path(self, expense_id: str) -> str:
        return f"{EXPENSES_PATH}/{quote(expense_id, safe='')}"

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            async with self._client(self._timeout) as client:
                response = await client.request(method, path, json=json)
        except httpx.TransportError as e:
            logger.info("remote_unreachable", method=method, path=path, error=str(e))
            raise RemoteUnavailableError(f"{method} {path} failed: {e}")

        if response.status_code == 404:
            raise RemoteNotFoundError(_error_message(response))
        if response.is_error:
            raise RemoteRejectedError(response.status_code, _error_message(response))
        return response

    def _parse_expense(self, response: httpx.Response) -> Expense:
        try:
            return Expense.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteRejectedError(response.status_code, f"Malformed expense in response: {e}")

    async def probe(self) -> bool:
        """
        Lightweight reachability check (HEAD, no body).

        Any HTTP answer counts as reachable; only transport failures
        and timeouts count as unreachable.
        """
        try:
            async with self._client(self._probe_timeout) as client:
                await client.head(EXPENSES_PATH)
        except httpx.TransportError as e:
            logger.debug("probe_failed", base_url=self._base_url, error=str(e))
            return False
        return True

    async def list_expenses(self) -> list[Expense]:
        """Fetch the full remote record list."""
        response = await self._request("GET", EXPENSES_PATH)
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteRejectedError(response.status_code, f"Malformed list response: {e}")
        if not isinstance(data, list):
            raise RemoteRejectedError(response.status_code, "Expected a JSON array")

        expenses = []
        for item in data:
            try:
                expenses.append(Expense.model_validate(item))
            except ValidationError as e:
                logger.warning("remote_record_skipped", record=item, error=str(e))
        return expenses

    async def create_expense(self, expense: Expense) -> tuple[Expense, bool]:
        """
        Create (or idempotently replace) a record keyed by its id.

        Returns:
            (stored_record, created) - created is True for 201
        """
        response = await self._request("POST", EXPENSES_PATH, json=expense.to_wire())
        return self._parse_expense(response), response.status_code == 201

    async def update_expense(self, expense: Expense) -> Expense:
        """
        Overwrite a remote record's fields.

        Raises:
            RemoteNotFoundError: If the service does not know the id
        """
        body = expense.to_wire()
        body.pop("id")
        response = await self._request("PUT", self._expense_path(expense.id), json=body)
        return self._parse_expense(response)

    async def delete_expense(self, expense_id: str) -> None:
        """
        Delete a remote record.

        Raises:
            RemoteNotFoundError: If the service does not know the id
        """
        await self._request("DELETE", self._expense_path(expense_id))
