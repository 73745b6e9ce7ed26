"""Lookup server client: account lookup and registration submission.

Async HTTP client for a Cash Account lookup server:
- GET  /account/<number>/<name>/<collision>: resolved account JSON
- POST /register: submit a registration, returns the txid and raw tx hex
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from cash_account.errors.client_errors import AccountNotFoundError, LookupServerError
from cash_account.errors.protocol_errors import InvalidHandleError
from cash_account.protocol.models import Handle, Identifier

if TYPE_CHECKING:
    from cash_account.config.settings import LookupServerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistrationReceipt:
    """Lookup server response to a registration request.

    Attributes:
        txid: Registration transaction id (hex).
        hex: The raw registration transaction (hex).
    """

    txid: str
    hex: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RegistrationReceipt:
        return cls(txid=data.get("txid", ""), hex=data.get("hex", ""))


class LookupClient:
    """Async HTTP client for a Cash Account lookup server.

    Usage::

        lookup = LookupClient(config.lookup)
        await lookup.connect()
        try:
            account = await lookup.get_account(Handle.from_string("jonathan#100"))
        finally:
            await lookup.close()
    """

    def __init__(self, config: LookupServerConfig) -> None:
        """Initialize the lookup client.

        Args:
            config: Lookup server configuration (url, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_account(self, handle: Handle) -> Identifier:
        """Look up an account by handle.

        Args:
            handle: Parsed handle; its collision digits, if any, narrow the
                lookup.

        Returns:
            The resolved Identifier as reported by the server.

        Raises:
            AccountNotFoundError: If the server has no such account.
            LookupServerError: On HTTP or API errors.
        """
        client = self._ensure_connected()
        path = f"/account/{handle.number}/{handle.username}/{handle.collision or ''}"
        logger.debug("Lookup server GET %s", path)
        try:
            response = await client.get(path)
        except httpx.HTTPError as exc:
            raise LookupServerError(f"account lookup failed: {exc}") from exc

        if response.status_code == 404:
            raise AccountNotFoundError(str(handle))
        if response.status_code != 200:
            self._raise_for_status(response, "get_account")
        try:
            return Identifier.from_dict(response.json())
        except (InvalidHandleError, ValueError) as exc:
            raise LookupServerError(f"unexpected account response: {exc}") from exc

    async def register(self, username: str, payments: list[str]) -> RegistrationReceipt:
        """Submit a registration to the lookup server.

        Args:
            username: Name to register.
            payments: Payment addresses, primary first.

        Returns:
            RegistrationReceipt with the registration txid.

        Raises:
            LookupServerError: On HTTP or API errors.
        """
        client = self._ensure_connected()
        logger.info("Submitting registration for %s", username)
        try:
            response = await client.post("/register", json={"name": username, "payments": payments})
        except httpx.HTTPError as exc:
            raise LookupServerError(f"registration failed: {exc}") from exc

        if response.status_code not in (200, 201):
            self._raise_for_status(response, "register")
        return RegistrationReceipt.from_dict(response.json())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "LookupClient is not connected, call connect() first"
            raise RuntimeError(msg)
        return self._client

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """Raise a LookupServerError from a non-2xx response."""
        status = response.status_code
        try:
            body = response.json()
            detail = body.get("error", body.get("message", response.text))
        except ValueError:
            detail = response.text
        logger.warning("Lookup server %s failed (%d)", operation, status)
        message = f"lookup server {operation} failed ({status}): {detail}"
        raise LookupServerError(message, status_code=status)
