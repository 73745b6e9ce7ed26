"""Cash Account service: handle lookup and registration over the clients.

Wires the configuration, the BitDB and lookup server clients and the
protocol resolver together. Instances are created by the caller; nothing
is shared at module level.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

from cash_account.client.bitdb import BitDBClient
from cash_account.client.lookup import LookupClient, RegistrationReceipt
from cash_account.config.settings import AppConfig
from cash_account.errors.client_errors import AccountNotFoundError
from cash_account.protocol.models import Handle, Identifier
from cash_account.protocol.resolver import build_registration, resolve, resolve_all

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)


class CashAccountService:
    """Resolve and register Cash Accounts.

    Usage::

        async with CashAccountService(AppConfig()) as service:
            account = await service.get_account_info("jonathan#100")
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        bitdb: BitDBClient | None = None,
        lookup: LookupClient | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Application configuration; defaults are loaded from the
                environment when omitted. With ``debug`` set, the package
                loggers are switched to DEBUG level.
            bitdb: Pre-built BitDB client (mostly for tests).
            lookup: Pre-built lookup server client (mostly for tests).
        """
        self._config = config or AppConfig()
        if self._config.debug:
            logging.getLogger("cash_account").setLevel(logging.DEBUG)
        self._bitdb = bitdb or BitDBClient(self._config.bitdb)
        self._lookup = lookup or LookupClient(self._config.lookup)

    @property
    def config(self) -> AppConfig:
        return self._config

    async def connect(self) -> None:
        """Connect both clients."""
        await self._bitdb.connect()
        await self._lookup.connect()

    async def close(self) -> None:
        """Close both clients."""
        await self._bitdb.close()
        await self._lookup.close()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_account_info(self, handle: str | Handle) -> Identifier:
        """Resolve a handle from on-chain records found through BitDB.

        When several accounts share the name and number, the handle's
        collision digits select among them; without digits the first
        confirmed registration wins.

        Raises:
            InvalidHandleError: If *handle* is not a valid handle.
            AccountNotFoundError: If no registration matches.
            BitDBError: On indexer failures.
        """
        parsed = Handle.from_string(handle) if isinstance(handle, str) else handle
        records = await self._bitdb.find_accounts(parsed.username, parsed.number)
        candidates = resolve_all(records, skip_invalid=True)
        if parsed.collision:
            candidates = [c for c in candidates if c.collision_hash.startswith(parsed.collision)]
        if not candidates:
            raise AccountNotFoundError(str(parsed))
        if len(candidates) > 1:
            logger.info("%d accounts match %s, taking the first confirmed", len(candidates), parsed)
        return candidates[0]

    async def get_account_by_txid(self, txid: str) -> Identifier:
        """Resolve the registration made by transaction *txid*.

        Raises:
            AccountNotFoundError: If BitDB has no confirmed registration.
        """
        record = await self._bitdb.find_by_txid(txid)
        if record is None:
            raise AccountNotFoundError(txid)
        return resolve(record)

    async def lookup(self, handle: str | Handle) -> Identifier:
        """Ask the lookup server to resolve a handle.

        Raises:
            InvalidHandleError: If *handle* is not a valid handle.
            AccountNotFoundError: If the server has no such account.
            LookupServerError: On server failures.
        """
        parsed = Handle.from_string(handle) if isinstance(handle, str) else handle
        return await self._lookup.get_account(parsed)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register(
        self,
        username: str,
        bch_address: str,
        token_address: str | None = None,
    ) -> RegistrationReceipt:
        """Register a name through the lookup server.

        The registration is built locally first, so invalid names and
        unrecognised addresses fail before anything is sent.

        Raises:
            MalformedPayloadError: If the username is invalid.
            UnrecognizedAddressError: If an address cannot be classified.
            LookupServerError: On server failures.
        """
        build_registration(username, bch_address, token_address)
        payments = [bch_address]
        if token_address:
            payments.append(token_address)
        receipt = await self._lookup.register(username, payments)
        logger.info("Registered %s in tx %s", username, receipt.txid)
        return receipt
