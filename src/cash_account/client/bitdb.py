"""BitDB client: locate Cash Account marker records.

Builds BitDB v3 query documents, sends them base64-encoded as a path
segment and converts the result rows into :class:`RawRecord` values for
the resolver. Confirmed rows come first; rows without block data are
dropped since they cannot be resolved yet.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from cash_account.errors.client_errors import BitDBError
from cash_account.protocol.codec import PROTOCOL_PREFIX
from cash_account.protocol.identifiers import block_height_for
from cash_account.protocol.models import RawRecord

if TYPE_CHECKING:
    from cash_account.config.settings import BitDBConfig

logger = logging.getLogger(__name__)

_RESPONSE_FILTER = (
    "[ .[] | { blockheight: .blk.i?, blockhash: .blk.h?, transactionhash: .tx.h?, "
    "opreturn: .out[0].str, name: .out[0].s2, data: .out[0].h3} ]"
)


def account_query(username: str, number: int, *, limit: int = 22) -> dict[str, Any]:
    """Query document for registrations of *username* at account *number*."""
    return {
        "v": 3,
        "q": {
            "find": {
                "out.h1": PROTOCOL_PREFIX.hex(),
                "blk.i": block_height_for(number),
                "out.s2": {"$regex": f"^{username}", "$options": "i"},
            },
            "limit": limit,
        },
        "r": {"f": _RESPONSE_FILTER},
    }


def txid_query(txid: str) -> dict[str, Any]:
    """Query document for a single registration transaction."""
    return {
        "v": 3,
        "q": {"find": {"tx.h": txid}, "limit": 1},
        "r": {"f": _RESPONSE_FILTER},
    }


def encode_query(query: dict[str, Any]) -> str:
    """Base64 of the query's JSON, as BitDB expects in the URL path."""
    return base64.b64encode(json.dumps(query).encode("utf-8")).decode("ascii")


class BitDBClient:
    """Async HTTP client for a BitDB indexer.

    Usage::

        bitdb = BitDBClient(config.bitdb)
        await bitdb.connect()
        try:
            records = await bitdb.find_accounts("jonathan", 100)
        finally:
            await bitdb.close()
    """

    def __init__(self, config: BitDBConfig) -> None:
        """Initialize the BitDB client.

        Args:
            config: BitDB configuration (url, limit, timeout).
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

    async def find_accounts(self, username: str, number: int) -> list[RawRecord]:
        """Find confirmed registrations of *username* at account *number*.

        Names are matched case-insensitively and exactly.

        Raises:
            BitDBError: On HTTP errors or an unparseable response.
        """
        query = account_query(username, number, limit=self._config.limit)
        rows = await self._query(query)
        wanted = username.lower()
        return [r for r in self._to_records(rows) if r.username.lower() == wanted]

    async def find_by_txid(self, txid: str) -> RawRecord | None:
        """Find a confirmed registration by its transaction id.

        Returns:
            The record, or None if BitDB has no confirmed match.

        Raises:
            BitDBError: On HTTP errors or an unparseable response.
        """
        records = self._to_records(await self._query(txid_query(txid)))
        return records[0] if records else None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "BitDBClient is not connected, call connect() first"
            raise RuntimeError(msg)
        return self._client

    async def _query(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        client = self._ensure_connected()
        try:
            response = await client.get(f"/{encode_query(query)}")
        except httpx.HTTPError as exc:
            raise BitDBError(f"BitDB query failed: {exc}") from exc
        if response.status_code != 200:
            logger.warning("BitDB query failed (%d)", response.status_code)
            raise BitDBError(
                f"BitDB query failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        try:
            body: dict[str, Any] = response.json()
        except ValueError as exc:
            raise BitDBError(f"BitDB returned invalid JSON: {exc}") from exc
        # confirmed first, then unconfirmed
        return [*body.get("c", []), *body.get("u", [])]

    @staticmethod
    def _to_records(rows: list[dict[str, Any]]) -> list[RawRecord]:
        records: list[RawRecord] = []
        for row in rows:
            if not row.get("blockhash") or row.get("blockheight") is None:
                continue
            try:
                records.append(RawRecord.from_dict(row))
            except (KeyError, TypeError, ValueError) as exc:
                raise BitDBError(f"BitDB returned a malformed row: {exc}") from exc
        logger.debug("BitDB returned %d resolvable rows of %d", len(records), len(rows))
        return records
