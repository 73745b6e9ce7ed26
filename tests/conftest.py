"""Shared test fixtures for the cash-account test suite."""

from __future__ import annotations

import pytest

from cash_account.protocol.codec import encode_text
from cash_account.protocol.models import (
    Namespace,
    PaymentEntry,
    PaymentType,
    RawRecord,
    RegistrationPayload,
)

# CashAddr reference vector: type 0, 160-bit hash
KEY_HASH = bytes.fromhex("f5bf48b397dae70be82b3cca4793f8eb2b6cdac9")
KEY_HASH_ADDRESS = "bitcoincash:qr6m7j9njldwwzlg9v7v53unlr4jkmx6eylep8ekg2"

BLOCK_HASH_HEX = "000000000000000002abbeff5f6fb22a0b3b5c2685c6ef4ed2d2257ed54e9dcb"
TXID_HEX = "590d1fdf7e57c2bdba8e3b8a68cc1d4e3e4e3f1d9e0e1f6fb8a1d0c2b3a49586"
ACCOUNT_100_HEIGHT = 563_720


@pytest.fixture
def key_hash() -> bytes:
    return KEY_HASH


@pytest.fixture
def jonathan_payload() -> RegistrationPayload:
    """Registration of ``jonathan`` with a single primary key-hash entry."""
    return RegistrationPayload(
        username=b"jonathan",
        entries=(PaymentEntry(PaymentType.KEY_HASH, Namespace.PRIMARY, KEY_HASH),),
    )


@pytest.fixture
def make_record():
    """Factory for RawRecord values with default block and tx data."""

    def _make(
        payload: RegistrationPayload | bytes | str,
        *,
        block_hash: str = BLOCK_HASH_HEX,
        txid: str = TXID_HEX,
        height: int = ACCOUNT_100_HEIGHT,
    ) -> RawRecord:
        if isinstance(payload, RegistrationPayload):
            payload = encode_text(payload)
        return RawRecord(
            payload=payload,
            block_hash=bytes.fromhex(block_hash),
            block_height=height,
            transaction_id=bytes.fromhex(txid),
            username="jonathan",
        )

    return _make


@pytest.fixture
def app_config():
    """Provide an AppConfig pointing at test endpoints."""
    from cash_account.config.settings import AppConfig, BitDBConfig, LookupServerConfig

    return AppConfig(
        debug=True,
        lookup=LookupServerConfig(url="https://lookup.test"),
        bitdb=BitDBConfig(url="https://bitdb.test/q", limit=5),
    )
