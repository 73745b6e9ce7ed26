"""Deterministic identifiers derived from registration block data.

- Account number from the registration block height
- Emoji fingerprint from ``sha256(block_hash || transaction_id)``
- Collision hash from the same digest
- Shortest distinguishing collision prefix among same-name accounts

All inputs are raw bytes; hex text must be decoded before calling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cash_account.errors.protocol_errors import NegativeAccountNumberError
from cash_account.utils.crypto import sha256_hex

if TYPE_CHECKING:
    from collections.abc import Iterable

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ACTIVATION_HEIGHT = 563_720
GENESIS_OFFSET = ACTIVATION_HEIGHT - 100

COLLISION_HASH_LENGTH = 10

_EMOJI_CODEPOINTS = (
    128123, 128018, 128021, 128008, 128014, 128004, 128022, 128016, 128042, 128024,
    128000, 128007, 128063, 129415, 128019, 128039, 129414, 129417, 128034, 128013,
    128031, 128025, 128012, 129419, 128029, 128030, 128375, 127803, 127794, 127796,
    127797, 127809, 127808, 127815, 127817, 127819, 127820, 127822, 127826, 127827,
    129373, 129381, 129365, 127805, 127798, 127812, 129472, 129370, 129408, 127850,
    127874, 127853, 127968, 128663, 128690, 9973, 9992, 128641, 128640, 8986,
    9728, 11088, 127752, 9730, 127880, 127872, 9917, 9824, 9829, 9830,
    9827, 128083, 128081, 127913, 128276, 127925, 127908, 127911, 127928, 127930,
    129345, 128269, 128367, 128161, 128214, 9993, 128230, 9999, 128188, 128203,
    9986, 128273, 128274, 128296, 128295, 9878, 9775, 128681, 128099, 127838,
)  # fmt: skip

EMOJI_TABLE: tuple[str, ...] = tuple(chr(cp) for cp in _EMOJI_CODEPOINTS)


# ---------------------------------------------------------------------------
# Account number
# ---------------------------------------------------------------------------


def account_number(block_height: int) -> int:
    """Account number of a registration confirmed at *block_height*.

    Raises:
        NegativeAccountNumberError: If the height precedes the genesis offset.
    """
    number = block_height - GENESIS_OFFSET
    if number < 0:
        raise NegativeAccountNumberError(block_height)
    return number


def block_height_for(number: int) -> int:
    """Block height that registrations for account *number* were confirmed at."""
    return GENESIS_OFFSET + number


# ---------------------------------------------------------------------------
# Hash-derived identifiers
# ---------------------------------------------------------------------------


def emoji(transaction_id: bytes, block_hash: bytes) -> str:
    """Emoji fingerprint of a registration.

    The last 8 hex digits of ``sha256(block_hash || transaction_id)`` are
    read as an integer and reduced modulo 100 into :data:`EMOJI_TABLE`.
    """
    digest = sha256_hex(block_hash, transaction_id)
    return EMOJI_TABLE[int(digest[-8:], 16) % len(EMOJI_TABLE)]


def collision_hash(block_hash: bytes, transaction_id: bytes) -> str:
    """Ten-digit collision hash of a registration.

    The first 8 hex digits of ``sha256(block_hash || transaction_id)`` are
    read as an integer, written in decimal, reversed and right-padded with
    zeros to 10 digits. A 10-digit value passes through untouched.
    """
    digest = sha256_hex(block_hash, transaction_id)
    reversed_digits = str(int(digest[:8], 16))[::-1]
    return reversed_digits.ljust(COLLISION_HASH_LENGTH, "0")


def collision_length(target: str, others: Iterable[str]) -> int:
    """Digits of *target* needed to tell it apart from every hash in *others*.

    Returns 0 when *others* is empty. Identical hashes cannot be told apart;
    the full length is returned for them.
    """
    length = 0
    for other in others:
        shared = 0
        for a, b in zip(target, other, strict=False):
            if a != b:
                break
            shared += 1
        length = max(length, min(shared + 1, len(target)))
    return length
