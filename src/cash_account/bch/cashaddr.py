"""CashAddr encoding: prefix, Base32 payload and BCH polymod checksum.

A CashAddr string is ``<prefix>:<payload><checksum>`` where the payload is
``version_byte || hash`` regrouped into 5-bit words and the checksum is a
40-bit BCH code over the expanded prefix and the payload.

The version byte packs the address kind into bits 3-6 and the hash size
into bits 0-2; bit 7 is reserved and must be zero.
"""

from __future__ import annotations

import enum

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

_GENERATORS = (0x98F2BC8E61, 0x79B76D99E2, 0xF33E5FB3C4, 0xAE2EABE2A8, 0x1E4F43E470)
_CHECKSUM_WORDS = 8

# size code (version bits 0-2) -> hash length in bytes
_HASH_SIZES = {0: 20, 1: 24, 2: 28, 3: 32, 4: 40, 5: 48, 6: 56, 7: 64}
_SIZE_CODES = {size: code for code, size in _HASH_SIZES.items()}


class AddressKind(int, enum.Enum):
    """Address kinds carried in the version byte."""

    P2PKH = 0
    P2SH = 1


# ---------------------------------------------------------------------------
# Checksum
# ---------------------------------------------------------------------------


def _polymod(values: list[int]) -> int:
    chk = 1
    for value in values:
        top = chk >> 35
        chk = ((chk & 0x07FFFFFFFF) << 5) ^ value
        for i, gen in enumerate(_GENERATORS):
            if (top >> i) & 1:
                chk ^= gen
    return chk ^ 1


def _prefix_expand(prefix: str) -> list[int]:
    """Lower 5 bits of each prefix character followed by a zero separator."""
    return [ord(c) & 0x1F for c in prefix] + [0]


def _create_checksum(prefix: str, payload: list[int]) -> list[int]:
    mod = _polymod(_prefix_expand(prefix) + payload + [0] * _CHECKSUM_WORDS)
    return [(mod >> 5 * (_CHECKSUM_WORDS - 1 - i)) & 0x1F for i in range(_CHECKSUM_WORDS)]


def _convertbits(data: bytes | list[int], frombits: int, tobits: int, *, pad: bool) -> list[int]:
    """Regroup a sequence of *frombits*-wide words into *tobits*-wide words.

    Raises:
        ValueError: If a word is out of range or the padding is non-zero.
    """
    acc = 0
    bits = 0
    ret: list[int] = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1
    for value in data:
        if value < 0 or value >> frombits:
            msg = f"Invalid {frombits}-bit word: {value}"
            raise ValueError(msg)
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        msg = "Invalid CashAddr padding"
        raise ValueError(msg)
    return ret


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def encode(prefix: str, kind: AddressKind, hash_bytes: bytes) -> str:
    """Encode a hash as a CashAddr string under *prefix*.

    Args:
        prefix: Network prefix without the colon, e.g. ``bitcoincash``.
        kind: P2PKH or P2SH.
        hash_bytes: The hash; its length must be a valid CashAddr size.

    Raises:
        ValueError: If the hash length has no size code.
    """
    size_code = _SIZE_CODES.get(len(hash_bytes))
    if size_code is None:
        msg = f"Invalid CashAddr hash length: {len(hash_bytes)}"
        raise ValueError(msg)
    version = (int(kind) << 3) | size_code
    payload = _convertbits(bytes([version]) + hash_bytes, 8, 5, pad=True)
    checksum = _create_checksum(prefix, payload)
    return f"{prefix}:" + "".join(CHARSET[d] for d in payload + checksum)


def decode(address: str) -> tuple[str, AddressKind, bytes]:
    """Decode a prefixed CashAddr string.

    Returns:
        Tuple of (prefix, kind, hash_bytes). The prefix is lowercased.

    Raises:
        ValueError: If the string is malformed or the checksum does not verify.
    """
    if address.lower() != address and address.upper() != address:
        msg = "CashAddr must not mix upper and lower case"
        raise ValueError(msg)
    address = address.lower()
    prefix, sep, data = address.rpartition(":")
    if not sep or not prefix:
        msg = "CashAddr is missing its prefix"
        raise ValueError(msg)

    values = [CHARSET.find(c) for c in data]
    if any(v < 0 for v in values):
        msg = "CashAddr contains characters outside the Base32 charset"
        raise ValueError(msg)
    if len(values) <= _CHECKSUM_WORDS:
        msg = "CashAddr payload too short"
        raise ValueError(msg)
    if _polymod(_prefix_expand(prefix) + values) != 0:
        msg = "CashAddr checksum mismatch"
        raise ValueError(msg)

    raw = _convertbits(values[:-_CHECKSUM_WORDS], 5, 8, pad=False)
    version, hash_bytes = raw[0], bytes(raw[1:])
    if version & 0x80:
        msg = "CashAddr version byte has the reserved bit set"
        raise ValueError(msg)
    if _HASH_SIZES[version & 0x07] != len(hash_bytes):
        msg = f"CashAddr hash length {len(hash_bytes)} does not match its version byte"
        raise ValueError(msg)
    try:
        kind = AddressKind((version >> 3) & 0x0F)
    except ValueError:
        msg = f"Unsupported CashAddr type: {(version >> 3) & 0x0F}"
        raise ValueError(msg) from None
    return prefix, kind, hash_bytes
