"""Base58 / Base58Check encoding.

Used for BIP47 payment codes (version byte ``0x47``) and for legacy
P2PKH / P2SH addresses accepted as registration input.
"""

from __future__ import annotations

from cash_account.utils.crypto import sha256d

_B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_CHECKSUM_LENGTH = 4


def base58_encode(payload: bytes) -> str:
    """Encode raw bytes to Base58 (no checksum)."""
    n = int.from_bytes(payload, "big")
    result: list[int] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_B58_ALPHABET[remainder])
    # Leading zero bytes become leading '1' characters
    for byte in payload:
        if byte == 0:
            result.append(_B58_ALPHABET[0])
        else:
            break
    return bytes(reversed(result)).decode("ascii")


def base58_decode(s: str) -> bytes:
    """Decode a Base58 string to raw bytes (no checksum).

    Raises:
        ValueError: If *s* contains a character outside the alphabet.
    """
    n = 0
    for char in s:
        index = _B58_ALPHABET.find(char.encode("ascii", errors="replace"))
        if index < 0:
            msg = f"Invalid Base58 character: {char!r}"
            raise ValueError(msg)
        n = n * 58 + index
    result = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    pad_count = len(s) - len(s.lstrip("1"))
    return b"\x00" * pad_count + result


def base58check_encode(version: int, payload: bytes) -> str:
    """Encode ``version || payload`` with a 4-byte SHA256d checksum."""
    data = bytes([version]) + payload
    return base58_encode(data + sha256d(data)[:_CHECKSUM_LENGTH])


def base58check_decode(s: str) -> tuple[int, bytes]:
    """Decode a Base58Check string into ``(version, payload)``.

    Raises:
        ValueError: If the string is malformed or the checksum is invalid.
    """
    raw = base58_decode(s)
    if len(raw) < _CHECKSUM_LENGTH + 1:
        msg = "Base58Check string too short"
        raise ValueError(msg)
    data, checksum = raw[:-_CHECKSUM_LENGTH], raw[-_CHECKSUM_LENGTH:]
    if sha256d(data)[:_CHECKSUM_LENGTH] != checksum:
        msg = "Base58Check checksum mismatch"
        raise ValueError(msg)
    return data[0], data[1:]
