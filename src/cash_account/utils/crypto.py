"""Hashing helpers used by the address codecs and identifier derivation."""

from __future__ import annotations

import hashlib


def sha256(data: bytes) -> bytes:
    """Single SHA-256 hash."""
    return hashlib.sha256(data).digest()


def sha256d(data: bytes) -> bytes:
    """Double SHA-256 hash (SHA256(SHA256(data))), the Base58Check checksum hash."""
    return sha256(sha256(data))


def sha256_hex(*chunks: bytes) -> str:
    """Hex digest of SHA-256 over the concatenation of *chunks*.

    Chunks are raw bytes; hex text must be decoded by the caller first.
    """
    return sha256(b"".join(chunks)).hex()
