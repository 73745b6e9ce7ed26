"""Address codec: raw hashes to and from Cash Account address text.

Three text representations are supported:
- CashAddr under ``bitcoincash:`` (primary namespace) or ``simpleledger:``
  (secondary/token namespace) for key-hash and script-hash destinations
- Base58Check with version ``0x47`` for BIP47 payment codes
- Legacy Base58Check P2PKH / P2SH addresses, accepted as input only
"""

from __future__ import annotations

import enum

from cash_account.bch import cashaddr
from cash_account.bch.base58 import base58check_decode, base58check_encode
from cash_account.errors.protocol_errors import AddressDetectionError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CASH_PREFIX = "bitcoincash"
TOKEN_PREFIX = "simpleledger"

PAYMENT_CODE_VERSION = 0x47
PAYMENT_CODE_LENGTH = 80
HASH_LENGTH = 20
STEALTH_KEYS_LENGTH = 66

_LEGACY_P2PKH_VERSION = 0x00
_LEGACY_P2SH_VERSION = 0x05


# ---------------------------------------------------------------------------
# Payment types
# ---------------------------------------------------------------------------


class PaymentType(int, enum.Enum):
    """Payment destination type; the low 7 bits of an identifier byte."""

    KEY_HASH = 0x01
    SCRIPT_HASH = 0x02
    PAYMENT_CODE = 0x03
    STEALTH_KEYS = 0x04

    @property
    def label(self) -> str:
        """Display label used in resolved payment lists."""
        return _PAYMENT_LABELS[self]

    @property
    def hash_length(self) -> int:
        """Length in bytes of the raw data carried for this type."""
        return _HASH_LENGTHS[self]


class Namespace(int, enum.Enum):
    """Address namespace; bit 7 of an identifier byte."""

    PRIMARY = 0x00
    SECONDARY = 0x80

    @property
    def prefix(self) -> str:
        """CashAddr prefix rendered for this namespace."""
        return TOKEN_PREFIX if self is Namespace.SECONDARY else CASH_PREFIX


_PAYMENT_LABELS = {
    PaymentType.KEY_HASH: "Key Hash",
    PaymentType.SCRIPT_HASH: "Script Hash",
    PaymentType.PAYMENT_CODE: "Payment Code",
    PaymentType.STEALTH_KEYS: "Stealth Keys",
}

_HASH_LENGTHS = {
    PaymentType.KEY_HASH: HASH_LENGTH,
    PaymentType.SCRIPT_HASH: HASH_LENGTH,
    PaymentType.PAYMENT_CODE: PAYMENT_CODE_LENGTH,
    PaymentType.STEALTH_KEYS: STEALTH_KEYS_LENGTH,
}

_KIND_TO_TYPE = {
    cashaddr.AddressKind.P2PKH: PaymentType.KEY_HASH,
    cashaddr.AddressKind.P2SH: PaymentType.SCRIPT_HASH,
}
_TYPE_TO_KIND = {ptype: kind for kind, ptype in _KIND_TO_TYPE.items()}

_LEGACY_VERSIONS = {
    _LEGACY_P2PKH_VERSION: PaymentType.KEY_HASH,
    _LEGACY_P2SH_VERSION: PaymentType.SCRIPT_HASH,
}


# ---------------------------------------------------------------------------
# Hash -> address
# ---------------------------------------------------------------------------


def address_from_hash(ptype: PaymentType, namespace: Namespace, hash_bytes: bytes) -> str:
    """Render raw hash bytes as address text.

    Args:
        ptype: The payment type of the hash.
        namespace: PRIMARY renders ``bitcoincash:``, SECONDARY renders
            ``simpleledger:``. Payment codes render identically in both.
        hash_bytes: 20-byte key/script hash, 80-byte payment code or
            66-byte stealth key pair.

    Returns:
        The address text. Stealth keys have no address form and are
        rendered as lowercase hex.

    Raises:
        ValueError: If *hash_bytes* has the wrong length for *ptype*.
    """
    if len(hash_bytes) != ptype.hash_length:
        msg = f"{ptype.label} requires {ptype.hash_length} bytes, got {len(hash_bytes)}"
        raise ValueError(msg)
    if ptype is PaymentType.PAYMENT_CODE:
        return base58check_encode(PAYMENT_CODE_VERSION, hash_bytes)
    if ptype is PaymentType.STEALTH_KEYS:
        return hash_bytes.hex()
    return cashaddr.encode(namespace.prefix, _TYPE_TO_KIND[ptype], hash_bytes)


# ---------------------------------------------------------------------------
# Address -> hash
# ---------------------------------------------------------------------------


def _decode_cashaddr(address: str) -> tuple[str, cashaddr.AddressKind, bytes]:
    """Decode a CashAddr, trying the known prefixes when none is given."""
    if ":" in address:
        return cashaddr.decode(address)
    try:
        return cashaddr.decode(f"{CASH_PREFIX}:{address}")
    except ValueError:
        return cashaddr.decode(f"{TOKEN_PREFIX}:{address}")


def _split_cashaddr(address: str) -> tuple[cashaddr.AddressKind, bytes] | None:
    """Kind and hash of a 20-byte CashAddr under a known prefix, or None."""
    try:
        prefix, kind, hash_bytes = _decode_cashaddr(address)
    except ValueError:
        return None
    if prefix not in (CASH_PREFIX, TOKEN_PREFIX) or len(hash_bytes) != HASH_LENGTH:
        return None
    return kind, hash_bytes


def _split_base58(address: str) -> tuple[PaymentType, bytes] | None:
    """Payment type and payload of a Base58Check address, or None."""
    try:
        version, payload = base58check_decode(address)
    except ValueError:
        return None
    if version == PAYMENT_CODE_VERSION and len(payload) == PAYMENT_CODE_LENGTH:
        return PaymentType.PAYMENT_CODE, payload
    ptype = _LEGACY_VERSIONS.get(version)
    if ptype is not None and len(payload) == HASH_LENGTH:
        return ptype, payload
    return None


def hash_from_address(address: str) -> tuple[PaymentType, bytes]:
    """Classify an address and extract its raw hash.

    Token-namespace (``simpleledger:``) addresses are normalised to the
    ``bitcoincash:`` form first, so both spellings yield the same hash.

    Args:
        address: CashAddr, SLP address, payment code or legacy address text.

    Returns:
        Tuple of (payment_type, hash_bytes).

    Raises:
        AddressDetectionError: If no supported encoding matches.
    """
    address = address.strip()
    if address.lower().startswith(f"{TOKEN_PREFIX}:"):
        address = to_cash_address(address)

    split = _split_cashaddr(address)
    if split is not None:
        kind, hash_bytes = split
        return _KIND_TO_TYPE[kind], hash_bytes

    found = _split_base58(address)
    if found is not None:
        return found

    msg = f"unable to detect address type: {address!r}"
    raise AddressDetectionError(msg)


def detect_namespace(address: str) -> Namespace:
    """Namespace an address text is rendered in.

    Raises:
        AddressDetectionError: If the address is not a recognised address.
    """
    address = address.strip()
    try:
        prefix, _kind, _hash = _decode_cashaddr(address)
    except ValueError:
        # payment codes and legacy addresses only exist in the primary namespace
        hash_from_address(address)
        return Namespace.PRIMARY
    if prefix == TOKEN_PREFIX:
        return Namespace.SECONDARY
    if prefix == CASH_PREFIX:
        return Namespace.PRIMARY
    msg = f"unsupported CashAddr prefix: {prefix!r}"
    raise AddressDetectionError(msg)


# ---------------------------------------------------------------------------
# Namespace conversion
# ---------------------------------------------------------------------------


def _convert_prefix(address: str, prefix: str) -> str:
    address = address.strip()
    try:
        source_prefix, kind, hash_bytes = _decode_cashaddr(address)
    except ValueError:
        legacy = _split_base58(address)
        if legacy is None or legacy[0] not in _TYPE_TO_KIND:
            msg = f"not a CashAddr or legacy address: {address!r}"
            raise AddressDetectionError(msg) from None
        ptype, hash_bytes = legacy
        kind = _TYPE_TO_KIND[ptype]
    else:
        if source_prefix not in (CASH_PREFIX, TOKEN_PREFIX):
            msg = f"unsupported CashAddr prefix: {source_prefix!r}"
            raise AddressDetectionError(msg)
    return cashaddr.encode(prefix, kind, hash_bytes)


def to_cash_address(address: str) -> str:
    """Re-render a CashAddr, SLP or legacy address under ``bitcoincash:``."""
    return _convert_prefix(address, CASH_PREFIX)


def to_token_address(address: str) -> str:
    """Re-render a CashAddr, SLP or legacy address under ``simpleledger:``."""
    return _convert_prefix(address, TOKEN_PREFIX)
