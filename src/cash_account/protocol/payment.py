"""Payment entry codec: ``[identifier byte][hash bytes]``.

The identifier byte is ``namespace | type``: ``0x01``-``0x04`` for the
primary namespace and ``0x81``-``0x84`` for the secondary (token)
namespace. Unmapped bytes are rejected.
"""

from __future__ import annotations

from cash_account.bch.address import address_from_hash, hash_from_address
from cash_account.errors.protocol_errors import MalformedPayloadError, UnknownPaymentTypeError
from cash_account.protocol.models import Namespace, Payment, PaymentEntry, PaymentType

IDENTIFIER_TABLE: dict[int, tuple[PaymentType, Namespace]] = {
    int(namespace) | int(ptype): (ptype, namespace)
    for namespace in Namespace
    for ptype in PaymentType
}


def encode_entry(entry: PaymentEntry) -> bytes:
    """Encode a payment entry as identifier byte followed by its hash.

    Raises:
        MalformedPayloadError: If the hash length does not fit the type.
    """
    _check_length(entry.type, entry.address_hash)
    return bytes([entry.identifier]) + entry.address_hash


def decode_entry(data: bytes) -> PaymentEntry:
    """Decode ``[identifier byte][hash bytes]`` into a payment entry.

    Raises:
        UnknownPaymentTypeError: If the identifier byte is not mapped.
        MalformedPayloadError: If *data* is empty or the hash length is wrong.
    """
    if not data:
        msg = "empty payment entry"
        raise MalformedPayloadError(msg)
    mapped = IDENTIFIER_TABLE.get(data[0])
    if mapped is None:
        raise UnknownPaymentTypeError(data[0])
    ptype, namespace = mapped
    address_hash = bytes(data[1:])
    _check_length(ptype, address_hash)
    return PaymentEntry(type=ptype, namespace=namespace, address_hash=address_hash)


def render_entry(entry: PaymentEntry) -> Payment:
    """Render an entry's address; secondary entries use the token form."""
    address = address_from_hash(entry.type, entry.namespace, entry.address_hash)
    return Payment(type=entry.type, address=address)


def entry_from_address(address: str, namespace: Namespace = Namespace.PRIMARY) -> PaymentEntry:
    """Build an entry by classifying *address* and extracting its hash.

    Raises:
        AddressDetectionError: If the address cannot be classified.
    """
    ptype, address_hash = hash_from_address(address)
    return PaymentEntry(type=ptype, namespace=namespace, address_hash=address_hash)


def _check_length(ptype: PaymentType, address_hash: bytes) -> None:
    if len(address_hash) != ptype.hash_length:
        msg = f"{ptype.label} entry needs {ptype.hash_length} bytes, got {len(address_hash)}"
        raise MalformedPayloadError(msg)
