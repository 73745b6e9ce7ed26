"""Marker payload codec.

Wire layout, as data pushes after ``OP_RETURN``::

    [protocol prefix 0x01010101]
    [username, UTF-8]
    [primary payment entry]
    [optional secondary payment entry]

The same payload appears in indexer output as space-separated hex fields,
``OP_RETURN 01010101 <username hex> <entry hex> [<entry hex>]``. Both
views decode to the same :class:`RegistrationPayload`.
"""

from __future__ import annotations

from cash_account.bch.script import op_return_script, parse_pushes
from cash_account.errors.protocol_errors import IncompletePayloadError, MalformedPayloadError
from cash_account.protocol.models import (
    Namespace,
    PaymentEntry,
    RegistrationPayload,
    is_valid_username,
)
from cash_account.protocol.payment import decode_entry, encode_entry

PROTOCOL_PREFIX = bytes.fromhex("01010101")
MAX_ENTRIES = 2

_OP_RETURN_TOKEN = "OP_RETURN"
_NAMESPACE_ORDER = (Namespace.PRIMARY, Namespace.SECONDARY)


def validate_username(username: str) -> bytes:
    """Validate a username and return its UTF-8 bytes.

    Raises:
        MalformedPayloadError: If the name is not ``[A-Za-z0-9_]+``.
    """
    if not is_valid_username(username):
        msg = f"invalid username: {username!r}"
        raise MalformedPayloadError(msg)
    return username.encode("utf-8")


def validate_entries(entries: tuple[PaymentEntry, ...]) -> None:
    """Check entry count and primary-then-secondary ordering.

    Raises:
        IncompletePayloadError: If there is no entry.
        MalformedPayloadError: If there are too many entries or the
            namespaces are out of order.
    """
    if not entries:
        raise IncompletePayloadError
    if len(entries) > MAX_ENTRIES:
        msg = f"payload carries {len(entries)} payment entries, at most {MAX_ENTRIES} allowed"
        raise MalformedPayloadError(msg)
    for entry, expected in zip(entries, _NAMESPACE_ORDER, strict=False):
        if entry.namespace is not expected:
            msg = f"payment entry 0x{entry.identifier:02x} is not in the {expected.name} namespace"
            raise MalformedPayloadError(msg)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _fields(payload: RegistrationPayload) -> list[bytes]:
    validate_entries(payload.entries)
    if not payload.username or b" " in payload.username:
        msg = "username must be non-empty and contain no spaces"
        raise MalformedPayloadError(msg)
    return [PROTOCOL_PREFIX, payload.username, *(encode_entry(e) for e in payload.entries)]


def encode(payload: RegistrationPayload) -> bytes:
    """Encode a registration as an ``OP_RETURN`` null-data script.

    Raises:
        MalformedPayloadError: If the payload violates the entry rules.
    """
    return op_return_script(*_fields(payload))


def encode_text(payload: RegistrationPayload) -> str:
    """Encode a registration in the space-separated hex text form."""
    return " ".join([_OP_RETURN_TOKEN, *(f.hex() for f in _fields(payload))])


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _split_text(text: str) -> list[bytes]:
    tokens = text.strip().split(" ")
    if tokens and tokens[0] == _OP_RETURN_TOKEN:
        tokens = tokens[1:]
    try:
        return [bytes.fromhex(token) for token in tokens if token]
    except ValueError as exc:
        msg = f"payload field is not hex: {exc}"
        raise MalformedPayloadError(msg) from exc


def _split_script(script: bytes) -> list[bytes]:
    try:
        return parse_pushes(script)
    except ValueError as exc:
        raise MalformedPayloadError(str(exc)) from exc


def decode(data: bytes | str) -> RegistrationPayload:
    """Decode a marker payload from script bytes or its text form.

    Args:
        data: ``OP_RETURN`` script bytes, or ``OP_RETURN 01010101 ...`` text.

    Returns:
        The decoded registration payload.

    Raises:
        MalformedPayloadError: On prefix mismatch, missing username, bad
            field encoding or invalid entry ordering.
        IncompletePayloadError: If the primary payment entry is missing.
        UnknownPaymentTypeError: If an entry has an unmapped identifier byte.
    """
    fields = _split_text(data) if isinstance(data, str) else _split_script(bytes(data))
    if not fields or fields[0] != PROTOCOL_PREFIX:
        msg = "payload does not start with the cash account protocol prefix"
        raise MalformedPayloadError(msg)
    if len(fields) < 2 or not fields[1]:
        msg = "payload has no username"
        raise MalformedPayloadError(msg)

    username = fields[1]
    try:
        username.decode("utf-8")
    except UnicodeDecodeError:
        msg = "username is not valid UTF-8"
        raise MalformedPayloadError(msg) from None

    entries = tuple(decode_entry(f) for f in fields[2:])
    validate_entries(entries)
    return RegistrationPayload(username=username, entries=entries)


def is_registration(data: bytes | str) -> bool:
    """Check whether *data* carries the protocol prefix as its first field."""
    try:
        fields = _split_text(data) if isinstance(data, str) else _split_script(bytes(data))
    except MalformedPayloadError:
        return False
    return bool(fields) and fields[0] == PROTOCOL_PREFIX
