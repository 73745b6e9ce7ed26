"""Registration resolver: records to identifiers, addresses to payloads.

Resolution::

    RawRecord -> codec.decode -> payment.render_entry -> Identifier
                 identifiers.account_number / emoji / collision_hash

Registration::

    addresses -> payment.entry_from_address -> RegistrationPayload -> codec.encode
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from cash_account.errors.protocol_errors import (
    AddressDetectionError,
    MalformedPayloadError,
    NegativeAccountNumberError,
    UnknownPaymentTypeError,
    UnrecognizedAddressError,
)
from cash_account.protocol import codec, identifiers
from cash_account.protocol.models import (
    Collision,
    Handle,
    Identifier,
    Namespace,
    RegistrationPayload,
)
from cash_account.protocol.payment import entry_from_address, render_entry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cash_account.protocol.models import RawRecord

logger = logging.getLogger(__name__)

_RECORD_ERRORS = (MalformedPayloadError, UnknownPaymentTypeError, NegativeAccountNumberError)


def resolve(record: RawRecord) -> Identifier:
    """Resolve a located marker record into an identifier.

    Raises:
        MalformedPayloadError: If the payload cannot be parsed.
        IncompletePayloadError: If the primary payment entry is missing.
        UnknownPaymentTypeError: If an entry type is not mapped.
        NegativeAccountNumberError: If the record predates the protocol.
    """
    payload = codec.decode(record.payload)
    payments = tuple(render_entry(entry) for entry in payload.entries)
    number = identifiers.account_number(record.block_height)
    collision = Collision(hash=identifiers.collision_hash(record.block_hash, record.transaction_id))
    identifier = Identifier(
        handle=Handle(username=payload.name, number=number),
        emoji=identifiers.emoji(record.transaction_id, record.block_hash),
        collision=collision,
        payments=payments,
        block_height=record.block_height,
        transaction_id=record.transaction_id.hex(),
    )
    logger.debug("Resolved %s from tx %s", identifier.handle, identifier.transaction_id)
    return identifier


def resolve_all(records: Iterable[RawRecord], *, skip_invalid: bool = False) -> list[Identifier]:
    """Resolve candidate records and fill collision disambiguation data.

    Accounts are grouped by lower-cased name and number; within a group
    each account gets the number of other members as ``count`` and the
    shortest distinguishing collision prefix as ``length``.

    Args:
        records: Candidate records in confirmation order.
        skip_invalid: Drop records that fail to resolve instead of raising.
            Collision data is computed over the remaining accounts only.
    """
    resolved: list[Identifier] = []
    for record in records:
        try:
            resolved.append(resolve(record))
        except _RECORD_ERRORS as exc:
            if not skip_invalid:
                raise
            logger.warning(
                "Skipping unresolvable record %s: %s", record.transaction_id.hex(), exc.message
            )

    groups: dict[tuple[str, int], list[int]] = defaultdict(list)
    for index, identifier in enumerate(resolved):
        groups[identifier.handle.username.lower(), identifier.handle.number].append(index)

    for members in groups.values():
        if len(members) < 2:
            continue
        hashes = [resolved[i].collision_hash for i in members]
        for position, index in enumerate(members):
            others = hashes[:position] + hashes[position + 1 :]
            collision = Collision(
                hash=hashes[position],
                count=len(others),
                length=identifiers.collision_length(hashes[position], others),
            )
            resolved[index] = resolved[index].with_collision(collision)
    return resolved


def build_registration(
    username: str,
    primary_address: str,
    secondary_address: str | None = None,
) -> RegistrationPayload:
    """Build the payload for a new registration.

    Args:
        username: Name to register, ``[A-Za-z0-9_]+``.
        primary_address: BCH address, payment code or legacy address.
        secondary_address: Optional SLP token address.

    Raises:
        UnrecognizedAddressError: If an address cannot be classified.
        MalformedPayloadError: If the username is invalid.
    """
    name = codec.validate_username(username)
    addresses = [(primary_address, Namespace.PRIMARY)]
    if secondary_address:
        addresses.append((secondary_address, Namespace.SECONDARY))

    entries = []
    for address, namespace in addresses:
        try:
            entries.append(entry_from_address(address, namespace))
        except AddressDetectionError as exc:
            raise UnrecognizedAddressError(exc.message) from exc

    payload = RegistrationPayload(username=name, entries=tuple(entries))
    codec.validate_entries(payload.entries)
    return payload


def build_registration_script(
    username: str,
    primary_address: str,
    secondary_address: str | None = None,
) -> bytes:
    """Build the ``OP_RETURN`` script for a new registration."""
    return codec.encode(build_registration(username, primary_address, secondary_address))
