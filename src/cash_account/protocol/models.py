"""Cash Account protocol data models.

Frozen dataclasses for the values that flow through the codec:
- Handle: parsed ``name#number[.collision]``
- RawRecord: a located marker record as supplied by a lookup collaborator
- PaymentEntry: one type-tagged payment destination
- RegistrationPayload: username plus one primary and optional secondary entry
- Payment / Collision / Identifier: the resolved account
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

from cash_account.bch.address import Namespace, PaymentType
from cash_account.errors.protocol_errors import InvalidHandleError

__all__ = [
    "Collision",
    "Handle",
    "Identifier",
    "Namespace",
    "Payment",
    "PaymentEntry",
    "PaymentType",
    "RawRecord",
    "RegistrationPayload",
    "is_cash_account",
]

USERNAME_PATTERN = r"[A-Za-z0-9_]+"
_USERNAME_REGEX = re.compile(rf"^{USERNAME_PATTERN}$")
_HANDLE_REGEX = re.compile(rf"^({USERNAME_PATTERN})#([0-9]+)(?:\.([0-9]+))?;?$")

_LABEL_TO_TYPE = {ptype.label: ptype for ptype in PaymentType}


def is_valid_username(username: str) -> bool:
    """Check a username against ``[A-Za-z0-9_]+``."""
    return bool(_USERNAME_REGEX.match(username))


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Handle:
    """A user-facing ``name#number[.collision]`` handle.

    Attributes:
        username: Registered name, ``[A-Za-z0-9_]+``.
        number: Account number (positive).
        collision: Optional collision digits, kept for display only.
    """

    username: str
    number: int
    collision: str | None = None

    @classmethod
    def from_string(cls, raw: str) -> Handle:
        """Parse a handle string.

        A single trailing ``;`` (the lookup server's terminator) is accepted.

        Raises:
            InvalidHandleError: If *raw* does not match the handle grammar.
        """
        match = _HANDLE_REGEX.match(raw.strip())
        if match is None:
            raise InvalidHandleError(raw)
        username, number, collision = match.groups()
        if int(number) <= 0:
            raise InvalidHandleError(raw)
        return cls(username=username, number=int(number), collision=collision or None)

    def __str__(self) -> str:
        if self.collision:
            return f"{self.username}#{self.number}.{self.collision}"
        return f"{self.username}#{self.number}"


def is_cash_account(text: str) -> bool:
    """Check whether *text* is a syntactically valid handle."""
    try:
        Handle.from_string(text)
    except InvalidHandleError:
        return False
    return True


# ---------------------------------------------------------------------------
# Raw record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawRecord:
    """A located marker record.

    Attributes:
        payload: The null-data script bytes, or its textual
            ``OP_RETURN <hex> <hex> ...`` form.
        block_hash: Raw block hash bytes.
        block_height: Height of the block that confirmed the record.
        transaction_id: Raw registration transaction id bytes.
        username: The name the collaborator matched on.
    """

    payload: bytes | str
    block_hash: bytes
    block_height: int
    transaction_id: bytes
    username: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawRecord:
        """Build a record from a BitDB result row.

        Expects ``opreturn``, ``blockhash``, ``blockheight`` and
        ``transactionhash``; hashes are hex strings.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If a hash is not valid hex.
        """
        return cls(
            payload=data["opreturn"],
            block_hash=bytes.fromhex(data["blockhash"]),
            block_height=int(data["blockheight"]),
            transaction_id=bytes.fromhex(data["transactionhash"]),
            username=data.get("name") or "",
        )


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PaymentEntry:
    """A single type-tagged payment destination."""

    type: PaymentType
    namespace: Namespace
    address_hash: bytes

    @property
    def identifier(self) -> int:
        """The identifier byte: namespace bit OR payment type."""
        return int(self.namespace) | int(self.type)


@dataclass(frozen=True, slots=True)
class RegistrationPayload:
    """Username and ordered payment entries of a registration.

    Attributes:
        username: UTF-8 username bytes.
        entries: Primary entry, then an optional secondary entry.
    """

    username: bytes
    entries: tuple[PaymentEntry, ...]

    @property
    def primary(self) -> PaymentEntry | None:
        return self.entries[0] if self.entries else None

    @property
    def secondary(self) -> PaymentEntry | None:
        return self.entries[1] if len(self.entries) > 1 else None

    @property
    def name(self) -> str:
        """The username decoded as UTF-8."""
        return self.username.decode("utf-8")


# ---------------------------------------------------------------------------
# Resolved account
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Payment:
    """A rendered payment destination."""

    type: PaymentType
    address: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.label, "address": self.address}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Payment:
        """Parse a ``{"type": "Key Hash", "address": ...}`` entry.

        Raises:
            ValueError: If the type label is unknown.
        """
        label = data.get("type", "")
        ptype = _LABEL_TO_TYPE.get(label)
        if ptype is None:
            msg = f"unknown payment type label: {label!r}"
            raise ValueError(msg)
        return cls(type=ptype, address=data.get("address", ""))


@dataclass(frozen=True, slots=True)
class Collision:
    """Collision hash plus disambiguation data.

    Attributes:
        hash: The 10-digit collision hash.
        count: Number of other accounts sharing name and number.
        length: Digits of ``hash`` needed to tell this account apart
            (0 when the account is unique).
    """

    hash: str
    count: int = 0
    length: int = 0

    @property
    def short(self) -> str:
        """The shortest distinguishing prefix of the hash."""
        return self.hash[: self.length]

    def to_dict(self) -> dict[str, Any]:
        return {"hash": self.hash, "count": self.count, "length": self.length}


@dataclass(frozen=True, slots=True)
class Identifier:
    """A resolved Cash Account.

    Attributes:
        handle: The account handle; carries collision digits when the
            account shares its name and number with another.
        emoji: The emoji fingerprint.
        collision: Collision hash and disambiguation data.
        payments: Rendered payment destinations, primary first.
        block_height: Height of the registration block, when known.
        transaction_id: Registration transaction id (hex), when known.
    """

    handle: Handle
    emoji: str
    collision: Collision
    payments: tuple[Payment, ...] = field(default_factory=tuple)
    block_height: int | None = None
    transaction_id: str | None = None

    @property
    def collision_hash(self) -> str:
        return self.collision.hash

    def with_collision(self, collision: Collision) -> Identifier:
        """Copy with updated collision data and display digits."""
        handle = replace(self.handle, collision=collision.short or None)
        return replace(self, handle=handle, collision=collision)

    def to_dict(self) -> dict[str, Any]:
        """Serialise in the lookup server's response shape."""
        return {
            "identifier": str(self.handle),
            "information": {
                "emoji": self.emoji,
                "name": self.handle.username,
                "number": self.handle.number,
                "collision": self.collision.to_dict(),
                "payment": [p.to_dict() for p in self.payments],
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Identifier:
        """Parse a lookup server account response.

        Raises:
            InvalidHandleError: If the name or number is invalid.
            ValueError: If a payment type label is unknown.
        """
        info: dict[str, Any] = data.get("information", {})
        name = info.get("name", "")
        number = info.get("number", 0)
        handle = Handle.from_string(f"{name}#{number}")
        raw_collision: dict[str, Any] = info.get("collision") or {}
        collision = Collision(
            hash=str(raw_collision.get("hash", "")),
            count=int(raw_collision.get("count", 0)),
            length=int(raw_collision.get("length", 0)),
        )
        payments = tuple(Payment.from_dict(p) for p in info.get("payment", []))
        identifier = cls(
            handle=handle,
            emoji=info.get("emoji", ""),
            collision=collision,
            payments=payments,
        )
        return identifier.with_collision(collision) if collision.length else identifier
