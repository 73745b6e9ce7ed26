"""Tests for protocol data models (protocol/models.py)."""

from __future__ import annotations

import pytest

from cash_account.errors.protocol_errors import InvalidHandleError
from cash_account.protocol.models import (
    Collision,
    Handle,
    Identifier,
    Namespace,
    Payment,
    PaymentEntry,
    PaymentType,
    RawRecord,
    RegistrationPayload,
    is_cash_account,
)

_ADDRESS = "bitcoincash:qr6m7j9njldwwzlg9v7v53unlr4jkmx6eylep8ekg2"


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class TestHandle:
    def test_parse_simple(self) -> None:
        handle = Handle.from_string("jonathan#100")
        assert handle == Handle(username="jonathan", number=100, collision=None)

    def test_parse_with_collision(self) -> None:
        handle = Handle.from_string("jonathan#100.5876")
        assert handle.username == "jonathan"
        assert handle.number == 100
        assert handle.collision == "5876"

    def test_trailing_semicolon(self) -> None:
        assert Handle.from_string("Jonathan#100;") == Handle("Jonathan", 100)

    def test_whitespace_stripped(self) -> None:
        assert Handle.from_string("  bob_1#205 \n") == Handle("bob_1", 205)

    def test_str(self) -> None:
        assert str(Handle("jonathan", 100)) == "jonathan#100"
        assert str(Handle("jonathan", 100, "58")) == "jonathan#100.58"

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "jonathan",
            "jonathan#",
            "#100",
            "jon athan#100",
            "jonathan#abc",
            "jonathan#100.",
            "jonathan#100.12a",
            "jonathan#0",
            "jonathan#-5",
            "jöna#100",
        ],
    )
    def test_invalid(self, text: str) -> None:
        with pytest.raises(InvalidHandleError) as exc_info:
            Handle.from_string(text)
        assert exc_info.value.code == "invalid-handle"

    def test_is_cash_account(self) -> None:
        assert is_cash_account("jonathan#100")
        assert is_cash_account("jonathan#100.123")
        assert not is_cash_account("jonathan@100")


# ---------------------------------------------------------------------------
# RawRecord
# ---------------------------------------------------------------------------


class TestRawRecord:
    def test_from_bitdb_row(self) -> None:
        row = {
            "blockheight": 563720,
            "blockhash": "00ff",
            "transactionhash": "abcd",
            "opreturn": "OP_RETURN 01010101",
            "name": "jonathan",
            "data": None,
        }
        record = RawRecord.from_dict(row)
        assert record.block_height == 563720
        assert record.block_hash == b"\x00\xff"
        assert record.transaction_id == b"\xab\xcd"
        assert record.payload == "OP_RETURN 01010101"
        assert record.username == "jonathan"

    def test_missing_field(self) -> None:
        with pytest.raises(KeyError):
            RawRecord.from_dict({"blockheight": 1})


# ---------------------------------------------------------------------------
# Entries / payload
# ---------------------------------------------------------------------------


class TestPaymentEntry:
    @pytest.mark.parametrize(
        ("ptype", "namespace", "identifier"),
        [
            (PaymentType.KEY_HASH, Namespace.PRIMARY, 0x01),
            (PaymentType.SCRIPT_HASH, Namespace.PRIMARY, 0x02),
            (PaymentType.PAYMENT_CODE, Namespace.PRIMARY, 0x03),
            (PaymentType.STEALTH_KEYS, Namespace.PRIMARY, 0x04),
            (PaymentType.KEY_HASH, Namespace.SECONDARY, 0x81),
            (PaymentType.SCRIPT_HASH, Namespace.SECONDARY, 0x82),
            (PaymentType.PAYMENT_CODE, Namespace.SECONDARY, 0x83),
            (PaymentType.STEALTH_KEYS, Namespace.SECONDARY, 0x84),
        ],
    )
    def test_identifier_byte(
        self, ptype: PaymentType, namespace: Namespace, identifier: int
    ) -> None:
        assert PaymentEntry(ptype, namespace, b"").identifier == identifier


class TestRegistrationPayload:
    def test_primary_and_secondary(self) -> None:
        primary = PaymentEntry(PaymentType.KEY_HASH, Namespace.PRIMARY, bytes(20))
        secondary = PaymentEntry(PaymentType.KEY_HASH, Namespace.SECONDARY, bytes(20))
        payload = RegistrationPayload(b"jonathan", (primary, secondary))
        assert payload.primary == primary
        assert payload.secondary == secondary
        assert payload.name == "jonathan"

    def test_no_secondary(self) -> None:
        payload = RegistrationPayload(b"x", ())
        assert payload.primary is None
        assert payload.secondary is None


# ---------------------------------------------------------------------------
# Identifier
# ---------------------------------------------------------------------------


def _identifier() -> Identifier:
    return Identifier(
        handle=Handle("jonathan", 100),
        emoji="\N{LEMON}",
        collision=Collision(hash="5876958390"),
        payments=(Payment(PaymentType.KEY_HASH, _ADDRESS),),
        block_height=563720,
        transaction_id="ab" * 32,
    )


class TestIdentifier:
    def test_to_dict(self) -> None:
        assert _identifier().to_dict() == {
            "identifier": "jonathan#100",
            "information": {
                "emoji": "\N{LEMON}",
                "name": "jonathan",
                "number": 100,
                "collision": {"hash": "5876958390", "count": 0, "length": 0},
                "payment": [{"type": "Key Hash", "address": _ADDRESS}],
            },
        }

    def test_collision_hash_property(self) -> None:
        assert _identifier().collision_hash == "5876958390"

    def test_with_collision_sets_display_digits(self) -> None:
        updated = _identifier().with_collision(Collision(hash="5876958390", count=1, length=2))
        assert str(updated.handle) == "jonathan#100.58"
        assert updated.collision.short == "58"

    def test_with_collision_zero_length(self) -> None:
        updated = _identifier().with_collision(Collision(hash="5876958390", count=0, length=0))
        assert updated.handle.collision is None

    def test_from_dict(self) -> None:
        data = {
            "identifier": "jonathan#100;",
            "information": {
                "emoji": "\N{LEMON}",
                "name": "jonathan",
                "number": 100,
                "collision": {"hash": "5876958390", "count": 0, "length": 0},
                "payment": [{"type": "Key Hash", "address": _ADDRESS}],
            },
        }
        identifier = Identifier.from_dict(data)
        assert identifier.handle == Handle("jonathan", 100)
        assert identifier.payments == (Payment(PaymentType.KEY_HASH, _ADDRESS),)
        assert identifier.block_height is None

    def test_from_dict_with_collision_length(self) -> None:
        data = {
            "information": {
                "emoji": "x",
                "name": "jonathan",
                "number": 100,
                "collision": {"hash": "5876958390", "count": 2, "length": 3},
                "payment": [],
            },
        }
        assert str(Identifier.from_dict(data).handle) == "jonathan#100.587"

    def test_from_dict_unknown_payment_label(self) -> None:
        data = {
            "information": {
                "name": "jonathan",
                "number": 100,
                "payment": [{"type": "Carrier Pigeon", "address": "x"}],
            },
        }
        with pytest.raises(ValueError, match="unknown payment type label"):
            Identifier.from_dict(data)
