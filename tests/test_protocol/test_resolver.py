"""Tests for registration resolution and construction (protocol/resolver.py)."""

from __future__ import annotations

import pytest

from cash_account.errors.protocol_errors import (
    MalformedPayloadError,
    NegativeAccountNumberError,
    UnknownPaymentTypeError,
    UnrecognizedAddressError,
)
from cash_account.protocol import codec, identifiers
from cash_account.protocol.models import (
    Namespace,
    Payment,
    PaymentEntry,
    PaymentType,
    RegistrationPayload,
)
from cash_account.protocol.resolver import (
    build_registration,
    build_registration_script,
    resolve,
    resolve_all,
)

_HASH = bytes.fromhex("f5bf48b397dae70be82b3cca4793f8eb2b6cdac9")
_CASH_ADDRESS = "bitcoincash:qr6m7j9njldwwzlg9v7v53unlr4jkmx6eylep8ekg2"
_TOKEN_ADDRESS = "simpleledger:qr6m7j9njldwwzlg9v7v53unlr4jkmx6eynz2uvkk5"
_PAYMENT_CODE = bytes([0x01, 0x00, 0x02]) + bytes(range(1, 33)) + bytes(range(32, 64)) + bytes(13)

_OTHER_TXID = "11" * 32
_THIRD_TXID = "22" * 32
_UNKNOWN_TYPE = "OP_RETURN 01010101 6a6f6e617468616e 05" + "00" * 20


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolve:
    def test_single_key_hash(self, make_record, jonathan_payload) -> None:
        record = make_record(jonathan_payload)
        identifier = resolve(record)
        assert identifier.handle.username == "jonathan"
        assert identifier.handle.number == 100
        assert identifier.handle.collision is None
        assert identifier.payments == (Payment(PaymentType.KEY_HASH, _CASH_ADDRESS),)
        assert identifier.block_height == 563_720
        assert identifier.transaction_id == record.transaction_id.hex()

    def test_derived_identifiers(self, make_record, jonathan_payload) -> None:
        record = make_record(jonathan_payload)
        identifier = resolve(record)
        assert identifier.emoji == identifiers.emoji(record.transaction_id, record.block_hash)
        assert identifier.collision.hash == identifiers.collision_hash(
            record.block_hash, record.transaction_id
        )
        assert identifier.collision.count == 0
        assert identifier.collision.length == 0

    def test_script_bytes_payload(self, make_record, jonathan_payload) -> None:
        from_text = resolve(make_record(jonathan_payload))
        from_script = resolve(make_record(codec.encode(jonathan_payload)))
        assert from_text == from_script

    def test_secondary_rendered_as_token_address(self, make_record) -> None:
        payload = RegistrationPayload(
            b"jonathan",
            (
                PaymentEntry(PaymentType.KEY_HASH, Namespace.PRIMARY, _HASH),
                PaymentEntry(PaymentType.KEY_HASH, Namespace.SECONDARY, _HASH),
            ),
        )
        identifier = resolve(make_record(payload))
        assert [p.address for p in identifier.payments] == [_CASH_ADDRESS, _TOKEN_ADDRESS]

    def test_payment_code(self, make_record) -> None:
        payload = RegistrationPayload(
            b"bob", (PaymentEntry(PaymentType.PAYMENT_CODE, Namespace.PRIMARY, _PAYMENT_CODE),)
        )
        payment = resolve(make_record(payload)).payments[0]
        assert payment.type is PaymentType.PAYMENT_CODE
        assert payment.address.startswith("PM8T")

    def test_malformed_payload(self, make_record) -> None:
        with pytest.raises(MalformedPayloadError):
            resolve(make_record("OP_RETURN 01010101"))

    def test_unknown_entry_type(self, make_record) -> None:
        with pytest.raises(UnknownPaymentTypeError):
            resolve(make_record(f"OP_RETURN 01010101 6a6f6e617468616e 05{_HASH.hex()}"))

    def test_pre_genesis_height(self, make_record, jonathan_payload) -> None:
        with pytest.raises(NegativeAccountNumberError):
            resolve(make_record(jonathan_payload, height=100))


# ---------------------------------------------------------------------------
# resolve_all
# ---------------------------------------------------------------------------


class TestResolveAll:
    def test_unique_account(self, make_record, jonathan_payload) -> None:
        [identifier] = resolve_all([make_record(jonathan_payload)])
        assert identifier.collision.count == 0
        assert str(identifier.handle) == "jonathan#100"

    def test_colliding_accounts(self, make_record, jonathan_payload) -> None:
        records = [
            make_record(jonathan_payload),
            make_record(jonathan_payload, txid=_OTHER_TXID),
        ]
        first, second = resolve_all(records)
        expected_length = identifiers.collision_length(
            first.collision.hash, [second.collision.hash]
        )
        for identifier in (first, second):
            assert identifier.collision.count == 1
            assert identifier.collision.length == expected_length
            assert identifier.handle.collision == identifier.collision.hash[:expected_length]
        assert str(first.handle) == f"jonathan#100.{first.collision.hash[:expected_length]}"

    def test_name_comparison_ignores_case(self, make_record) -> None:
        lower = RegistrationPayload(
            b"jonathan", (PaymentEntry(PaymentType.KEY_HASH, Namespace.PRIMARY, _HASH),)
        )
        upper = RegistrationPayload(
            b"Jonathan", (PaymentEntry(PaymentType.KEY_HASH, Namespace.PRIMARY, _HASH),)
        )
        resolved = resolve_all([make_record(lower), make_record(upper, txid=_OTHER_TXID)])
        assert [i.collision.count for i in resolved] == [1, 1]

    def test_different_numbers_do_not_collide(self, make_record, jonathan_payload) -> None:
        resolved = resolve_all(
            [
                make_record(jonathan_payload),
                make_record(jonathan_payload, txid=_OTHER_TXID, height=563_721),
            ]
        )
        assert [i.collision.count for i in resolved] == [0, 0]
        assert [i.handle.number for i in resolved] == [100, 101]

    def test_three_way_collision(self, make_record, jonathan_payload) -> None:
        resolved = resolve_all(
            [
                make_record(jonathan_payload),
                make_record(jonathan_payload, txid=_OTHER_TXID),
                make_record(jonathan_payload, txid=_THIRD_TXID),
            ]
        )
        assert [i.collision.count for i in resolved] == [2, 2, 2]
        hashes = [i.collision.hash for i in resolved]
        for index, identifier in enumerate(resolved):
            others = hashes[:index] + hashes[index + 1 :]
            assert identifier.collision.length == identifiers.collision_length(
                hashes[index], others
            )

    def test_empty(self) -> None:
        assert resolve_all([]) == []

    def test_invalid_record_raises_by_default(self, make_record, jonathan_payload) -> None:
        with pytest.raises(UnknownPaymentTypeError):
            resolve_all(
                [make_record(jonathan_payload), make_record(_UNKNOWN_TYPE, txid=_OTHER_TXID)]
            )

    def test_skip_invalid_drops_bad_records(self, make_record, jonathan_payload) -> None:
        resolved = resolve_all(
            [
                make_record(jonathan_payload),
                make_record(_UNKNOWN_TYPE, txid=_OTHER_TXID),
                make_record("OP_RETURN 01010101", txid=_THIRD_TXID),
                make_record(jonathan_payload, txid=_THIRD_TXID, height=100),
            ],
            skip_invalid=True,
        )
        assert len(resolved) == 1
        assert resolved[0].collision.count == 0
        assert resolved[0].handle.collision is None

    def test_skip_invalid_collisions_over_valid_records(
        self, make_record, jonathan_payload
    ) -> None:
        resolved = resolve_all(
            [
                make_record(jonathan_payload),
                make_record(_UNKNOWN_TYPE, txid=_THIRD_TXID),
                make_record(jonathan_payload, txid=_OTHER_TXID),
            ],
            skip_invalid=True,
        )
        assert [i.collision.count for i in resolved] == [1, 1]
        assert resolved[1].transaction_id == _OTHER_TXID


# ---------------------------------------------------------------------------
# build_registration
# ---------------------------------------------------------------------------


class TestBuildRegistration:
    def test_primary_only(self, jonathan_payload) -> None:
        assert build_registration("jonathan", _CASH_ADDRESS) == jonathan_payload

    def test_with_token_address(self) -> None:
        payload = build_registration("jonathan", _CASH_ADDRESS, _TOKEN_ADDRESS)
        assert payload.secondary == PaymentEntry(PaymentType.KEY_HASH, Namespace.SECONDARY, _HASH)

    def test_secondary_accepts_cash_spelling(self) -> None:
        payload = build_registration("jonathan", _CASH_ADDRESS, _CASH_ADDRESS)
        assert payload.secondary is not None
        assert payload.secondary.namespace is Namespace.SECONDARY

    def test_unrecognized_address(self) -> None:
        with pytest.raises(UnrecognizedAddressError, match="unable to detect"):
            build_registration("jonathan", "not-an-address")

    def test_unrecognized_secondary(self) -> None:
        with pytest.raises(UnrecognizedAddressError):
            build_registration("jonathan", _CASH_ADDRESS, "garbage")

    def test_invalid_username(self) -> None:
        with pytest.raises(MalformedPayloadError, match="invalid username"):
            build_registration("jon athan", _CASH_ADDRESS)

    def test_script(self) -> None:
        script = build_registration_script("jonathan", _CASH_ADDRESS)
        assert script.hex() == "6a040101010108" + "6a6f6e617468616e" + "1501" + _HASH.hex()
