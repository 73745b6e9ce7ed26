"""Cash Account protocol: payload codec, identifiers and resolution."""

from cash_account.protocol.codec import decode, encode, encode_text
from cash_account.protocol.identifiers import account_number, collision_hash, emoji
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
from cash_account.protocol.resolver import (
    build_registration,
    build_registration_script,
    resolve,
    resolve_all,
)

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
    "account_number",
    "build_registration",
    "build_registration_script",
    "collision_hash",
    "decode",
    "emoji",
    "encode",
    "encode_text",
    "is_cash_account",
    "resolve",
    "resolve_all",
]
