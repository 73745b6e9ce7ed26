"""Protocol codec errors: address detection, payload parsing, handles."""

from __future__ import annotations

from cash_account.errors.cash_account_errors import CashAccountError


class AddressDetectionError(CashAccountError):
    """Address text matches none of the supported encodings."""

    def __init__(self, message: str, *, code: str = "address-detection-failed") -> None:
        super().__init__(message, status_code=400, code=code)


class UnrecognizedAddressError(AddressDetectionError):
    """A registration input address could not be classified."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="unrecognized-address")


class UnknownPaymentTypeError(CashAccountError):
    """Payment entry identifier byte is outside the fixed mapping."""

    def __init__(self, identifier: int) -> None:
        super().__init__(
            f"unknown payment type identifier: 0x{identifier:02x}",
            status_code=422,
            code="unknown-payment-type",
        )
        self.identifier = identifier


class MalformedPayloadError(CashAccountError):
    """Marker payload has a bad prefix, field count or field encoding."""

    def __init__(self, message: str, *, code: str = "malformed-payload") -> None:
        super().__init__(message, status_code=422, code=code)


class IncompletePayloadError(MalformedPayloadError):
    """Marker payload is missing its required primary payment entry."""

    def __init__(self, message: str = "payload has no primary payment entry") -> None:
        super().__init__(message, code="incomplete-payload")


class InvalidHandleError(CashAccountError):
    """Handle text does not match ``name#number[.collision]``."""

    def __init__(self, handle: str) -> None:
        super().__init__(
            f"invalid cash account handle: {handle!r}", status_code=400, code="invalid-handle"
        )
        self.handle = handle


class NegativeAccountNumberError(CashAccountError):
    """Block height precedes the protocol's genesis offset."""

    def __init__(self, block_height: int) -> None:
        super().__init__(
            f"block height {block_height} precedes the cash account genesis",
            status_code=422,
            code="negative-account-number",
        )
        self.block_height = block_height
