"""Lookup server and BitDB errors."""

from __future__ import annotations

from cash_account.errors.cash_account_errors import CashAccountError


class LookupServerError(CashAccountError):
    """Error from the Cash Account lookup server."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="lookup-server-error")


class BitDBError(CashAccountError):
    """Error from the BitDB indexer."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="bitdb-error")


class AccountNotFoundError(CashAccountError):
    """No registration matches the requested handle or transaction."""

    def __init__(self, what: str) -> None:
        super().__init__(
            f"cash account not found: {what}", status_code=404, code="account-not-found"
        )
