"""Clients for the external Cash Account collaborators."""

from cash_account.client.bitdb import BitDBClient
from cash_account.client.lookup import LookupClient, RegistrationReceipt

__all__ = ["BitDBClient", "LookupClient", "RegistrationReceipt"]
