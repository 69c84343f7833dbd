"""
Wallet Ledger

This module provides:
- Per-user balances in integer minor units, never negative
- Credit, debit and transfer-with-platform-cut flows
- Immutable ledger entries and transfer records
- A pluggable account store (in-memory by default)
"""

from .errors import (
    LedgerError,
    InvalidAmountError,
    InsufficientBalanceError,
    AccountAlreadyExistsError,
    SelfTransferError,
    TransferNotFoundError,
)
from .models import (
    Account,
    EntryType,
    LedgerEntry,
    Transfer,
    TransferKind,
)
from .service import AccountStore, InMemoryAccountStore, WalletLedger

__all__ = [
    "LedgerError",
    "InvalidAmountError",
    "InsufficientBalanceError",
    "AccountAlreadyExistsError",
    "SelfTransferError",
    "TransferNotFoundError",
    "Account",
    "EntryType",
    "LedgerEntry",
    "Transfer",
    "TransferKind",
    "AccountStore",
    "InMemoryAccountStore",
    "WalletLedger",
]
