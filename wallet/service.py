import threading
import weakref
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Iterator, Optional, Protocol
from uuid import UUID, uuid4

import structlog

from .errors import (
    AccountAlreadyExistsError,
    InsufficientBalanceError,
    SelfTransferError,
    TransferNotFoundError,
)
from .models import (
    Account,
    EntryType,
    LedgerEntry,
    LedgerHistoryResponse,
    Transfer,
    TransferKind,
)
from .money import Rate, split_amount, to_rate, validate_amount

log = structlog.get_logger(__name__)


class AccountStore(Protocol):
    def get(self, user_id: str) -> Optional[Account]: ...
    def put(self, account: Account) -> None: ...
    def delete(self, user_id: str) -> bool: ...
    def accounts(self) -> Iterator[Account]: ...
    def append_entry(self, entry: LedgerEntry) -> None: ...
    def entries_for(self, user_id: str) -> list[LedgerEntry]: ...
    def put_transfer(self, transfer: Transfer) -> None: ...
    def get_transfer(self, transfer_id: UUID) -> Optional[Transfer]: ...


class InMemoryAccountStore:
    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._entries: dict[str, list[LedgerEntry]] = {}
        self._transfers: dict[UUID, Transfer] = {}

    def get(self, user_id: str) -> Optional[Account]:
        return self._accounts.get(user_id)

    def put(self, account: Account) -> None:
        self._accounts[account.user_id] = account

    def delete(self, user_id: str) -> bool:
        self._entries.pop(user_id, None)
        return self._accounts.pop(user_id, None) is not None

    def accounts(self) -> Iterator[Account]:
        return iter(list(self._accounts.values()))

    def append_entry(self, entry: LedgerEntry) -> None:
        self._entries.setdefault(entry.user_id, []).append(entry)

    def entries_for(self, user_id: str) -> list[LedgerEntry]:
        return list(self._entries.get(user_id, []))

    def put_transfer(self, transfer: Transfer) -> None:
        self._transfers[transfer.id] = transfer

    def get_transfer(self, transfer_id: UUID) -> Optional[Transfer]:
        return self._transfers.get(transfer_id)


class WalletLedger:
    """
    In-memory authority for per-user balances of a single currency.

    Amounts are ints of the currency's minor unit. Every account is guarded by
    its own lock; transfers hold both account locks, taken in user_id order.
    """

    def __init__(self, currency: str = "COIN", store: Optional[AccountStore] = None):
        self.currency = currency
        self.store = store or InMemoryAccountStore()
        # a user lock lives only while some caller holds it
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def create_account(self, user_id: str, initial_balance: int = 0) -> Account:
        initial_balance = validate_amount(initial_balance)
        with self._lock_for(user_id):
            if self.store.get(user_id) is not None:
                raise AccountAlreadyExistsError(f"Account {user_id} already exists")
            now = datetime.now(timezone.utc)
            account = Account(
                user_id=user_id, balance=0, currency=self.currency,
                created_at=now, updated_at=now,
            )
            self.store.put(account)
            if initial_balance:
                account = self._apply(account, EntryType.CREDIT, initial_balance, "initial_balance")
            return account

    def credit(self, user_id: str, amount: int, source: str = "credit") -> int:
        amount = validate_amount(amount)
        with self._lock_for(user_id):
            account = self._get_or_open(user_id)
            return self._apply(account, EntryType.CREDIT, amount, source).balance

    def debit(self, user_id: str, amount: int, source: str = "debit") -> int:
        amount = validate_amount(amount)
        with self._lock_for(user_id):
            account = self.store.get(user_id)
            available = account.balance if account else 0
            if available < amount:
                log.info("debit_rejected", user_id=user_id, amount=amount, balance=available)
                raise InsufficientBalanceError(user_id, amount, available)
            if account is None:
                return 0
            return self._apply(account, EntryType.DEBIT, amount, source).balance

    def transfer_with_cut(
        self,
        sender_id: str,
        receiver_id: str,
        gross_amount: int,
        cut_rate: Rate,
        kind: TransferKind = TransferKind.OTHER,
    ) -> Transfer:
        if sender_id == receiver_id:
            raise SelfTransferError(f"Cannot transfer from {sender_id} to itself")
        rate = to_rate(cut_rate)
        net, platform = split_amount(gross_amount, rate)

        with ExitStack() as stack:
            for user_id in sorted((sender_id, receiver_id)):
                stack.enter_context(self._lock_for(user_id))

            sender = self.store.get(sender_id)
            available = sender.balance if sender else 0
            if available < gross_amount:
                log.info(
                    "transfer_rejected", sender_id=sender_id, receiver_id=receiver_id,
                    amount=gross_amount, balance=available,
                )
                raise InsufficientBalanceError(sender_id, gross_amount, available)

            transfer = Transfer(
                id=uuid4(),
                sender_id=sender_id,
                receiver_id=receiver_id,
                gross_amount=gross_amount,
                platform_cut_rate=rate,
                net_amount=net,
                platform_amount=platform,
                kind=kind,
                currency=self.currency,
                created_at=datetime.now(timezone.utc),
            )
            source = kind.value.lower()
            if sender is not None:
                self._apply(sender, EntryType.DEBIT, gross_amount, f"{source}_sent", transfer.id)
            self._apply(self._get_or_open(receiver_id), EntryType.CREDIT, net, f"{source}_received", transfer.id)
            self.store.put_transfer(transfer)

        log.info(
            "transfer_completed", transfer_id=str(transfer.id), kind=kind.value,
            gross=gross_amount, net=net, platform=platform,
        )
        return transfer

    def balance_of(self, user_id: str) -> int:
        account = self.store.get(user_id)
        return account.balance if account else 0

    def get_account(self, user_id: str) -> Optional[Account]:
        return self.store.get(user_id)

    def delete_account(self, user_id: str) -> bool:
        with self._lock_for(user_id):
            return self.store.delete(user_id)

    def total_balance(self) -> int:
        return sum(a.balance for a in self.store.accounts())

    def get_transfer(self, transfer_id: UUID) -> Transfer:
        transfer = self.store.get_transfer(transfer_id)
        if transfer is None:
            raise TransferNotFoundError(f"Transfer {transfer_id} not found")
        return transfer

    def get_history(self, user_id: str, limit: int = 50, offset: int = 0) -> LedgerHistoryResponse:
        all_entries = self.store.entries_for(user_id)
        all_entries.reverse()
        return LedgerHistoryResponse(
            user_id=user_id,
            entries=all_entries[offset:offset + limit],
            total_count=len(all_entries),
            current_balance=self.balance_of(user_id),
        )

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _get_or_open(self, user_id: str) -> Account:
        # caller holds the account lock
        account = self.store.get(user_id)
        if account is None:
            now = datetime.now(timezone.utc)
            account = Account(
                user_id=user_id, balance=0, currency=self.currency,
                created_at=now, updated_at=now,
            )
            self.store.put(account)
        return account

    def _apply(
        self,
        account: Account,
        entry_type: EntryType,
        amount: int,
        source: str,
        transfer_id: Optional[UUID] = None,
    ) -> Account:
        # caller holds the account lock and has checked the balance
        delta = -amount if entry_type == EntryType.DEBIT else amount
        now = datetime.now(timezone.utc)
        updated = account.model_copy(update={"balance": account.balance + delta, "updated_at": now})
        self.store.put(updated)
        self.store.append_entry(LedgerEntry(
            id=uuid4(),
            user_id=account.user_id,
            entry_type=entry_type,
            amount=delta,
            currency=self.currency,
            balance_after=updated.balance,
            source=source,
            transfer_id=transfer_id,
            created_at=now,
        ))
        return updated
