"""
Unit Tests for the Wallet Ledger

Tests cover:
1. Account creation policy
2. Credit / debit and the non-negative balance invariant
3. Transfers with a platform cut (conservation)
4. History and transfer records
5. Concurrent debits on one account
"""

import threading
from decimal import Decimal

import pytest

from wallet import (
    AccountAlreadyExistsError,
    EntryType,
    InsufficientBalanceError,
    InvalidAmountError,
    SelfTransferError,
    TransferKind,
    TransferNotFoundError,
    WalletLedger,
)


ALICE = "alice"
BOB = "bob"


class TestAccountCreation:
    """Tests for create_account and balance_of."""

    def test_create_account_with_initial_balance(self):
        ledger = WalletLedger()

        account = ledger.create_account(ALICE, initial_balance=250)

        assert account.user_id == ALICE
        assert account.balance == 250
        assert ledger.balance_of(ALICE) == 250

    def test_create_account_twice_fails(self):
        """Re-creating an account never overwrites the existing balance."""
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=100)

        with pytest.raises(AccountAlreadyExistsError):
            ledger.create_account(ALICE)

        assert ledger.balance_of(ALICE) == 100

    def test_balance_of_unknown_account_is_zero(self):
        ledger = WalletLedger()

        assert ledger.balance_of("ghost") == 0
        assert ledger.get_account("ghost") is None

    def test_negative_initial_balance_rejected(self):
        ledger = WalletLedger()

        with pytest.raises(InvalidAmountError):
            ledger.create_account(ALICE, initial_balance=-1)

        assert ledger.get_account(ALICE) is None

    def test_delete_account(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=10)

        assert ledger.delete_account(ALICE) is True
        assert ledger.delete_account(ALICE) is False
        assert ledger.balance_of(ALICE) == 0


class TestCreditDebit:
    """Tests for credit and debit."""

    def test_credit_opens_account(self):
        ledger = WalletLedger()

        assert ledger.credit(ALICE, 40, "reward") == 40
        assert ledger.get_account(ALICE) is not None

    @pytest.mark.parametrize("amount", [-1, 1.5, "10", True, Decimal("3")])
    def test_invalid_amounts_rejected(self, amount):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=10)

        with pytest.raises(InvalidAmountError):
            ledger.credit(ALICE, amount, "bad")
        with pytest.raises(InvalidAmountError):
            ledger.debit(ALICE, amount)

        assert ledger.balance_of(ALICE) == 10

    def test_debit_success(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=100)

        assert ledger.debit(ALICE, 30) == 70
        assert ledger.balance_of(ALICE) == 70

    def test_failed_debit_leaves_balance_unchanged(self):
        """A debit followed by an over-limit debit: the second changes nothing."""
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=100)
        ledger.debit(ALICE, 60)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            ledger.debit(ALICE, 41)

        assert exc_info.value.available == 40
        assert exc_info.value.requested == 41
        assert ledger.balance_of(ALICE) == 40
        assert ledger.get_history(ALICE).total_count == 2  # initial credit + one debit

    def test_debit_unknown_account_fails(self):
        ledger = WalletLedger()

        with pytest.raises(InsufficientBalanceError):
            ledger.debit("ghost", 1)

        assert ledger.get_account("ghost") is None

    def test_debit_entire_balance(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=5)

        assert ledger.debit(ALICE, 5) == 0

    def test_replay_matches_successful_operations(self):
        """Balance equals credits minus successful debits, never negative."""
        ledger = WalletLedger()
        ops = [("c", 50), ("d", 20), ("d", 40), ("c", 10), ("d", 40), ("d", 1), ("c", 7)]
        expected = 0

        for op, amount in ops:
            if op == "c":
                ledger.credit(ALICE, amount, "test")
                expected += amount
            else:
                try:
                    ledger.debit(ALICE, amount)
                    expected -= amount
                except InsufficientBalanceError:
                    pass
            assert ledger.balance_of(ALICE) >= 0

        assert ledger.balance_of(ALICE) == expected == 7


class TestTransferWithCut:
    """Tests for transfer_with_cut."""

    def test_gift_split_conserves_value(self):
        """100 at 30% cut: sender -100, receiver +70, system total -30."""
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=150)
        ledger.create_account(BOB, initial_balance=5)
        total_before = ledger.total_balance()

        transfer = ledger.transfer_with_cut(ALICE, BOB, 100, Decimal("0.3"), kind=TransferKind.GIFT)

        assert ledger.balance_of(ALICE) == 50
        assert ledger.balance_of(BOB) == 75
        assert ledger.total_balance() == total_before - 30
        assert transfer.net_amount == 70
        assert transfer.platform_amount == 30
        assert transfer.platform_cut_rate == Decimal("0.3")
        assert transfer.kind == TransferKind.GIFT

    def test_float_rate_is_accepted(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=100)

        transfer = ledger.transfer_with_cut(ALICE, BOB, 100, 0.2, kind=TransferKind.SPONSORSHIP)

        assert transfer.net_amount == 80
        assert ledger.balance_of(BOB) == 80

    def test_rounding_is_half_even_and_exact(self):
        """Odd gross amounts round to the nearest unit; net + platform == gross."""
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=1000)

        t1 = ledger.transfer_with_cut(ALICE, BOB, 5, "0.3")   # 3.5 -> 4
        t2 = ledger.transfer_with_cut(ALICE, BOB, 15, "0.3")  # 10.5 -> 10

        assert (t1.net_amount, t1.platform_amount) == (4, 1)
        assert (t2.net_amount, t2.platform_amount) == (10, 5)
        assert ledger.balance_of(ALICE) == 980
        assert ledger.balance_of(BOB) == 14

    def test_insufficient_sender_changes_nothing(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=99)
        ledger.create_account(BOB, initial_balance=1)

        with pytest.raises(InsufficientBalanceError):
            ledger.transfer_with_cut(ALICE, BOB, 100, "0.3")

        assert ledger.balance_of(ALICE) == 99
        assert ledger.balance_of(BOB) == 1
        assert ledger.get_history(BOB).total_count == 1

    def test_self_transfer_rejected(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=10)

        with pytest.raises(SelfTransferError):
            ledger.transfer_with_cut(ALICE, ALICE, 5, "0.3")

    @pytest.mark.parametrize("rate", ["-0.1", "1.5", "nan", "abc"])
    def test_invalid_rate_rejected(self, rate):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=10)

        with pytest.raises(InvalidAmountError):
            ledger.transfer_with_cut(ALICE, BOB, 5, rate)

        assert ledger.balance_of(ALICE) == 10

    def test_transfer_is_recorded(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=10)

        transfer = ledger.transfer_with_cut(ALICE, BOB, 10, "0.3", kind=TransferKind.GIFT)

        assert ledger.get_transfer(transfer.id) == transfer
        sent = ledger.get_history(ALICE).entries[0]
        received = ledger.get_history(BOB).entries[0]
        assert sent.entry_type == EntryType.DEBIT
        assert sent.amount == -10
        assert sent.transfer_id == transfer.id
        assert received.entry_type == EntryType.CREDIT
        assert received.amount == 7
        assert received.source == "gift_received"

    def test_unknown_transfer(self):
        from uuid import uuid4

        with pytest.raises(TransferNotFoundError):
            WalletLedger().get_transfer(uuid4())


class TestHistory:
    """Tests for ledger history."""

    def test_history_newest_first_with_pagination(self):
        ledger = WalletLedger()
        for amount in (1, 2, 3, 4):
            ledger.credit(ALICE, amount, f"credit-{amount}")

        history = ledger.get_history(ALICE, limit=2, offset=1)

        assert history.total_count == 4
        assert [e.amount for e in history.entries] == [3, 2]
        assert history.current_balance == 10
        assert history.entries[0].balance_after == 6


class TestConcurrency:
    """Concurrent debits on one account never overdraw it."""

    def test_parallel_debits(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=100)
        successes = []
        barrier = threading.Barrier(20)

        def worker():
            barrier.wait()
            try:
                ledger.debit(ALICE, 10)
                successes.append(1)
            except InsufficientBalanceError:
                pass

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(successes) == 10
        assert ledger.balance_of(ALICE) == 0

    def test_opposing_transfers_do_not_deadlock(self):
        ledger = WalletLedger()
        ledger.create_account(ALICE, initial_balance=1000)
        ledger.create_account(BOB, initial_balance=1000)

        def send(src, dst):
            for _ in range(100):
                ledger.transfer_with_cut(src, dst, 1, 0)

        threads = [
            threading.Thread(target=send, args=(ALICE, BOB)),
            threading.Thread(target=send, args=(BOB, ALICE)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert not any(t.is_alive() for t in threads)
        assert ledger.total_balance() == 2000

    def test_account_locks_are_not_retained(self):
        """Locks for deleted or never-opened accounts are released."""
        ledger = WalletLedger()
        ledger.credit(ALICE, 10)
        ledger.debit("ghost", 0)
        ledger.transfer_with_cut(ALICE, BOB, 5, "0.3")

        assert ledger.delete_account(ALICE) is True
        assert ledger.delete_account(BOB) is True
        assert len(ledger._locks) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
