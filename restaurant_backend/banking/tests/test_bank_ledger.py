# banking/tests/test_bank_ledger.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import Sum
from django.test import TestCase, override_settings

from banking.models import BankAccount, BankLedgerEntry, BankLedgerReversal
from banking.services import bank_ledger
from banking.services.bank_ledger import (
    BankAccountNotFoundError,
    BankEntryNotFoundError,
    BankLedgerError,
)
from core.context import OperationContext


def _signed_total(account) -> Decimal:
    agg = BankLedgerEntry.objects.filter(account=account).aggregate(
        d=Sum("deposit"), w=Sum("withdraw")
    )
    return (agg["d"] or Decimal("0")) - (agg["w"] or Decimal("0"))


class BankLedgerTests(TestCase):
    """
    GUARANTEES:
    - balance == opening_balance + signed sum of live entries
    - invalid input never writes
    - reversal restores balance and leaves a compensation record
    """

    def setUp(self):
        self.account = BankAccount.objects.create(
            name="HDFC Current",
            account_no="0012",
            opening_balance=Decimal("1000.00"),
        )
        self.ctx = OperationContext(employee_id=7, shop_id=1)

    def _assert_balance_invariant(self):
        self.account.refresh_from_db()
        self.assertEqual(
            self.account.balance,
            self.account.opening_balance + _signed_total(self.account),
        )

    # ======================================================
    # DEPOSIT / WITHDRAW
    # ======================================================

    def test_new_account_starts_at_opening_balance(self):
        self.assertEqual(self.account.balance, Decimal("1000.00"))

    def test_deposit_and_withdraw_keep_balance_invariant(self):
        e1 = bank_ledger.deposit(account_id=self.account.id, amount="250.50", ctx=self.ctx)
        e2 = bank_ledger.withdraw(account_id=self.account.id, amount=100, ctx=self.ctx)

        self.assertEqual(e1.balance_after, Decimal("1250.50"))
        self.assertEqual(e2.balance_after, Decimal("1150.50"))
        self.assertEqual(e1.withdraw, Decimal("0.00"))
        self.assertEqual(e2.deposit, Decimal("0.00"))
        self.assertEqual(e1.created_by, 7)
        self._assert_balance_invariant()

        self.account.refresh_from_db()
        self.assertEqual(self.account.version, 2)

    def test_negative_balance_is_tolerated(self):
        bank_ledger.withdraw(account_id=self.account.id, amount="1500.00")
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("-500.00"))
        self._assert_balance_invariant()

    def test_rejects_non_positive_or_missing_amount_without_writing(self):
        for bad in (0, "-5", None, ""):
            with self.assertRaises(BankLedgerError):
                bank_ledger.deposit(account_id=self.account.id, amount=bad)

        self.assertEqual(BankLedgerEntry.objects.count(), 0)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("1000.00"))
        self.assertEqual(self.account.version, 0)

    def test_rejects_missing_or_inactive_account(self):
        with self.assertRaises(BankAccountNotFoundError):
            bank_ledger.deposit(account_id=999999, amount=10)
        with self.assertRaises(BankLedgerError):
            bank_ledger.deposit(account_id=None, amount=10)

        self.account.status = BankAccount.STATUS_INACTIVE
        self.account.save()
        with self.assertRaises(BankLedgerError):
            bank_ledger.withdraw(account_id=self.account.id, amount=10)

    def test_record_bill_payment_tags_entry(self):
        entry = bank_ledger.record_bill_payment(
            account_id=self.account.id,
            bill_no=42,
            amount="320.00",
            table_name="Table 5",
        )
        self.assertEqual(entry.kind, BankLedgerEntry.KIND_DEPOSIT)
        self.assertEqual(entry.particulars, "Bill Payment #42 (Table 5)")
        self.assertEqual(entry.remarks, "Bill-no-42")
        self.assertEqual(entry.reference_type, BankLedgerEntry.REF_BILL_PAYMENT)
        self.assertEqual(entry.reference_id, 42)

    def test_adjust_balance_posts_signed_delta(self):
        up = bank_ledger.adjust_balance(account_id=self.account.id, target_balance="1200")
        self.assertEqual(up.kind, BankLedgerEntry.KIND_DEPOSIT)
        self.assertEqual(up.deposit, Decimal("200.00"))

        down = bank_ledger.adjust_balance(account_id=self.account.id, target_balance="900")
        self.assertEqual(down.kind, BankLedgerEntry.KIND_WITHDRAW)
        self.assertEqual(down.withdraw, Decimal("300.00"))
        self.assertEqual(down.reference_type, BankLedgerEntry.REF_ADJUSTMENT)

        self.assertIsNone(
            bank_ledger.adjust_balance(account_id=self.account.id, target_balance="900.00")
        )
        self._assert_balance_invariant()

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def test_entries_are_immutable(self):
        entry = bank_ledger.deposit(account_id=self.account.id, amount=10)

        entry.remarks = "edited"
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()

    # ======================================================
    # REVERSAL
    # ======================================================

    def test_delete_transaction_replays_later_snapshots(self):
        first = bank_ledger.deposit(account_id=self.account.id, amount=100)
        second = bank_ledger.withdraw(account_id=self.account.id, amount=40)
        third = bank_ledger.deposit(account_id=self.account.id, amount=10)

        result = bank_ledger.delete_transaction(
            entry_id=first.id, reason="duplicate", ctx=self.ctx
        )

        self.assertEqual(result.mode, "replay")
        self.assertEqual(result.balance_before, Decimal("1070.00"))
        self.assertEqual(result.balance_after, Decimal("970.00"))
        self.assertEqual(result.rebuilt_snapshots, 2)
        self.assertFalse(BankLedgerEntry.objects.filter(pk=first.id).exists())

        second.refresh_from_db()
        third.refresh_from_db()
        self.assertEqual(second.balance_after, Decimal("960.00"))
        self.assertEqual(third.balance_after, Decimal("970.00"))

        reversal = BankLedgerReversal.objects.get(original_entry_id=first.id)
        self.assertEqual(reversal.amount, Decimal("100.00"))
        self.assertEqual(reversal.reversed_by, 7)
        self.assertEqual(reversal.reason, "duplicate")
        self._assert_balance_invariant()

    @override_settings(BANK_REVERSAL_MODE="inverse")
    def test_delete_transaction_inverse_mode_keeps_later_snapshots(self):
        first = bank_ledger.withdraw(account_id=self.account.id, amount=100)
        second = bank_ledger.deposit(account_id=self.account.id, amount=50)

        result = bank_ledger.delete_transaction(entry_id=first.id)

        self.assertEqual(result.mode, "inverse")
        self.assertEqual(result.balance_after, Decimal("1050.00"))
        self.assertEqual(result.rebuilt_snapshots, 0)

        second.refresh_from_db()
        self.assertEqual(second.balance_after, Decimal("950.00"))
        self._assert_balance_invariant()

    def test_delete_missing_transaction(self):
        with self.assertRaises(BankEntryNotFoundError):
            bank_ledger.delete_transaction(entry_id=123456)

    # ======================================================
    # QUERIES
    # ======================================================

    def test_queries(self):
        bank_ledger.deposit(
            account_id=self.account.id, amount=100, transaction_date=date(2024, 1, 5)
        )
        bank_ledger.withdraw(
            account_id=self.account.id, amount=30, transaction_date=date(2024, 1, 20)
        )
        last = bank_ledger.deposit(
            account_id=self.account.id,
            amount=5,
            reference_type="CUSTOMER_PAYMENT",
            transaction_date=date(2024, 2, 1),
        )

        january = bank_ledger.list_transactions(
            account_id=self.account.id,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
        )
        self.assertEqual(january.count(), 2)
        self.assertEqual(
            bank_ledger.total_deposits(account_id=self.account.id), Decimal("105.00")
        )
        self.assertEqual(
            bank_ledger.total_withdrawals(
                account_id=self.account.id, end_date=date(2024, 1, 31)
            ),
            Decimal("30.00"),
        )
        self.assertEqual(bank_ledger.last_transaction(account_id=self.account.id), last)
        self.assertEqual(bank_ledger.transaction_count(account_id=self.account.id), 3)
        self.assertEqual(
            list(bank_ledger.transactions_by_reference(reference_type="CUSTOMER_PAYMENT")),
            [last],
        )
        self.assertEqual(
            bank_ledger.get_balance(account_id=self.account.id), Decimal("1075.00")
        )
