# billing/tests/test_bill_edit.py

from decimal import Decimal
from unittest import mock

from django.test import TestCase

from billing.models import Bill
from billing.services import bill_service, drafts
from billing.services.bill_edit import update_bill_with_transactions
from billing.services.errors import BillingError, InvalidBillTransitionError
from inventory.models import StockLedgerEntry
from inventory.services import stock_ledger
from masters.models import Category, Customer, Item


class BillEditTests(TestCase):
    """
    Editing L1 -> L2 leaves stock as if only L2 had been sold.
    """

    def setUp(self):
        self.beverages = Category.objects.create(name="Beverages", stock_tracked=True)
        self.kitchen = Category.objects.create(name="Kitchen")
        Item.objects.create(item_code=1, name="Tea", category=self.beverages, rate=Decimal("10"))
        Item.objects.create(item_code=2, name="Coffee", category=self.beverages, rate=Decimal("30"))
        Item.objects.create(item_code=3, name="Dosa", category=self.kitchen, rate=Decimal("60"))
        self.customer = Customer.objects.create(name="A. Khan")

        for code, name in ((1, "Tea"), (2, "Coffee")):
            stock_ledger.add_stock(
                item_code=code, item_name=name, category_id=self.beverages.id, quantity=10
            )

    def _stock(self, code):
        return stock_ledger.get_current_stock(item_code=code)

    def _paid_bill(self):
        drafts.create_draft_line(table_no=1, item_name="Tea", qty=4, rate=10)
        drafts.create_draft_line(table_no=1, item_name="Dosa", qty=1, rate=60)
        return bill_service.create_paid_bill(table_no=1).value

    def test_edit_round_trip_matches_direct_sale(self):
        bill = self._paid_bill()
        self.assertEqual(self._stock(1), Decimal("6.000"))

        result = update_bill_with_transactions(
            bill_no=bill.bill_no,
            lines=[
                {"item_name": "Tea", "qty": 1, "rate": 10},
                {"item_name": "Coffee", "qty": 2, "rate": 30},
                {"item_name": "Coffee", "qty": 1, "rate": 30},
            ],
        )
        bill = result.value

        self.assertTrue(result.ok)
        # as if L2 (Tea 1, Coffee 3) was sold directly against 10 / 10
        self.assertEqual(self._stock(1), Decimal("9.000"))
        self.assertEqual(self._stock(2), Decimal("7.000"))

        self.assertEqual(bill.lines.count(), 2)
        self.assertEqual(bill.bill_amt, Decimal("100.00"))
        self.assertEqual(bill.net_amount, Decimal("100.00"))
        self.assertEqual(bill.paid_amount, Decimal("100.00"))
        self.assertEqual(bill.total_qty, Decimal("4.000"))

        reversals = StockLedgerEntry.objects.filter(transaction_type="SALE_REVERSAL")
        self.assertEqual(reversals.count(), 1)
        self.assertEqual(reversals.get().quantity, Decimal("4.000"))

    def test_failed_reversal_still_commits_edit(self):
        bill = self._paid_bill()

        with mock.patch(
            "billing.services.bill_edit.reverse_stock_for_sale",
            side_effect=RuntimeError("ledger locked"),
        ), self.assertLogs("billing", level="ERROR"):
            result = update_bill_with_transactions(
                bill_no=bill.bill_no, lines=[{"item_name": "Tea", "qty": 1, "rate": 10}]
            )

        self.assertTrue(result.degraded)
        self.assertTrue(all(w.startswith("Stock not reversed for") for w in result.warnings))
        self.assertIn("Stock not reversed for Tea: ledger locked", result.warnings)

        bill.refresh_from_db()
        self.assertEqual(bill.bill_amt, Decimal("10.00"))
        self.assertEqual(bill.lines.count(), 1)
        # the new sale still went through: 6 - 1
        self.assertEqual(self._stock(1), Decimal("5.000"))
        self.assertFalse(StockLedgerEntry.objects.filter(transaction_type="SALE_REVERSAL").exists())

    def test_failed_new_sale_stock_still_commits_edit(self):
        bill = self._paid_bill()

        with mock.patch(
            "billing.services.bill_service.reduce_stock",
            side_effect=RuntimeError("stock store unavailable"),
        ), self.assertLogs("billing", level="ERROR"):
            result = update_bill_with_transactions(
                bill_no=bill.bill_no, lines=[{"item_name": "Coffee", "qty": 2, "rate": 30}]
            )

        self.assertEqual(
            result.warnings, ["Stock not reduced for Coffee: stock store unavailable"]
        )

        bill.refresh_from_db()
        self.assertEqual(bill.net_amount, Decimal("60.00"))
        self.assertEqual(bill.paid_amount, Decimal("60.00"))
        # reversal applied, new sale missing
        self.assertEqual(self._stock(1), Decimal("10.000"))
        self.assertEqual(self._stock(2), Decimal("10.000"))

    def test_edit_closed_bill_has_no_stock_effect(self):
        drafts.create_draft_line(table_no=2, item_name="Tea", qty=2, rate=10)
        bill = bill_service.create_closed_bill(table_no=2).value
        before = StockLedgerEntry.objects.count()

        bill = update_bill_with_transactions(
            bill_no=bill.bill_no, lines=[{"item_name": "Tea", "qty": 3, "rate": 10}]
        ).value

        self.assertEqual(bill.status, Bill.STATUS_CLOSE)
        self.assertEqual(bill.bill_amt, Decimal("30.00"))
        self.assertEqual(StockLedgerEntry.objects.count(), before)

    def test_status_change_to_credit(self):
        bill = self._paid_bill()
        bill = update_bill_with_transactions(
            bill_no=bill.bill_no,
            lines=[{"item_name": "Tea", "qty": 4, "rate": 10}],
            customer_id=self.customer.id,
            discount="5",
            status="CREDIT",
        ).value

        self.assertEqual(bill.status, Bill.STATUS_CREDIT)
        self.assertEqual(bill.paymode, Bill.PAYMODE_CREDIT)
        self.assertEqual(bill.net_amount, Decimal("35.00"))
        self.assertEqual(bill.paid_amount, Decimal("0.00"))
        self.assertEqual(self._stock(1), Decimal("6.000"))

    def test_credit_without_customer_is_rejected_before_writes(self):
        bill = self._paid_bill()
        with self.assertRaises(BillingError):
            update_bill_with_transactions(
                bill_no=bill.bill_no,
                lines=[{"item_name": "Tea", "qty": 1, "rate": 10}],
                status="CREDIT",
            )
        bill.refresh_from_db()
        self.assertEqual(bill.lines.count(), 2)
        self.assertEqual(self._stock(1), Decimal("6.000"))

    def test_invalid_edits(self):
        bill = self._paid_bill()
        with self.assertRaises(BillingError):
            update_bill_with_transactions(bill_no=bill.bill_no, lines=[])
        with self.assertRaises(BillingError):
            update_bill_with_transactions(
                bill_no=bill.bill_no, lines=[{"item_name": "Tea", "qty": 0, "rate": 10}]
            )
        with self.assertRaises(BillingError):
            update_bill_with_transactions(
                bill_no=bill.bill_no,
                lines=[{"item_name": "Tea", "qty": 1, "rate": 10}],
                discount="50",
            )

        drafts.create_draft_line(table_no=3, item_name="Tea", qty=1, rate=10)
        closed = bill_service.create_closed_bill(table_no=3).value
        with self.assertRaises(InvalidBillTransitionError):
            update_bill_with_transactions(
                bill_no=closed.bill_no,
                lines=[{"item_name": "Tea", "qty": 1, "rate": 10}],
                status="PAID",
            )
