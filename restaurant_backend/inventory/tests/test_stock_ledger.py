# inventory/tests/test_stock_ledger.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from core.context import OperationContext
from inventory.models import StockItem, StockLedgerEntry
from inventory.services import stock_ledger
from inventory.services.stock_ledger import StockLedgerError
from masters.models import Category


class StockLedgerTests(TestCase):
    """
    GUARANTEES:
    - untracked categories never touch the ledger
    - each entry: new_stock == previous_stock +/- quantity
    - item.stock == latest entry's new_stock
    - negative stock allowed
    """

    def setUp(self):
        self.beverages = Category.objects.create(name="Beverages", stock_tracked=True)
        self.kitchen = Category.objects.create(name="Kitchen", stock_tracked=False)
        self.ctx = OperationContext(employee_id=3)

    def _assert_snapshots(self, item):
        entries = list(StockLedgerEntry.objects.filter(item=item).order_by("id"))
        for prev, cur in zip(entries, entries[1:]):
            self.assertEqual(cur.previous_stock, prev.new_stock)
        for e in entries:
            direction = StockLedgerEntry.DIRECTION[e.transaction_type]
            if direction is None:
                self.assertEqual(abs(e.new_stock - e.previous_stock), e.quantity)
            else:
                self.assertEqual(e.new_stock, e.previous_stock + direction * e.quantity)
        item.refresh_from_db()
        self.assertEqual(item.stock, entries[-1].new_stock)

    def test_untracked_category_is_silent_noop(self):
        result = stock_ledger.reduce_stock(
            item_name="Paneer Tikka",
            category_id=self.kitchen.id,
            quantity=2,
            rate=180,
            reference_no=1,
        )
        self.assertIsNone(result)
        self.assertIsNone(
            stock_ledger.add_stock(item_name="Cola", category_id=None, quantity=1)
        )
        self.assertEqual(StockItem.objects.count(), 0)
        self.assertEqual(StockLedgerEntry.objects.count(), 0)

    def test_add_reduce_reverse_keep_snapshots(self):
        add = stock_ledger.add_stock(
            item_code=101,
            item_name="Cola",
            category_id=self.beverages.id,
            quantity="24",
            rate="20.00",
            reference_no=9,
            ctx=self.ctx,
        )
        self.assertEqual(add.transaction_type, StockLedgerEntry.TransactionType.PURCHASE)
        self.assertEqual(add.amount, Decimal("480.00"))
        self.assertEqual(add.remarks, "Stock added via Purchase Bill #9")
        self.assertEqual(add.created_by, 3)

        sale = stock_ledger.reduce_stock(
            item_code=101,
            item_name="Cola",
            category_id=self.beverages.id,
            quantity="1.5",
            rate="40",
            reference_no=77,
        )
        self.assertEqual(sale.previous_stock, Decimal("24.000"))
        self.assertEqual(sale.new_stock, Decimal("22.500"))
        self.assertEqual(sale.reference_type, StockLedgerEntry.ReferenceType.SALES_BILL)

        rev = stock_ledger.reverse_stock_for_sale(
            item_code=101,
            item_name="Cola",
            category_id=self.beverages.id,
            quantity="1.5",
            rate="40",
            reference_no=77,
        )
        self.assertEqual(rev.transaction_type, StockLedgerEntry.TransactionType.SALE_REVERSAL)
        self.assertEqual(rev.remarks, "Stock reversed for Bill #77 edit")
        self.assertEqual(rev.new_stock, Decimal("24.000"))

        item = StockItem.objects.get(item_code=101)
        self.assertEqual(item.version, 3)
        self._assert_snapshots(item)

    def test_purchase_reversal_takes_stock_back(self):
        stock_ledger.add_stock(
            item_code=101, item_name="Cola", category_id=self.beverages.id, quantity=24, reference_no=9
        )
        rev = stock_ledger.reverse_stock_for_purchase(
            item_code=101,
            item_name="Cola",
            category_id=self.beverages.id,
            quantity=24,
            rate="20",
            reference_no=9,
        )
        self.assertEqual(rev.transaction_type, StockLedgerEntry.TransactionType.PURCHASE_REVERSAL)
        self.assertEqual(rev.reference_type, StockLedgerEntry.ReferenceType.PURCHASE_BILL)
        self.assertEqual(rev.remarks, "Stock reversed for Purchase Bill #9 edit")
        self.assertEqual(rev.new_stock, Decimal("0.000"))
        self._assert_snapshots(StockItem.objects.get(item_code=101))

        self.assertIsNone(
            stock_ledger.reverse_stock_for_purchase(
                item_name="Paneer", category_id=self.kitchen.id, quantity=1, reference_no=9
            )
        )

    def test_resolves_by_name_when_code_missing(self):
        stock_ledger.add_stock(
            item_name="Mineral Water", category_id=self.beverages.id, quantity=10
        )
        stock_ledger.reduce_stock(
            item_code=55,
            item_name="mineral water",
            category_id=self.beverages.id,
            quantity=4,
        )
        self.assertEqual(StockItem.objects.count(), 1)
        item = StockItem.objects.get()
        self.assertEqual(item.item_code, 55)
        self.assertEqual(item.stock, Decimal("6.000"))

    def test_negative_stock_is_allowed(self):
        with self.assertLogs("inventory", level="WARNING"):
            entry = stock_ledger.reduce_stock(
                item_name="Soda", category_id=self.beverages.id, quantity=3
            )
        self.assertEqual(entry.new_stock, Decimal("-3.000"))
        self._assert_snapshots(entry.item)

    def test_rejects_non_positive_quantity(self):
        with self.assertRaises(StockLedgerError):
            stock_ledger.add_stock(item_name="Cola", category_id=self.beverages.id, quantity=0)
        with self.assertRaises(StockLedgerError):
            stock_ledger.reduce_stock(item_name="Cola", category_id=self.beverages.id, quantity="x")
        self.assertEqual(StockLedgerEntry.objects.count(), 0)

    def test_adjust_stock_bypasses_gate_and_records_abs_delta(self):
        stock_ledger.adjust_stock(item_name="Napkins", category_id=self.kitchen.id, new_stock=50)
        down = stock_ledger.adjust_stock(item_name="Napkins", new_stock="42.5")

        self.assertEqual(down.transaction_type, StockLedgerEntry.TransactionType.ADJUSTMENT)
        self.assertEqual(down.quantity, Decimal("7.500"))
        self.assertEqual(down.signed_quantity, Decimal("-7.500"))
        self.assertEqual(down.remarks, "Manual stock adjustment")
        self.assertIsNone(stock_ledger.adjust_stock(item_name="Napkins", new_stock="42.500"))
        self._assert_snapshots(down.item)

    def test_entries_are_immutable(self):
        entry = stock_ledger.add_stock(
            item_name="Cola", category_id=self.beverages.id, quantity=1
        )
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()

    def test_queries(self):
        stock_ledger.add_stock(item_name="Cola", category_id=self.beverages.id, quantity=5)
        stock_ledger.reduce_stock(item_name="Soda", category_id=self.beverages.id, quantity=1)
        juice = StockItem.objects.create(
            item_name="Juice",
            category=self.beverages,
            stock=Decimal("2.000"),
            min_stock_level=Decimal("5.000"),
        )

        self.assertEqual(stock_ledger.get_current_stock(item_name="cola"), Decimal("5.000"))
        self.assertEqual(stock_ledger.get_current_stock(item_name="Unknown"), Decimal("0.000"))
        self.assertIn(juice, stock_ledger.low_stock_items())
        self.assertEqual(
            [i.item_name for i in stock_ledger.out_of_stock_items()], ["Soda"]
        )
        self.assertEqual(stock_ledger.purchase_transactions().count(), 1)
        self.assertEqual(stock_ledger.sale_transactions().count(), 1)

        rows = stock_ledger.stock_by_category()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["items"], 3)
        self.assertEqual(rows[0]["total_stock"], Decimal("6.000"))
