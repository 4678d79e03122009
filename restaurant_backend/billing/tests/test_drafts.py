# billing/tests/test_drafts.py

from decimal import Decimal

from django.test import TestCase

from billing.models import DraftLine
from billing.services import drafts
from billing.services.errors import BillingError, DraftLineNotFoundError
from masters.models import Category, Item


class DraftLineTests(TestCase):
    def setUp(self):
        self.beverages = Category.objects.create(name="Beverages", stock_tracked=True)
        self.kitchen = Category.objects.create(name="Kitchen")
        Item.objects.create(item_code=1, name="Tea", category=self.beverages, rate=Decimal("10"))
        Item.objects.create(item_code=2, name="Dosa", category=self.kitchen, rate=Decimal("60"))

    def test_repeated_adds_merge_on_item_and_rate(self):
        drafts.create_draft_line(table_no=5, item_name="Tea", qty=2, rate=10)
        line = drafts.create_draft_line(table_no=5, item_name="Tea", qty=2, rate=10)

        self.assertEqual(DraftLine.objects.filter(table_no=5).count(), 1)
        self.assertEqual(line.qty, Decimal("4.000"))
        self.assertEqual(line.amt, Decimal("40.00"))
        self.assertEqual(line.item_code, 1)

    def test_different_rate_stays_separate(self):
        drafts.create_draft_line(table_no=5, item_name="Tea", qty=1, rate=10)
        drafts.create_draft_line(table_no=5, item_name="Tea", qty=1, rate=5)
        self.assertEqual(DraftLine.objects.filter(table_no=5).count(), 2)

    def test_print_qty_accrues_for_kitchen_items_only(self):
        dosa = drafts.create_draft_line(table_no=2, item_name="Dosa", qty=2, rate=60)
        tea = drafts.create_draft_line(table_no=2, item_name="Tea", qty=1, rate=10)
        self.assertEqual(dosa.print_qty, Decimal("2.000"))
        self.assertEqual(tea.print_qty, Decimal("0.000"))

        dosa = drafts.create_draft_line(table_no=2, item_name="Dosa", qty=1, rate=60)
        self.assertEqual(dosa.print_qty, Decimal("3.000"))

        # explicit zero does not accrue
        dosa = drafts.create_draft_line(table_no=2, item_name="Dosa", qty=1, rate=60, print_qty=0)
        self.assertEqual(dosa.qty, Decimal("4.000"))
        self.assertEqual(dosa.print_qty, Decimal("3.000"))

        self.assertEqual(list(drafts.printable_lines(table_no=2)), [dosa])
        self.assertEqual(drafts.reset_print_qty(table_no=2), 1)
        self.assertEqual(drafts.printable_lines(table_no=2).count(), 0)

    def test_update_quantity_to_zero_deletes_line(self):
        line = drafts.create_draft_line(table_no=3, item_name="Tea", qty=3, rate=10)

        updated = drafts.update_draft_quantity(line_id=line.id, qty=1)
        self.assertEqual(updated.amt, Decimal("10.00"))

        self.assertIsNone(drafts.update_draft_quantity(line_id=line.id, qty=0))
        self.assertFalse(DraftLine.objects.filter(pk=line.id).exists())

        with self.assertRaises(DraftLineNotFoundError):
            drafts.update_draft_quantity(line_id=line.id, qty=2)

    def test_validation(self):
        with self.assertRaises(BillingError):
            drafts.create_draft_line(table_no=1, item_name="Tea", qty=0, rate=10)
        with self.assertRaises(BillingError):
            drafts.create_draft_line(table_no=1, item_name="  ", qty=1, rate=10)
        with self.assertRaises(BillingError):
            drafts.create_draft_line(table_no=None, item_name="Tea", qty=1, rate=10)
        with self.assertRaises(BillingError):
            drafts.create_draft_line(table_no=1, item_name="Tea", qty=1, rate=-1)
        self.assertEqual(DraftLine.objects.count(), 0)

    def test_shift_merges_into_target_table(self):
        drafts.create_draft_line(table_no=1, item_name="Tea", qty=2, rate=10)
        drafts.create_draft_line(table_no=1, item_name="Dosa", qty=1, rate=60)
        drafts.create_draft_line(table_no=4, item_name="Tea", qty=1, rate=10)

        moved = drafts.shift_draft_lines(source_table=1, target_table=4)

        self.assertEqual(moved, 2)
        self.assertEqual(drafts.lines_for_table(table_no=1).count(), 0)
        tea = DraftLine.objects.get(table_no=4, item_name="Tea")
        self.assertEqual(tea.qty, Decimal("3.000"))
        self.assertEqual(tea.amt, Decimal("30.00"))

        totals = drafts.table_totals(table_no=4)
        self.assertEqual(totals["lines"], 2)
        self.assertEqual(totals["amt"], Decimal("90.00"))
        self.assertEqual(drafts.open_tables(), [4])

    def test_clear_table(self):
        drafts.create_draft_line(table_no=6, item_name="Tea", qty=1, rate=10)
        drafts.create_draft_line(table_no=6, item_name="Dosa", qty=1, rate=60)
        self.assertEqual(drafts.clear_table(table_no=6), 2)
        self.assertEqual(drafts.clear_table(table_no=6), 0)
