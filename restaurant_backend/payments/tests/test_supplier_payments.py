# payments/tests/test_supplier_payments.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from banking.models import BankAccount, BankLedgerEntry, BankLedgerReversal
from core.context import OperationContext
from masters.models import Supplier
from payments.models import SupplierBillPayment
from payments.services import supplier_payments
from payments.services.allocation import PaymentAllocationError
from payments.services.supplier_payments import SupplierPaymentNotFoundError
from purchases.models import PurchaseBill


class SupplierBillPaymentTests(TestCase):
    """
    GUARANTEES:
    - every payment owns exactly one WITHDRAW (PURCHASE_PAYMENT / bill id)
    - deleting a payment reverses that entry and walks the bill status back
    """

    def setUp(self):
        self.account = BankAccount.objects.create(
            name="SBI Current", account_no="7788", opening_balance=Decimal("10000.00")
        )
        self.supplier = Supplier.objects.create(name="Fresh Farms")
        self.bill = PurchaseBill.objects.create(
            supplier=self.supplier, amount=Decimal("500.00"), net_amount=Decimal("500.00")
        )
        self.ctx = OperationContext(employee_id=4)

    def _pay(self, amount, **kwargs):
        return supplier_payments.record_bill_payment(
            bill_id=self.bill.id,
            amount=amount,
            bank_account_id=self.account.id,
            payment_mode="CHEQUE",
            cheque_no=" 000123 ",
            ctx=self.ctx,
            **kwargs,
        )

    def test_partial_then_full_payment(self):
        first = self._pay("200")
        self.bill.refresh_from_db()
        self.assertEqual(self.bill.status, PurchaseBill.STATUS_PARTIALLY_PAID)
        self.assertEqual(self.bill.paid_amount, Decimal("200.00"))
        self.assertEqual(first.cheque_no, "000123")
        self.assertEqual(first.supplier_id, self.supplier.id)
        self.assertEqual(first.created_by, 4)

        entry = first.bank_entry
        self.assertEqual(entry.kind, BankLedgerEntry.KIND_WITHDRAW)
        self.assertEqual(entry.withdraw, Decimal("200.00"))
        self.assertEqual(entry.reference_type, BankLedgerEntry.REF_PURCHASE_PAYMENT)
        self.assertEqual(entry.reference_id, self.bill.id)
        self.assertEqual(entry.particulars, f"Purchase Bill Payment #{self.bill.id} - Fresh Farms")

        second = self._pay("300")
        self.bill.refresh_from_db()
        self.account.refresh_from_db()
        self.assertEqual(self.bill.status, PurchaseBill.STATUS_PAID)
        self.assertEqual(self.account.balance, Decimal("9500.00"))
        self.assertNotEqual(first.bank_entry_id, second.bank_entry_id)
        self.assertEqual(BankLedgerEntry.objects.count(), 2)

    def test_rejected_payment_writes_nothing(self):
        with self.assertRaises(PaymentAllocationError):
            self._pay("0")
        with self.assertRaises(PaymentAllocationError):
            self._pay("500.50")
        with self.assertRaises(PaymentAllocationError):
            supplier_payments.record_bill_payment(
                bill_id=9999, amount="10", bank_account_id=self.account.id
            )

        self.assertFalse(SupplierBillPayment.objects.exists())
        self.assertFalse(BankLedgerEntry.objects.exists())
        self.bill.refresh_from_db()
        self.assertEqual(self.bill.paid_amount, Decimal("0.00"))

    def test_delete_reverses_entry_and_status(self):
        first = self._pay("200")
        second = self._pay("300")

        deletion = supplier_payments.delete_bill_payment(
            payment_id=second.id, reason="cheque bounced", ctx=self.ctx
        )
        self.bill.refresh_from_db()
        self.account.refresh_from_db()

        self.assertEqual(deletion.released, Decimal("300.00"))
        self.assertEqual(deletion.purchase_bill_id, self.bill.id)
        self.assertEqual(deletion.bank_reversal.balance_after, Decimal("9800.00"))
        self.assertEqual(self.bill.status, PurchaseBill.STATUS_PARTIALLY_PAID)
        self.assertEqual(self.bill.paid_amount, Decimal("200.00"))
        self.assertEqual(self.account.balance, Decimal("9800.00"))

        reversal = BankLedgerReversal.objects.get()
        self.assertEqual(reversal.reference_type, BankLedgerEntry.REF_PURCHASE_PAYMENT)
        self.assertEqual(reversal.reason, "cheque bounced")

        supplier_payments.delete_bill_payment(payment_id=first.id)
        self.bill.refresh_from_db()
        self.assertEqual(self.bill.status, PurchaseBill.STATUS_PENDING)
        self.assertEqual(self.bill.paid_amount, Decimal("0.00"))
        self.assertFalse(SupplierBillPayment.objects.exists())

        with self.assertRaises(SupplierPaymentNotFoundError):
            supplier_payments.delete_bill_payment(payment_id=first.id)

    def test_queries(self):
        other = Supplier.objects.create(name="Dairy Co")
        other_bill = PurchaseBill.objects.create(
            supplier=other, amount=Decimal("80.00"), net_amount=Decimal("80.00")
        )
        a = self._pay("100", payment_date=date(2024, 4, 1))
        b = self._pay("50", payment_date=date(2024, 4, 20))
        supplier_payments.record_bill_payment(
            bill_id=other_bill.id,
            amount="80",
            bank_account_id=self.account.id,
            payment_date=date(2024, 4, 10),
        )

        self.assertEqual(
            set(supplier_payments.payments_for_bill(bill_id=self.bill.id)), {a, b}
        )
        self.assertEqual(
            list(
                supplier_payments.payments_for_supplier(
                    supplier_id=self.supplier.id, start_date=date(2024, 4, 15)
                )
            ),
            [b],
        )
        self.assertEqual(
            supplier_payments.payments_between(
                start_date=date(2024, 4, 1), end_date=date(2024, 4, 10)
            ).count(),
            2,
        )
        self.assertEqual(
            supplier_payments.total_paid_for_bill(bill_id=self.bill.id), Decimal("150.00")
        )
        self.assertEqual(
            supplier_payments.total_paid_between(
                start_date=date(2024, 4, 1), end_date=date(2024, 4, 30), supplier_id=other.id
            ),
            Decimal("80.00"),
        )
