# payments/tests/test_customer_receipts.py

from decimal import Decimal

from django.test import TestCase

from banking.models import BankAccount, BankLedgerEntry
from billing.models import Bill
from masters.models import Customer
from payments.models import SalesPaymentReceipt
from payments.services import customer_receipts
from payments.services.allocation import PaymentAllocationError


class CustomerReceiptTests(TestCase):
    def setUp(self):
        self.account = BankAccount.objects.create(
            name="ICICI Savings", account_no="5511", opening_balance=Decimal("2000.00")
        )
        self.customer = Customer.objects.create(name="Ravi Traders")
        self.other = Customer.objects.create(name="Asha Caterers")

        self.credit_1 = self._credit_bill(self.customer, "400.00")
        self.credit_2 = self._credit_bill(self.customer, "250.00")
        self.foreign = self._credit_bill(self.other, "90.00")
        self.paid = Bill.objects.create(
            customer=self.customer,
            status=Bill.STATUS_PAID,
            paymode=Bill.PAYMODE_CASH,
            bill_amt=Decimal("75.00"),
            net_amount=Decimal("75.00"),
            paid_amount=Decimal("75.00"),
        )

    def _credit_bill(self, customer, net):
        return Bill.objects.create(
            customer=customer,
            status=Bill.STATUS_CREDIT,
            paymode=Bill.PAYMODE_CREDIT,
            bill_amt=Decimal(net),
            net_amount=Decimal(net),
        )

    def _receive(self, allocations, total):
        return customer_receipts.record_grouped_payment(
            customer_id=self.customer.id,
            total_amount=total,
            bank_account_id=self.account.id,
            allocations=allocations,
            payment_mode="UPI",
        )

    def test_full_and_partial_allocation(self):
        receipt = self._receive(
            [
                {"bill_id": self.credit_1.bill_no, "amount": "400.00"},
                {"bill_id": self.credit_2.bill_no, "amount": "100.00"},
            ],
            total="500.00",
        )

        self.credit_1.refresh_from_db()
        self.credit_2.refresh_from_db()
        self.account.refresh_from_db()

        self.assertEqual(self.credit_1.status, Bill.STATUS_PAID)
        self.assertEqual(self.credit_1.balance, Decimal("0.00"))
        self.assertEqual(self.credit_2.status, Bill.STATUS_CREDIT)
        self.assertEqual(self.credit_2.paid_amount, Decimal("100.00"))

        entry = BankLedgerEntry.objects.get()
        self.assertEqual(entry.kind, BankLedgerEntry.KIND_DEPOSIT)
        self.assertEqual(entry.deposit, Decimal("500.00"))
        self.assertEqual(entry.reference_type, BankLedgerEntry.REF_CUSTOMER_PAYMENT)
        self.assertEqual(entry.particulars, "Customer Payment - Ravi Traders (2 bills)")
        self.assertEqual(entry.remarks, "Customer Payment Receipt")
        self.assertEqual(self.account.balance, Decimal("2500.00"))
        self.assertEqual(receipt.bills_count, 2)

    def test_only_own_credit_bills_accept_receipts(self):
        for allocations in (
            [(self.paid.bill_no, "75.00")],
            [(self.foreign.bill_no, "75.00")],
            [(self.credit_2.bill_no, "260.00")],
        ):
            with self.subTest(allocations=allocations):
                with self.assertRaises(PaymentAllocationError):
                    total = allocations[0][1]
                    self._receive(allocations, total=total)

        self.assertEqual(SalesPaymentReceipt.objects.count(), 0)
        self.assertEqual(BankLedgerEntry.objects.count(), 0)

    def test_delete_moves_paid_bill_back_to_credit(self):
        receipt = self._receive([(self.credit_1.bill_no, "400.00")], total="400.00")
        self.credit_1.refresh_from_db()
        self.assertEqual(self.credit_1.status, Bill.STATUS_PAID)

        customer_receipts.delete_receipt(receipt_id=receipt.id, reason="cheque bounced")

        self.credit_1.refresh_from_db()
        self.account.refresh_from_db()
        self.assertEqual(self.credit_1.status, Bill.STATUS_CREDIT)
        self.assertEqual(self.credit_1.paid_amount, Decimal("0.00"))
        self.assertEqual(self.account.balance, Decimal("2000.00"))
        self.assertEqual(BankLedgerEntry.objects.count(), 0)

    def test_receipts_for_bill_and_party(self):
        receipt = self._receive([(self.credit_2.bill_no, "50.00")], total="50.00")
        self.assertEqual(
            list(customer_receipts.receipts_for_bill(bill_no=self.credit_2.bill_no)), [receipt]
        )
        self.assertEqual(
            list(customer_receipts.receipts_for_party(customer_id=self.other.id)), []
        )
