# payments/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from banking.models import BankAccount
from masters.models import Supplier
from payments.models import PaymentReceipt, SupplierBillPayment
from purchases.models import PurchaseBill

User = get_user_model()


class SupplierReceiptApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="accounts", password="pass")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.account = BankAccount.objects.create(
            name="SBI Current", account_no="7788", opening_balance=Decimal("1000.00")
        )
        self.supplier = Supplier.objects.create(name="Fresh Farms")
        self.bill = PurchaseBill.objects.create(
            supplier=self.supplier, amount=Decimal("300.00"), net_amount=Decimal("300.00")
        )

    def _payload(self, amount="300.00"):
        return {
            "party_id": self.supplier.id,
            "total_amount": amount,
            "bank_account_id": self.account.id,
            "allocations": [{"bill_id": self.bill.id, "amount": amount}],
        }

    def test_record_list_and_delete(self):
        res = self.client.post(reverse("supplier-receipts"), self._payload(), format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        receipt_id = res.data["id"]
        self.assertEqual(res.data["created_by"], self.user.pk)
        self.assertEqual(len(res.data["allocations"]), 1)

        res = self.client.get(reverse("supplier-receipts"), {"supplier_id": self.supplier.id})
        self.assertEqual([r["id"] for r in res.data], [receipt_id])

        res = self.client.delete(
            reverse("supplier-receipt-detail", kwargs={"receipt_id": receipt_id}), format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["bank_balance_after"], "1000.00")
        self.assertFalse(PaymentReceipt.objects.exists())

    def test_overpayment_is_rejected(self):
        res = self.client.post(
            reverse("supplier-receipts"), self._payload(amount="350.00"), format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("exceeds balance", res.data["detail"])

    def test_missing_receipt_is_404(self):
        res = self.client.get(reverse("supplier-receipt-detail", kwargs={"receipt_id": 999}))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)


class SupplierBillPaymentApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="accounts", password="pass")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.account = BankAccount.objects.create(
            name="SBI Current", account_no="7788", opening_balance=Decimal("1000.00")
        )
        self.supplier = Supplier.objects.create(name="Fresh Farms")
        self.bill = PurchaseBill.objects.create(
            supplier=self.supplier, amount=Decimal("300.00"), net_amount=Decimal("300.00")
        )

    def test_record_list_and_delete(self):
        res = self.client.post(
            reverse("supplier-bill-payments"),
            {"bill_id": self.bill.id, "amount": "120.00", "bank_account_id": self.account.id},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        payment_id = res.data["id"]
        self.assertEqual(res.data["supplier_name"], "Fresh Farms")

        res = self.client.get(reverse("supplier-bill-payments"), {"bill": self.bill.id})
        self.assertEqual([p["id"] for p in res.data], [payment_id])

        res = self.client.delete(
            reverse("supplier-bill-payment-detail", kwargs={"payment_id": payment_id}),
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["released"], "120.00")
        self.assertEqual(res.data["bank_balance_after"], "1000.00")
        self.assertFalse(SupplierBillPayment.objects.exists())

        res = self.client.get(
            reverse("supplier-bill-payment-detail", kwargs={"payment_id": payment_id})
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_overpayment_is_rejected(self):
        res = self.client.post(
            reverse("supplier-bill-payments"),
            {"bill_id": self.bill.id, "amount": "350.00", "bank_account_id": self.account.id},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("exceeds balance", res.data["detail"])
