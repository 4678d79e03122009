# banking/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from banking.models import BankAccount, BankLedgerEntry

User = get_user_model()


class BankApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="cashier", password="pass")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.account = BankAccount.objects.create(name="Cash Box")

    def test_requires_authentication(self):
        anon = APIClient()
        res = anon.get(reverse("bank-accounts"))
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_post_deposit_and_reverse(self):
        url = reverse("bank-transactions", kwargs={"account_id": self.account.id})
        res = self.client.post(
            url, {"kind": "DEPOSIT", "amount": "75.00", "particulars": "Float"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["created_by"], self.user.pk)

        entry_id = res.data["id"]
        res = self.client.post(
            reverse("bank-transaction-reverse", kwargs={"entry_id": entry_id}),
            {"reason": "wrong account"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["balance_after"], "0.00")
        self.assertFalse(BankLedgerEntry.objects.filter(pk=entry_id).exists())

    def test_invalid_amount_returns_400(self):
        url = reverse("bank-transactions", kwargs={"account_id": self.account.id})
        res = self.client.post(url, {"kind": "WITHDRAW", "amount": "0"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("detail", res.data)

    def test_missing_account_returns_404(self):
        url = reverse("bank-transactions", kwargs={"account_id": 99999})
        res = self.client.post(url, {"kind": "DEPOSIT", "amount": "5"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_balance_summary_and_adjustment(self):
        url = reverse("bank-balance", kwargs={"account_id": self.account.id})
        res = self.client.post(url, {"target_balance": "40.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        res = self.client.get(url)
        self.assertEqual(res.data["balance"], "40.00")
        self.assertEqual(res.data["transaction_count"], 1)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("40.00"))
