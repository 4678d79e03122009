# billing/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from billing.models import Bill
from masters.models import Category, Customer, Item

User = get_user_model()


class BillingApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="waiter1", password="pass")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        beverages = Category.objects.create(name="Beverages", stock_tracked=True)
        Item.objects.create(item_code=1, name="Tea", category=beverages, rate=Decimal("10"))
        self.customer = Customer.objects.create(name="Walk-in Regular")

    def _add(self, table_no, item_name, qty, rate):
        return self.client.post(
            reverse("table-drafts", kwargs={"table_no": table_no}),
            {"item_name": item_name, "qty": str(qty), "rate": str(rate)},
            format="json",
        )

    def test_open_order_to_paid_bill(self):
        self.assertEqual(self._add(5, "Tea", 2, 10).status_code, status.HTTP_201_CREATED)
        self._add(5, "Tea", 2, 10)

        res = self.client.get(reverse("table-drafts", kwargs={"table_no": 5}))
        self.assertEqual(len(res.data["lines"]), 1)
        self.assertEqual(res.data["totals"]["amt"], "40.00")

        res = self.client.post(
            reverse("bills"), {"table_no": 5, "status": "PAID", "discount": "0"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        data = res.data["data"]
        self.assertEqual(data["bill_amt"], "40.00")
        self.assertEqual(data["net_amount"], "40.00")
        self.assertEqual(data["created_by"], self.user.pk)
        self.assertEqual(len(data["lines"]), 1)
        self.assertEqual(res.data["warnings"], [])

    def test_close_then_credit_then_edit(self):
        self._add(3, "Tea", 1, 10)
        res = self.client.post(reverse("bills"), {"table_no": 3, "status": "CLOSE"}, format="json")
        bill_no = res.data["data"]["bill_no"]

        res = self.client.post(
            reverse("bill-credit", kwargs={"bill_no": bill_no}),
            {"customer_id": self.customer.id},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["data"]["status"], Bill.STATUS_CREDIT)

        res = self.client.put(
            reverse("bill-detail", kwargs={"bill_no": bill_no}),
            {"lines": [{"item_name": "Tea", "qty": "3", "rate": "10"}]},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["data"]["bill_amt"], "30.00")

    def test_invalid_transition_returns_400(self):
        self._add(4, "Tea", 1, 10)
        res = self.client.post(reverse("bills"), {"table_no": 4, "status": "PAID"}, format="json")
        bill_no = res.data["data"]["bill_no"]

        res = self.client.post(reverse("bill-pay", kwargs={"bill_no": bill_no}), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_bill_returns_404(self):
        res = self.client.get(reverse("bill-detail", kwargs={"bill_no": 9999}))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_credit_without_customer_is_a_validation_error(self):
        self._add(8, "Tea", 1, 10)
        res = self.client.post(reverse("bills"), {"table_no": 8, "status": "CREDIT"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
