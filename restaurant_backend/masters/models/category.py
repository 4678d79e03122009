# masters/models/category.py

from django.db import models


class Category(models.Model):
    """
    Menu / purchase category.

    stock_tracked opts the category's items into the stock ledger.
    Untracked categories (e.g. kitchen-prepared dishes) bypass it and are
    routed to the kitchen printer instead.
    """

    name = models.CharField(max_length=120, unique=True)
    stock_tracked = models.BooleanField(default=False)
    purchasable = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        flag = "stock" if self.stock_tracked else "no-stock"
        return f"{self.name} ({flag})"
