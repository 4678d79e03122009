# masters/models/party.py

from django.db import models


class Customer(models.Model):
    name = models.CharField(max_length=200)
    mobile = models.CharField(max_length=30, blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Supplier(models.Model):
    name = models.CharField(max_length=200)
    mobile = models.CharField(max_length=30, blank=True, default="")
    gstin = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class DiningTable(models.Model):
    table_no = models.PositiveIntegerField(unique=True)
    name = models.CharField(max_length=60, blank=True, default="")
    section = models.CharField(max_length=60, blank=True, default="")

    class Meta:
        ordering = ["table_no"]

    def __str__(self):
        return self.name or f"Table {self.table_no}"
