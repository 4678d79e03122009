# masters/admin.py

from django.contrib import admin

from masters.models import Category, Customer, DiningTable, Item, Supplier


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "stock_tracked", "purchasable")
    list_filter = ("stock_tracked", "purchasable")
    search_fields = ("name",)


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("name", "item_code", "category", "rate")
    list_filter = ("category",)
    search_fields = ("name", "item_code")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "mobile", "is_active")
    search_fields = ("name", "mobile")


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "mobile", "gstin", "is_active")
    search_fields = ("name", "gstin")


admin.site.register(DiningTable)
