from django.contrib import admin
from .models import Inventory, InventoryTransfer, InventoryTransferItem


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['product', 'branch', 'quantity', 'min_quantity', 'updated_at']
    list_filter = ['branch']
    search_fields = ['product__name', 'product__sku']


class InventoryTransferItemInline(admin.TabularInline):
    model = InventoryTransferItem
    extra = 0


@admin.register(InventoryTransfer)
class InventoryTransferAdmin(admin.ModelAdmin):
    list_display = ['id', 'from_branch', 'to_branch', 'status', 'requested_by', 'approved_by', 'request_date']
    list_filter = ['status', 'from_branch', 'to_branch']
    ordering = ['-request_date']
    inlines = [InventoryTransferItemInline]
