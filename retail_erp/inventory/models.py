from django.conf import settings
from django.db import models
from django.utils import timezone
from retail_erp.branches.models import Branch
from retail_erp.catalog.models import Product


class Inventory(models.Model):
    """Per-branch, per-product quantity and reorder threshold"""
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='inventory')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='inventory')
    quantity = models.IntegerField(default=0)
    min_quantity = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product} @ {self.branch}: {self.quantity}"

    @property
    def threshold(self):
        if self.min_quantity is not None:
            return self.min_quantity
        return settings.LOW_STOCK_THRESHOLD

    @property
    def is_low_stock(self):
        return self.quantity <= self.threshold

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'
        unique_together = [['branch', 'product']]
        indexes = [
            models.Index(fields=['branch', 'quantity'], name='idx_inventory_branch_qty'),
        ]


class InventoryTransfer(models.Model):
    """Request to move stock between two branches, tracked by status"""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_COMPLETED = 'completed'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    from_branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='transfers_from')
    to_branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='transfers_to')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    requested_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='transfers_requested')
    approved_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='transfers_approved')
    request_date = models.DateTimeField(default=timezone.now)
    completion_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Transfer #{self.pk} {self.from_branch} -> {self.to_branch} ({self.status})"

    class Meta:
        db_table = 'inventory_transfers'
        ordering = ['-request_date']


class InventoryTransferItem(models.Model):
    transfer = models.ForeignKey(InventoryTransfer, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='transfer_items')
    quantity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def line_total(self):
        return self.product.price * self.quantity

    class Meta:
        db_table = 'inventory_transfer_items'
