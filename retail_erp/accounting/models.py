from django.db import models
from django.utils import timezone
from retail_erp.branches.models import Branch


class FinancialTransaction(models.Model):
    TYPE_SALE = 'sale'
    TYPE_PURCHASE = 'purchase'
    TYPE_EXPENSE = 'expense'
    TYPE_INCOME = 'income'
    TYPE_REFUND = 'refund'
    TYPE_TRANSFER = 'transfer'

    TYPE_CHOICES = [
        (TYPE_SALE, 'Sale'),
        (TYPE_PURCHASE, 'Purchase'),
        (TYPE_EXPENSE, 'Expense'),
        (TYPE_INCOME, 'Income'),
        (TYPE_REFUND, 'Refund'),
        (TYPE_TRANSFER, 'Transfer'),
    ]

    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name='transactions')
    transaction_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.TextField(blank=True, null=True)
    reference_number = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    transaction_date = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.amount} ({self.reference_number or self.pk})"

    class Meta:
        db_table = 'financial_transactions'
        ordering = ['-transaction_date']
        indexes = [
            models.Index(fields=['branch', 'transaction_type', 'transaction_date'], name='idx_txn_branch_type_date'),
            models.Index(fields=['-transaction_date'], name='idx_txn_date'),
        ]
