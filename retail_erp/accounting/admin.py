from django.contrib import admin
from .models import FinancialTransaction


@admin.register(FinancialTransaction)
class FinancialTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_date', 'branch', 'transaction_type', 'amount', 'reference_number', 'created_by']
    list_filter = ['transaction_type', 'branch', 'transaction_date']
    search_fields = ['reference_number', 'description']
    ordering = ['-transaction_date']
