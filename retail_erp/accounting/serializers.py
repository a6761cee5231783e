from decimal import Decimal

from rest_framework import serializers
from retail_erp.branches.models import Branch
from retail_erp.catalog.models import Product
from .models import FinancialTransaction


class FinancialTransactionSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = FinancialTransaction
        fields = ['id', 'branch', 'branch_name', 'transaction_type', 'amount', 'description', 'reference_number',
                  'transaction_date', 'created_by', 'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_created_by_name(self, obj):
        if obj.created_by is None:
            return None
        return obj.created_by.full_name or obj.created_by.email

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than zero')
        return value


class InvoiceItemSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=Decimal('0'),
                                        min_value=Decimal('0'))


class InvoiceSerializer(serializers.Serializer):
    INVOICE_TYPES = (FinancialTransaction.TYPE_SALE, FinancialTransaction.TYPE_PURCHASE)

    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all())
    invoice_type = serializers.ChoiceField(choices=INVOICE_TYPES)
    customer_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    invoice_date = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = InvoiceItemSerializer(many=True, allow_empty=False)
