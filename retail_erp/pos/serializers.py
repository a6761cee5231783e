from decimal import Decimal

from rest_framework import serializers
from retail_erp.branches.models import Branch
from retail_erp.catalog.models import Product
from retail_erp.inventory.models import Inventory


class POSProductSerializer(serializers.ModelSerializer):
    """Inventory row flattened for the POS product picker"""
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    name = serializers.CharField(source='product.name', read_only=True)
    sku = serializers.CharField(source='product.sku', read_only=True)
    price = serializers.DecimalField(source='product.price', max_digits=12, decimal_places=2, read_only=True)
    inventory_id = serializers.IntegerField(source='id', read_only=True)

    class Meta:
        model = Inventory
        fields = ['product_id', 'name', 'sku', 'price', 'inventory_id', 'quantity', 'min_quantity']


class CartLineSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)


class QuoteSerializer(serializers.Serializer):
    items = CartLineSerializer(many=True)
    payment_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True,
                                              min_value=Decimal('0'))


class CheckoutSerializer(serializers.Serializer):
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all(), required=False)
    customer_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = CartLineSerializer(many=True)
    payment_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
