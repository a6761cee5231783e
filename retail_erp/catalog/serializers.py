from rest_framework import serializers
from retail_erp.branches.models import Branch
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'sku', 'price', 'cost', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_sku(self, value):
        # Blank SKUs are stored as NULL so they do not collide on the unique index
        return value or None


class ProductCreateSerializer(ProductSerializer):
    """Product plus the opening inventory row at one branch"""
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all(), write_only=True)
    quantity = serializers.IntegerField(write_only=True, required=False, default=0)
    min_quantity = serializers.IntegerField(write_only=True, required=False, allow_null=True, min_value=0)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ['branch', 'quantity', 'min_quantity']
