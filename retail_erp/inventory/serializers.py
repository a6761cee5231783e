from rest_framework import serializers
from retail_erp.branches.models import Branch
from retail_erp.branches.serializers import BranchSerializer
from retail_erp.catalog.models import Product
from retail_erp.catalog.serializers import ProductSerializer
from retail_erp.core.capabilities import transfer_actions
from .models import Inventory, InventoryTransfer, InventoryTransferItem


class InventorySerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Inventory
        fields = ['id', 'branch', 'branch_name', 'product', 'quantity', 'min_quantity', 'is_low_stock',
                  'created_at', 'updated_at']


class ProductInventorySerializer(serializers.ModelSerializer):
    """Inventory row seen from a product, with the branch embedded"""
    branch = BranchSerializer(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Inventory
        fields = ['id', 'branch', 'product', 'quantity', 'min_quantity', 'is_low_stock', 'updated_at']


class StockUpdateSerializer(serializers.Serializer):
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all())
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(required=False)
    min_quantity = serializers.IntegerField(required=False, allow_null=True, min_value=0)

    def validate(self, attrs):
        if 'quantity' not in attrs and 'min_quantity' not in attrs:
            raise serializers.ValidationError('Provide quantity and/or min_quantity')
        return attrs


class InventoryTransferItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    price = serializers.DecimalField(source='product.price', max_digits=12, decimal_places=2, read_only=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryTransferItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'price', 'line_total']


class InventoryTransferSerializer(serializers.ModelSerializer):
    from_branch_name = serializers.CharField(source='from_branch.name', read_only=True)
    to_branch_name = serializers.CharField(source='to_branch.name', read_only=True)
    requested_by_name = serializers.SerializerMethodField()
    approved_by_name = serializers.SerializerMethodField()
    items = InventoryTransferItemSerializer(many=True, read_only=True)
    allowed_actions = serializers.SerializerMethodField()

    class Meta:
        model = InventoryTransfer
        fields = ['id', 'from_branch', 'from_branch_name', 'to_branch', 'to_branch_name', 'status',
                  'requested_by', 'requested_by_name', 'approved_by', 'approved_by_name',
                  'request_date', 'completion_date', 'notes', 'items', 'allowed_actions',
                  'created_at', 'updated_at']

    def _user_name(self, user):
        if user is None:
            return None
        return user.full_name or user.email

    def get_requested_by_name(self, obj):
        return self._user_name(obj.requested_by)

    def get_approved_by_name(self, obj):
        return self._user_name(obj.approved_by)

    def get_allowed_actions(self, obj):
        session = self.context.get('session')
        return sorted(transfer_actions(session, obj))


class TransferItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)


class InventoryTransferCreateSerializer(serializers.Serializer):
    from_branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all())
    to_branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all(), required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = TransferItemInputSerializer(many=True, allow_empty=False)
