from django.urls import path
from .views import (
    inventory_list, inventory_low_stock, inventory_stock_update, product_inventory,
    transfer_list_create, transfer_detail, transfer_approve, transfer_reject, transfer_complete,
)

urlpatterns = [
    path('inventory/', inventory_list, name='inventory-list'),
    path('inventory/stock/', inventory_stock_update, name='inventory-stock-update'),
    path('inventory/low-stock/', inventory_low_stock, name='inventory-low-stock'),
    path('products/<int:pk>/inventory/', product_inventory, name='product-inventory'),

    # Transfers
    path('inventory/transfers/', transfer_list_create, name='transfer-list-create'),
    path('inventory/transfers/<int:pk>/', transfer_detail, name='transfer-detail'),
    path('inventory/transfers/<int:pk>/approve/', transfer_approve, name='transfer-approve'),
    path('inventory/transfers/<int:pk>/reject/', transfer_reject, name='transfer-reject'),
    path('inventory/transfers/<int:pk>/complete/', transfer_complete, name='transfer-complete'),
]
