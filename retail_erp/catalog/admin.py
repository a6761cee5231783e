from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'price', 'cost', 'created_at']
    search_fields = ['name', 'sku', 'description']
    ordering = ['name']
