import django_filters
from django.conf import settings
from django.db.models import Q, F
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Product filter used by the catalog list and the POS product picker"""

    # Case-insensitive match on name or SKU
    search = django_filters.CharFilter(method='filter_search', label='Search')

    # Products stocked at a branch
    branch = django_filters.NumberFilter(field_name='inventory__branch_id', lookup_expr='exact', distinct=True)

    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = Product
        fields = ['search', 'branch', 'low_stock']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(sku__icontains=value))

    def filter_low_stock(self, queryset, name, value):
        """Products with at least one inventory row at or below its threshold"""
        if not value:
            return queryset
        threshold = settings.LOW_STOCK_THRESHOLD
        low = (
            Q(inventory__min_quantity__isnull=False, inventory__quantity__lte=F('inventory__min_quantity'))
            | Q(inventory__min_quantity__isnull=True, inventory__quantity__lte=threshold)
        )
        branch = self.data.get('branch')
        if branch:
            low &= Q(inventory__branch_id=branch)
        return queryset.filter(low).distinct()
