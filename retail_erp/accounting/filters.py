import django_filters
from .models import FinancialTransaction


class TransactionFilter(django_filters.FilterSet):
    branch = django_filters.NumberFilter(field_name='branch_id', lookup_expr='exact')
    type = django_filters.ChoiceFilter(field_name='transaction_type', choices=FinancialTransaction.TYPE_CHOICES)
    date_from = django_filters.DateFilter(field_name='transaction_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='transaction_date', lookup_expr='date__lte')
    reference = django_filters.CharFilter(field_name='reference_number', lookup_expr='istartswith')

    class Meta:
        model = FinancialTransaction
        fields = ['branch', 'type', 'date_from', 'date_to', 'reference']
