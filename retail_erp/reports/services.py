"""
Aggregates behind the dashboards and accounting reports.

All amounts are summed from FinancialTransaction rows; dates are compared
on the local calendar date of ``transaction_date``.
"""
import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from retail_erp.accounting.models import FinancialTransaction
from retail_erp.accounting.services import sum_by_type
from retail_erp.branches.models import Branch
from retail_erp.catalog.models import Product
from retail_erp.core.capabilities import (
    ACCOUNTANT, BRANCH_MANAGER, GENERAL_MANAGER, GENERIC_DASHBOARD, dashboard_for,
)
from retail_erp.inventory.models import Inventory, InventoryTransfer

logger = logging.getLogger('retail_erp.reports')

User = get_user_model()

ZERO = Decimal('0')

# Types that add to the daily balance; every other type subtracts
INFLOW_TYPES = (FinancialTransaction.TYPE_SALE, FinancialTransaction.TYPE_INCOME)


def today():
    return timezone.localdate()


def shift_months(day, months):
    """First day of the month ``months`` away from ``day``'s month"""
    month_index = day.year * 12 + (day.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def end_of_month(day):
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def months_ago(day, months):
    """Same day of the month ``months`` earlier, clamped to that month's length"""
    first = shift_months(day, -months)
    return first.replace(day=min(day.day, end_of_month(first).day))


def financial_period(period, date_from=None, date_to=None, reference=None):
    """
    Resolve a report period to an inclusive (start, end) date pair.

    monthly: this month; quarterly: this month and the two before it;
    yearly: this month and the eleven before it; custom: the given dates.
    """
    reference = reference or today()
    if period == 'custom':
        if not date_from or not date_to:
            raise ValueError('custom period needs date_from and date_to')
        if date_from > date_to:
            raise ValueError('date_from must not be after date_to')
        return date_from, date_to
    months_back = {'monthly': 0, 'quarterly': 2, 'yearly': 11}.get(period)
    if months_back is None:
        raise ValueError(f'Unknown period: {period}')
    return shift_months(reference, -months_back), end_of_month(reference)


def analytics_period(period, reference=None):
    reference = reference or today()
    if period == 'week':
        return reference - timedelta(days=7), reference
    if period == 'quarter':
        return months_ago(reference, 3), reference
    if period == 'year':
        return months_ago(reference, 12), reference
    if period == 'month':
        return reference.replace(day=1), end_of_month(reference)
    raise ValueError(f'Unknown period: {period}')


def transactions_between(start, end, branch_id=None):
    queryset = FinancialTransaction.objects.filter(
        transaction_date__date__gte=start,
        transaction_date__date__lte=end,
    )
    if branch_id is not None:
        queryset = queryset.filter(branch_id=branch_id)
    return queryset


def _sum(queryset):
    return queryset.aggregate(total=Sum('amount'))['total'] or ZERO


# Financial report
def financial_report(start, end, branch_id=None):
    queryset = transactions_between(start, end, branch_id)
    totals = sum_by_type(queryset)

    sales = totals[FinancialTransaction.TYPE_SALE]
    purchases = totals[FinancialTransaction.TYPE_PURCHASE]
    expenses = totals[FinancialTransaction.TYPE_EXPENSE]
    income = totals[FinancialTransaction.TYPE_INCOME]
    refunds = totals[FinancialTransaction.TYPE_REFUND]

    daily = {}
    rows = (
        queryset.order_by()
        .annotate(day=TruncDate('transaction_date'))
        .values('day', 'transaction_type')
        .annotate(total=Sum('amount'))
    )
    for row in rows:
        amount = row['total'] or ZERO
        if row['transaction_type'] not in INFLOW_TYPES:
            amount = -amount
        daily[row['day']] = daily.get(row['day'], ZERO) + amount

    return {
        'branch': branch_id,
        'date_from': start,
        'date_to': end,
        'sales': sales,
        'purchases': purchases,
        'expenses': expenses,
        'income': income,
        'refunds': refunds,
        'profit': sales + income - purchases - expenses - refunds,
        'by_type': totals,
        'daily': [{'date': day, 'amount': daily[day]} for day in sorted(daily)],
    }


# Sales analytics
def sales_analytics(start, end, branch_id=None):
    sales = transactions_between(start, end, branch_id).filter(transaction_type=FinancialTransaction.TYPE_SALE)
    summary = sales.aggregate(total=Sum('amount'))
    total_sales = summary['total'] or ZERO
    count = sales.count()

    trend = [
        {'date': row['day'], 'amount': row['total'] or ZERO}
        for row in sales.order_by().annotate(day=TruncDate('transaction_date'))
        .values('day').annotate(total=Sum('amount')).order_by('day')
    ]

    return {
        'branch': branch_id,
        'date_from': start,
        'date_to': end,
        'total_sales': total_sales,
        'transaction_count': count,
        'average_order_value': (total_sales / count).quantize(Decimal('0.01')) if count else ZERO,
        'trend': trend,
        'growth': sales_growth(trend),
    }


def sales_growth(trend):
    """Percent change of the second half of the trend days over the first half"""
    if len(trend) < 2:
        return 0.0
    mid = len(trend) // 2
    first = sum((day['amount'] for day in trend[:mid]), ZERO)
    second = sum((day['amount'] for day in trend[mid:]), ZERO)
    if first <= 0:
        return 0.0
    return round(float((second - first) / first * 100), 2)


# Dashboards
def _month_start():
    return today().replace(day=1)


def general_manager_dashboard(session):
    threshold = settings.LOW_STOCK_THRESHOLD
    month_start = _month_start()
    month_txns = transactions_between(month_start, end_of_month(month_start))
    low_stock = Inventory.objects.select_related('product', 'branch').filter(quantity__lt=threshold)

    return {
        'total_branches': Branch.objects.count(),
        'total_users': User.objects.count(),
        'total_products': Product.objects.count(),
        'low_stock_items': low_stock.count(),
        'month_sales': _sum(month_txns.filter(transaction_type=FinancialTransaction.TYPE_SALE)),
        'month_expenses': _sum(month_txns.filter(transaction_type=FinancialTransaction.TYPE_EXPENSE)),
        'branches': [
            {'id': b.id, 'name': b.name, 'address': b.address, 'phone': b.phone}
            for b in Branch.objects.order_by('-created_at')
        ],
        'low_stock': [
            {
                'id': row.id,
                'product_id': row.product_id,
                'product_name': row.product.name,
                'branch_id': row.branch_id,
                'branch_name': row.branch.name,
                'quantity': row.quantity,
            }
            for row in low_stock.order_by('quantity')[:20]
        ],
    }


def branch_manager_dashboard(session):
    threshold = settings.LOW_STOCK_THRESHOLD
    branch_id = session.branch_id
    if branch_id is None:
        return {'branch': None, 'total_products': 0, 'low_stock_items': 0, 'out_of_stock_items': 0,
                'pending_transfers': 0, 'today_sales': ZERO}

    rows = Inventory.objects.filter(branch_id=branch_id)
    branch = Branch.objects.filter(pk=branch_id).values('id', 'name').first()
    return {
        'branch': branch,
        'total_products': rows.count(),
        'low_stock_items': rows.filter(quantity__gt=0, quantity__lte=threshold).count(),
        'out_of_stock_items': rows.filter(quantity__lte=0).count(),
        'pending_transfers': InventoryTransfer.objects.filter(
            to_branch_id=branch_id, status=InventoryTransfer.STATUS_PENDING
        ).count(),
        'today_sales': _sum(
            transactions_between(today(), today(), branch_id).filter(transaction_type=FinancialTransaction.TYPE_SALE)
        ),
    }


def accountant_dashboard(session):
    branch_id = session.branch_id
    month_txns = transactions_between(_month_start(), end_of_month(today()), branch_id)
    recent = FinancialTransaction.objects.select_related('branch').order_by('-transaction_date')
    if branch_id is not None:
        recent = recent.filter(branch_id=branch_id)

    return {
        'branch': branch_id,
        'today_sales': _sum(
            transactions_between(today(), today(), branch_id).filter(transaction_type=FinancialTransaction.TYPE_SALE)
        ),
        'month_sales': _sum(month_txns.filter(transaction_type=FinancialTransaction.TYPE_SALE)),
        'month_expenses': _sum(month_txns.filter(transaction_type=FinancialTransaction.TYPE_EXPENSE)),
        'recent_transactions': [
            {
                'id': txn.id,
                'branch_name': txn.branch.name,
                'transaction_type': txn.transaction_type,
                'amount': txn.amount,
                'description': txn.description,
                'reference_number': txn.reference_number,
                'transaction_date': txn.transaction_date,
            }
            for txn in recent[:5]
        ],
    }


DASHBOARD_BUILDERS = {
    GENERAL_MANAGER: general_manager_dashboard,
    BRANCH_MANAGER: branch_manager_dashboard,
    ACCOUNTANT: accountant_dashboard,
}


def dashboard(session):
    """Dashboard payload for the variant ``dashboard_for`` picks for the session's role"""
    variant = dashboard_for(session.role)
    payload = {
        'dashboard': variant,
        'profile': {
            'id': session.user_id,
            'email': session.email,
            'full_name': session.full_name,
            'role': session.role,
            'branch_id': session.branch_id,
        },
    }
    if variant != GENERIC_DASHBOARD:
        payload.update(DASHBOARD_BUILDERS[session.role](session))
    logger.debug(f"Built {variant} dashboard for {session.email}")
    return payload
