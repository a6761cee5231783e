"""
Point-of-sale cart pricing and checkout.

Checkout writes the sale transaction and then decrements stock line by
line. The steps are not atomic: if a decrement fails, the sale and any
earlier decrements stay as written and nothing is retried.
"""
import logging
from decimal import Decimal

from django.db.models import Q
from django.utils import timezone

from retail_erp.accounting.models import FinancialTransaction
from retail_erp.accounting.services import record_transaction
from retail_erp.core.exceptions import CheckoutError
from retail_erp.core.utils import create_audit_log, epoch_millis
from retail_erp.inventory.models import Inventory
from retail_erp.inventory.services import decrement_stock, notify_if_low

logger = logging.getLogger('retail_erp.pos')


def products_for_branch(branch_id, search=None):
    """Inventory rows of a branch that still have stock, with the product attached"""
    queryset = Inventory.objects.select_related('product').filter(branch_id=branch_id, quantity__gt=0)
    if search:
        queryset = queryset.filter(Q(product__name__icontains=search) | Q(product__sku__icontains=search))
    return queryset.order_by('product__name')


def cart_total(lines):
    """C = sum of price x quantity over ``[{'product': Product, 'quantity': int}]``"""
    return sum((line['product'].price * line['quantity'] for line in lines), Decimal('0'))


def quote(lines, payment_amount=None):
    total = cart_total(lines)
    result = {'total': total, 'item_count': sum(line['quantity'] for line in lines)}
    if payment_amount is not None:
        can_confirm = payment_amount >= total
        result['payment_amount'] = payment_amount
        result['can_confirm'] = can_confirm
        result['change'] = payment_amount - total if can_confirm else None
    return result


def validate_cart(branch_id, lines, payment_amount):
    """Raise CheckoutError unless the cart can be sold. Returns the cart total."""
    if not lines:
        raise CheckoutError('Cart is empty')

    stock = dict(
        Inventory.objects.filter(branch_id=branch_id, product_id__in=[line['product'].pk for line in lines])
        .values_list('product_id', 'quantity')
    )
    requested = {}
    for line in lines:
        product = line['product']
        if line['quantity'] < 1:
            raise CheckoutError(f'Quantity for {product.name} must be at least 1')
        requested[product.pk] = requested.get(product.pk, 0) + line['quantity']
        available = stock.get(product.pk, 0)
        if requested[product.pk] > available:
            raise CheckoutError(f'Only {available} of {product.name} in stock')

    total = cart_total(lines)
    if payment_amount is None or payment_amount < total:
        raise CheckoutError(f'Payment amount must be at least {total}')
    return total


def checkout(session, branch, lines, payment_amount, customer_name=None, request=None):
    total = validate_cart(branch.pk, lines, payment_amount)
    now = timezone.now()
    reference = f"POS-{epoch_millis(now)}"
    item_count = sum(line['quantity'] for line in lines)

    txn = record_transaction(
        session,
        branch,
        FinancialTransaction.TYPE_SALE,
        total,
        description=f"Sale to {customer_name or 'Customer'} - {item_count} items",
        reference_number=reference,
        transaction_date=now,
        request=request,
    )

    for line in lines:
        row = decrement_stock(branch.pk, line['product'].pk, line['quantity'])
        notify_if_low(row)

    change = payment_amount - total
    create_audit_log(
        request=request,
        action='pos_checkout',
        model_name='FinancialTransaction',
        object_id=txn.id,
        object_name=customer_name or 'Customer',
        object_reference=reference,
        changes={
            'total': str(total),
            'payment_amount': str(payment_amount),
            'items': [{'product_id': line['product'].pk, 'quantity': line['quantity']} for line in lines],
        },
    )
    logger.info(f"POS checkout {reference} at branch {branch.pk}: total {total}, paid {payment_amount}, change {change}")
    return {
        'transaction_id': txn.id,
        'reference_number': reference,
        'total': total,
        'payment_amount': payment_amount,
        'change': change,
    }
