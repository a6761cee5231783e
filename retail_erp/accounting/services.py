"""
Recording financial transactions and the sale/purchase invoice form.

Invoice creation is sequential and not wrapped in a database transaction:
the financial row is written first, then each inventory decrement. A
failure part way leaves the rows already written in place.
"""
import logging
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from retail_erp.core.utils import create_audit_log, epoch_millis
from retail_erp.inventory.services import decrement_stock
from .models import FinancialTransaction

logger = logging.getLogger('retail_erp.accounting')


def record_transaction(session, branch, transaction_type, amount, description=None,
                       reference_number=None, transaction_date=None, request=None):
    txn = FinancialTransaction.objects.create(
        branch=branch,
        transaction_type=transaction_type,
        amount=amount,
        description=description,
        reference_number=reference_number,
        transaction_date=transaction_date or timezone.now(),
        created_by_id=session.user_id if session else None,
    )
    create_audit_log(
        request=request,
        action='transaction_create',
        model_name='FinancialTransaction',
        object_id=txn.id,
        object_name=txn.get_transaction_type_display(),
        object_reference=reference_number,
        changes={'amount': str(amount), 'branch_id': branch.pk, 'type': transaction_type},
    )
    logger.info(f"{transaction_type} transaction {txn.id} of {amount} recorded at branch {branch.pk}")
    return txn


def invoice_total(items):
    """Sum of quantity x price minus the per-unit discount on every line"""
    total = Decimal('0')
    for item in items:
        quantity = item['quantity']
        total += quantity * item['price'] - item.get('discount', Decimal('0')) * quantity
    return total


def create_invoice(session, branch, invoice_type, items, customer_name=None, invoice_date=None,
                   notes=None, request=None):
    """Write the invoice's transaction and, for sales, take the items out of branch stock"""
    now = timezone.now()
    total = invoice_total(items)
    label = 'Sale' if invoice_type == FinancialTransaction.TYPE_SALE else 'Purchase'
    description = f"{label} invoice - {customer_name or 'Customer'}"

    txn = record_transaction(
        session,
        branch,
        invoice_type,
        total,
        description=description,
        reference_number=f"INV-{epoch_millis(now)}",
        transaction_date=invoice_date or now,
        request=request,
    )

    decremented = []
    if invoice_type == FinancialTransaction.TYPE_SALE:
        for item in items:
            row = decrement_stock(branch.pk, item['product'].pk, item['quantity'])
            if row is not None:
                decremented.append(row)

    create_audit_log(
        request=request,
        action='invoice_create',
        model_name='FinancialTransaction',
        object_id=txn.id,
        object_name=description,
        object_reference=txn.reference_number,
        changes={'total': str(total), 'lines': len(items), 'notes': notes or ''},
    )
    logger.info(f"{label} invoice {txn.reference_number} for {total} created at branch {branch.pk}")
    return txn, decremented


def sum_by_type(queryset):
    """Map transaction_type -> Decimal total for a transaction queryset"""
    totals = {code: Decimal('0') for code, _ in FinancialTransaction.TYPE_CHOICES}
    for row in queryset.order_by().values('transaction_type').annotate(total=Sum('amount')):
        totals[row['transaction_type']] = row['total'] or Decimal('0')
    return totals
