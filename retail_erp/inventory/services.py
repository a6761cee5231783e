"""
Inventory rows and the inventory-transfer workflow.

Transfer states: pending -> approved | rejected, approved -> completed.
None of the transitions move stock; they only record the decision.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from retail_erp.core.capabilities import (
    APPROVE, REJECT, COMPLETE, DECIDE_TRANSFERS, COMPLETE_TRANSFERS, REQUEST_TRANSFERS,
    transfer_actions,
)
from retail_erp.core.exceptions import TransferTransitionError, TransferPermissionError
from retail_erp.core.utils import create_audit_log
from retail_erp.notifications.models import Notification
from retail_erp.notifications.services import notify, notify_branch_managers
from .models import Inventory, InventoryTransfer, InventoryTransferItem

logger = logging.getLogger('retail_erp.inventory')


def low_stock_q():
    """Rows at or below their own threshold, or the configured default when none is set"""
    return (
        Q(min_quantity__isnull=False, quantity__lte=F('min_quantity'))
        | Q(min_quantity__isnull=True, quantity__lte=settings.LOW_STOCK_THRESHOLD)
    )


def low_stock_rows(branch_id=None):
    queryset = Inventory.objects.select_related('product', 'branch').filter(low_stock_q())
    if branch_id is not None:
        queryset = queryset.filter(branch_id=branch_id)
    return queryset.order_by('quantity')


def set_stock(branch, product, quantity=None, min_quantity=None, clear_min_quantity=False):
    """Update the branch x product row, creating it when missing. Returns (row, created)."""
    row, created = Inventory.objects.get_or_create(
        branch=branch,
        product=product,
        defaults={'quantity': quantity or 0, 'min_quantity': min_quantity},
    )
    if not created:
        update_fields = ['updated_at']
        if quantity is not None:
            row.quantity = quantity
            update_fields.append('quantity')
        if min_quantity is not None or clear_min_quantity:
            row.min_quantity = min_quantity
            update_fields.append('min_quantity')
        row.save(update_fields=update_fields)
    return row, created


def decrement_stock(branch_id, product_id, quantity):
    """
    Subtract ``quantity`` from the matching row if one exists.
    Returns the refreshed row, or None when the branch does not stock the product.
    """
    updated = Inventory.objects.filter(branch_id=branch_id, product_id=product_id).update(
        quantity=F('quantity') - quantity,
        updated_at=timezone.now(),
    )
    if not updated:
        logger.warning(f"No inventory row for product {product_id} at branch {branch_id}, nothing decremented")
        return None
    return Inventory.objects.select_related('product', 'branch').get(branch_id=branch_id, product_id=product_id)


def notify_if_low(row):
    if row is None or not row.is_low_stock:
        return []
    return notify_branch_managers(
        row.branch,
        title='Low stock',
        message=f"{row.product.name} is down to {row.quantity} at {row.branch.name}",
        type=Notification.TYPE_LOW_STOCK,
        reference_type='low_stock',
        reference_id=row.id,
    )


# Transfers
def create_transfer(session, from_branch, to_branch, items, notes=None, request=None):
    """
    Insert a pending transfer and one item row per entry.

    ``items`` is a list of ``{'product': Product, 'quantity': int}``.
    """
    if REQUEST_TRANSFERS not in session.capabilities:
        raise TransferPermissionError('You are not allowed to request transfers')
    if from_branch.pk == to_branch.pk:
        raise TransferTransitionError('Source and destination branch must differ')
    if not items:
        raise TransferTransitionError('A transfer needs at least one item')

    with transaction.atomic():
        transfer = InventoryTransfer.objects.create(
            from_branch=from_branch,
            to_branch=to_branch,
            status=InventoryTransfer.STATUS_PENDING,
            requested_by_id=session.user_id,
            request_date=timezone.now(),
            notes=notes or None,
        )
        InventoryTransferItem.objects.bulk_create([
            InventoryTransferItem(transfer=transfer, product=item['product'], quantity=item['quantity'])
            for item in items
        ])

    create_audit_log(
        request=request,
        action='transfer_create',
        model_name='InventoryTransfer',
        object_id=transfer.id,
        object_name=f"{from_branch.name} -> {to_branch.name}",
        changes={'items': [{'product_id': i['product'].pk, 'quantity': i['quantity']} for i in items]},
    )
    notify_branch_managers(
        to_branch,
        title='New transfer request',
        message=f"{session.full_name or session.email} requested {len(items)} item(s) from {from_branch.name} to {to_branch.name}",
        type=Notification.TYPE_TRANSFER,
        reference_type='inventory_transfer',
        reference_id=transfer.id,
        exclude_user_id=session.user_id,
    )
    logger.info(f"Transfer {transfer.id} requested by {session.email}: {from_branch.id} -> {to_branch.id}")
    return transfer


REQUIRED_CAPABILITY = {
    APPROVE: DECIDE_TRANSFERS,
    REJECT: DECIDE_TRANSFERS,
    COMPLETE: COMPLETE_TRANSFERS,
}


def check_transition(session, transfer, action):
    """Raise TransferPermissionError (403) or TransferTransitionError (409) unless ``action`` is allowed"""
    if action in transfer_actions(session, transfer):
        return
    if REQUIRED_CAPABILITY[action] not in session.capabilities:
        raise TransferPermissionError(f'Your role cannot {action} transfers')
    if action in (APPROVE, REJECT) and transfer.to_branch_id != session.branch_id:
        raise TransferPermissionError(f'Only managers of the destination branch can {action} this transfer')
    raise TransferTransitionError(f'Cannot {action} a transfer that is {transfer.status}')


def apply_transition(session, transfer, action, request=None):
    check_transition(session, transfer, action)

    previous = transfer.status
    if action == APPROVE:
        transfer.status = InventoryTransfer.STATUS_APPROVED
        transfer.approved_by_id = session.user_id
        update_fields = ['status', 'approved_by', 'updated_at']
    elif action == REJECT:
        transfer.status = InventoryTransfer.STATUS_REJECTED
        transfer.approved_by_id = session.user_id
        update_fields = ['status', 'approved_by', 'updated_at']
    else:
        transfer.status = InventoryTransfer.STATUS_COMPLETED
        transfer.completion_date = timezone.now()
        update_fields = ['status', 'completion_date', 'updated_at']
    transfer.save(update_fields=update_fields)

    create_audit_log(
        request=request,
        action=f'transfer_{action}',
        model_name='InventoryTransfer',
        object_id=transfer.id,
        object_name=f"{transfer.from_branch.name} -> {transfer.to_branch.name}",
        changes={'status': {'old': previous, 'new': transfer.status}},
    )

    if action in (APPROVE, REJECT) and transfer.requested_by is not None:
        notify(
            transfer.requested_by,
            title=f'Transfer {transfer.status}',
            message=f"Your transfer request #{transfer.id} to {transfer.to_branch.name} was {transfer.status}",
            type=Notification.TYPE_TRANSFER,
            reference_type='inventory_transfer',
            reference_id=transfer.id,
        )

    logger.info(f"Transfer {transfer.id} {previous} -> {transfer.status} by {session.email}")
    return transfer


def approve_transfer(session, transfer, request=None):
    return apply_transition(session, transfer, APPROVE, request=request)


def reject_transfer(session, transfer, request=None):
    return apply_transition(session, transfer, REJECT, request=request)


def complete_transfer(session, transfer, request=None):
    return apply_transition(session, transfer, COMPLETE, request=request)


def transfers_for_branch(branch_id, direction=None, status=None):
    queryset = InventoryTransfer.objects.select_related(
        'from_branch', 'to_branch', 'requested_by', 'approved_by'
    ).prefetch_related('items__product')
    if direction == 'incoming':
        queryset = queryset.filter(to_branch_id=branch_id)
    elif direction == 'outgoing':
        queryset = queryset.filter(from_branch_id=branch_id)
    elif branch_id is not None:
        queryset = queryset.filter(Q(to_branch_id=branch_id) | Q(from_branch_id=branch_id))
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-request_date')
