import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from retail_erp.branches.models import Branch
from retail_erp.catalog.models import Product
from retail_erp.core.capabilities import VIEW_INVENTORY, UPDATE_STOCK, REQUEST_TRANSFERS, VIEW_ALL_BRANCHES, require
from retail_erp.core.exceptions import ServiceError
from retail_erp.core.session import session_for, branch_scope
from retail_erp.core.utils import create_audit_log
from .models import Inventory, InventoryTransfer
from .serializers import (
    InventorySerializer, ProductInventorySerializer, StockUpdateSerializer,
    InventoryTransferSerializer, InventoryTransferCreateSerializer,
)
from . import services

logger = logging.getLogger('retail_erp.inventory')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_INVENTORY)])
def inventory_list(request):
    """Inventory rows of a branch (default: the caller's branch) with the product embedded"""
    session = session_for(request)
    branch_id = branch_scope(session, request.query_params.get('branch'))

    queryset = Inventory.objects.select_related('product', 'branch')
    if branch_id is not None:
        queryset = queryset.filter(branch_id=branch_id)

    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(Q(product__name__icontains=search) | Q(product__sku__icontains=search))

    queryset = queryset.order_by('product__name')
    return Response(InventorySerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_INVENTORY)])
def inventory_low_stock(request):
    session = session_for(request)
    branch_id = branch_scope(session, request.query_params.get('branch'))
    return Response(InventorySerializer(services.low_stock_rows(branch_id), many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(UPDATE_STOCK)])
def inventory_stock_update(request):
    """Set quantity and/or threshold of a branch x product row, creating the row when missing"""
    session = session_for(request)
    serializer = StockUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    branch_scope(session, data['branch'].pk)

    row, created = services.set_stock(
        data['branch'],
        data['product'],
        quantity=data.get('quantity'),
        min_quantity=data.get('min_quantity'),
        clear_min_quantity='min_quantity' in data,
    )
    create_audit_log(
        request=request,
        action='stock_update',
        model_name='Inventory',
        object_id=row.id,
        object_name=data['product'].name,
        changes={'branch_id': data['branch'].pk, 'quantity': row.quantity, 'min_quantity': row.min_quantity,
                 'created': created},
    )
    logger.info(f"Stock for product {data['product'].pk} at branch {data['branch'].pk} set to {row.quantity} by {session.email}")
    return Response(InventorySerializer(row).data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_inventory(request, pk):
    """Inventory rows of one product across branches"""
    product = get_object_or_404(Product, pk=pk)
    rows = Inventory.objects.filter(product=product).select_related('branch').order_by('branch__name')
    return Response(ProductInventorySerializer(rows, many=True).data)


# Transfer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(VIEW_INVENTORY)])
def transfer_list_create(request):
    """
    GET ?direction=incoming|outgoing&status=&branch=
    POST {from_branch, to_branch?, notes, items: [{product, quantity}]}
    """
    session = session_for(request)

    if request.method == 'GET':
        branch_id = branch_scope(session, request.query_params.get('branch'))
        direction = request.query_params.get('direction')
        if direction not in (None, '', 'incoming', 'outgoing'):
            return Response({'error': 'direction must be incoming or outgoing'}, status=status.HTTP_400_BAD_REQUEST)
        transfers = services.transfers_for_branch(
            branch_id,
            direction=direction or None,
            status=request.query_params.get('status') or None,
        )
        return Response(InventoryTransferSerializer(transfers, many=True, context={'session': session}).data)

    if not session.can(REQUEST_TRANSFERS):
        return Response({'error': 'You are not allowed to request transfers'}, status=status.HTTP_403_FORBIDDEN)

    serializer = InventoryTransferCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    to_branch = data.get('to_branch')
    if to_branch is None:
        if session.branch_id is None:
            return Response({'to_branch': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
        to_branch = get_object_or_404(Branch, pk=session.branch_id)
    branch_scope(session, to_branch.pk)

    try:
        transfer = services.create_transfer(
            session, data['from_branch'], to_branch, data['items'], notes=data.get('notes'), request=request,
        )
    except ServiceError as e:
        logger.warning(f"Transfer request refused for {session.email}: {e.message}")
        return Response({'error': e.message}, status=e.status_code)

    return Response(
        InventoryTransferSerializer(transfer, context={'session': session}).data,
        status=status.HTTP_201_CREATED,
    )


def _get_transfer(pk):
    return get_object_or_404(
        InventoryTransfer.objects.select_related('from_branch', 'to_branch', 'requested_by', 'approved_by')
        .prefetch_related('items__product'),
        pk=pk,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_INVENTORY)])
def transfer_detail(request, pk):
    session = session_for(request)
    transfer = _get_transfer(pk)
    if (session.branch_id is not None and not session.can(VIEW_ALL_BRANCHES)
            and session.branch_id not in (transfer.from_branch_id, transfer.to_branch_id)):
        return Response({'error': 'You can only view transfers of your own branch'}, status=status.HTTP_403_FORBIDDEN)
    return Response(InventoryTransferSerializer(transfer, context={'session': session}).data)


def _transition_view(request, pk, transition):
    session = session_for(request)
    transfer = _get_transfer(pk)
    try:
        transfer = transition(session, transfer, request=request)
    except ServiceError as e:
        logger.warning(f"Transfer {pk} transition refused for {session.email}: {e.message}")
        return Response({'error': e.message}, status=e.status_code)
    return Response(InventoryTransferSerializer(transfer, context={'session': session}).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transfer_approve(request, pk):
    return _transition_view(request, pk, services.approve_transfer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transfer_reject(request, pk):
    return _transition_view(request, pk, services.reject_transfer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transfer_complete(request, pk):
    return _transition_view(request, pk, services.complete_transfer)
