import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from retail_erp.core.capabilities import (
    VIEW_ACCOUNTING, RECORD_TRANSACTIONS, CREATE_INVOICES, DELETE_TRANSACTIONS, require,
)
from retail_erp.core.session import session_for, branch_scope
from retail_erp.core.utils import create_audit_log
from .filters import TransactionFilter
from .models import FinancialTransaction
from .serializers import FinancialTransactionSerializer, InvoiceSerializer
from . import services

logger = logging.getLogger('retail_erp.accounting')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(VIEW_ACCOUNTING)])
def transaction_list_create(request):
    """
    GET ?branch=&type=&date_from=&date_to=&limit= newest first.
    POST records a transaction for the acting user.
    """
    session = session_for(request)

    if request.method == 'GET':
        params = request.query_params.copy()
        branch_id = branch_scope(session, params.get('branch'))
        if branch_id is not None:
            params['branch'] = str(branch_id)

        filterset = TransactionFilter(
            params,
            queryset=FinancialTransaction.objects.select_related('branch', 'created_by'),
        )
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-transaction_date')

        limit = params.get('limit')
        if limit:
            try:
                queryset = queryset[:int(limit)]
            except ValueError:
                return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

        return Response(FinancialTransactionSerializer(queryset, many=True).data)

    if not session.can(RECORD_TRANSACTIONS):
        return Response({'error': 'You are not allowed to record transactions'}, status=status.HTTP_403_FORBIDDEN)

    serializer = FinancialTransactionSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Transaction validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    branch_scope(session, data['branch'].pk)
    txn = services.record_transaction(
        session,
        data['branch'],
        data['transaction_type'],
        data['amount'],
        description=data.get('description'),
        reference_number=data.get('reference_number'),
        transaction_date=data.get('transaction_date'),
        request=request,
    )
    return Response(FinancialTransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, require(VIEW_ACCOUNTING)])
def transaction_detail(request, pk):
    txn = get_object_or_404(FinancialTransaction.objects.select_related('branch', 'created_by'), pk=pk)
    session = session_for(request)
    branch_scope(session, txn.branch_id)

    if request.method == 'GET':
        return Response(FinancialTransactionSerializer(txn).data)

    if not session.can(DELETE_TRANSACTIONS):
        return Response({'error': 'Only general managers can delete transactions'}, status=status.HTTP_403_FORBIDDEN)

    create_audit_log(
        request=request,
        action='delete',
        model_name='FinancialTransaction',
        object_id=txn.id,
        object_name=txn.get_transaction_type_display(),
        object_reference=txn.reference_number,
        changes={'amount': str(txn.amount)},
    )
    txn.delete()
    logger.info(f"Transaction {pk} deleted by {session.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(CREATE_INVOICES)])
def invoice_list_create(request):
    """
    GET: transactions created by the invoice form (reference INV-...).
    POST: sale or purchase invoice; sales take the items out of branch stock.
    """
    session = session_for(request)

    if request.method == 'GET':
        branch_id = branch_scope(session, request.query_params.get('branch'))
        queryset = FinancialTransaction.objects.select_related('branch', 'created_by').filter(
            reference_number__startswith='INV-'
        )
        if branch_id is not None:
            queryset = queryset.filter(branch_id=branch_id)
        return Response(FinancialTransactionSerializer(queryset.order_by('-transaction_date'), many=True).data)

    serializer = InvoiceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    branch_scope(session, data['branch'].pk)
    try:
        txn, decremented = services.create_invoice(
            session,
            data['branch'],
            data['invoice_type'],
            data['items'],
            customer_name=data.get('customer_name'),
            invoice_date=data.get('invoice_date'),
            notes=data.get('notes'),
            request=request,
        )
    except Exception as e:
        logger.error(f"Invoice creation failed for {session.email}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to create invoice'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({
        'transaction': FinancialTransactionSerializer(txn).data,
        'total': str(txn.amount),
        'inventory_updated': [row.id for row in decremented],
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_ACCOUNTING)])
def invoice_detail(request, pk):
    txn = get_object_or_404(
        FinancialTransaction.objects.select_related('branch', 'created_by'),
        pk=pk,
        reference_number__startswith='INV-',
    )
    branch_scope(session_for(request), txn.branch_id)
    return Response(FinancialTransactionSerializer(txn).data)
