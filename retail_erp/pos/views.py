import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from retail_erp.branches.models import Branch
from retail_erp.core.capabilities import USE_POS, require
from retail_erp.core.exceptions import CheckoutError
from retail_erp.core.session import session_for, branch_scope
from .serializers import POSProductSerializer, QuoteSerializer, CheckoutSerializer
from . import services

logger = logging.getLogger('retail_erp.pos')


def _money(value):
    return None if value is None else str(value)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(USE_POS)])
def pos_products(request):
    """Products in stock at a branch, searchable by name or SKU"""
    session = session_for(request)
    branch_id = branch_scope(session, request.query_params.get('branch'))
    if branch_id is None:
        return Response({'error': 'branch is required'}, status=status.HTTP_400_BAD_REQUEST)

    search = request.query_params.get('search', '').strip()
    rows = services.products_for_branch(branch_id, search=search or None)
    return Response(POSProductSerializer(rows, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(USE_POS)])
def pos_quote(request):
    """Cart total and, when a payment amount is given, the change due"""
    serializer = QuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = services.quote(serializer.validated_data['items'], serializer.validated_data.get('payment_amount'))
    return Response({
        'total': _money(result['total']),
        'item_count': result['item_count'],
        'payment_amount': _money(result.get('payment_amount')),
        'can_confirm': result.get('can_confirm', False),
        'change': _money(result.get('change')),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(USE_POS)])
def pos_checkout(request):
    session = session_for(request)
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    branch = data.get('branch')
    if branch is None:
        if session.branch_id is None:
            return Response({'branch': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
        branch = get_object_or_404(Branch, pk=session.branch_id)
    branch_scope(session, branch.pk)

    try:
        result = services.checkout(
            session,
            branch,
            data['items'],
            data['payment_amount'],
            customer_name=data.get('customer_name'),
            request=request,
        )
    except CheckoutError as e:
        logger.warning(f"Checkout blocked for {session.email}: {e.message}")
        return Response({'error': e.message}, status=e.status_code)
    except Exception as e:
        logger.error(f"Checkout failed for {session.email}: {str(e)}", exc_info=True)
        return Response({'error': 'Checkout failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({
        'transaction_id': result['transaction_id'],
        'reference_number': result['reference_number'],
        'total': _money(result['total']),
        'payment_amount': _money(result['payment_amount']),
        'change': _money(result['change']),
    }, status=status.HTTP_201_CREATED)
