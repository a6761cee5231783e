import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from retail_erp.core.capabilities import MANAGE_PRODUCTS
from retail_erp.core.session import session_for, branch_scope
from retail_erp.core.utils import create_audit_log
from retail_erp.inventory.models import Inventory
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer, ProductCreateSerializer

logger = logging.getLogger('retail_erp.catalog')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products or create one together with its opening inventory row"""
    session = session_for(request)

    if request.method == 'GET':
        filterset = ProductFilter(request.query_params, queryset=Product.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(ProductSerializer(filterset.qs, many=True).data)

    if not session.can(MANAGE_PRODUCTS):
        logger.warning(f"User {session.email} attempted to create a product without permission")
        return Response({'error': 'You do not have permission to add products'}, status=status.HTTP_403_FORBIDDEN)

    serializer = ProductCreateSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Product creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    branch = data.pop('branch')
    branch_scope(session, branch.pk)
    quantity = data.pop('quantity', 0)
    min_quantity = data.pop('min_quantity', None)

    with transaction.atomic():
        product = Product.objects.create(**data)
        inventory = Inventory.objects.create(
            branch=branch,
            product=product,
            quantity=quantity,
            min_quantity=min_quantity,
        )

    create_audit_log(
        request=request,
        action='create',
        model_name='Product',
        object_id=product.id,
        object_name=product.name,
        object_reference=product.sku,
        changes={'branch_id': branch.id, 'quantity': quantity, 'min_quantity': min_quantity},
    )
    logger.info(f"Product '{product.name}' created at branch {branch.id} with quantity {quantity} by {session.email}")

    response_data = ProductSerializer(product).data
    response_data['inventory'] = {
        'id': inventory.id,
        'branch': branch.id,
        'quantity': inventory.quantity,
        'min_quantity': inventory.min_quantity,
    }
    return Response(response_data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)
    session = session_for(request)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    if not session.can(MANAGE_PRODUCTS):
        return Response({'error': 'You do not have permission to modify products'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        create_audit_log(request=request, action='delete', model_name='Product', object_id=product.id,
                         object_name=product.name, object_reference=product.sku)
        product.delete()
        logger.info(f"Product {pk} deleted by {session.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_data = {'name': product.name, 'sku': product.sku, 'price': str(product.price), 'cost': str(product.cost)}
    serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer.save()

    new_data = {'name': product.name, 'sku': product.sku, 'price': str(product.price), 'cost': str(product.cost)}
    changes = {k: {'old': old_data[k], 'new': new_data[k]} for k in old_data if old_data[k] != new_data[k]}
    create_audit_log(request=request, action='update', model_name='Product', object_id=product.id,
                     object_name=product.name, object_reference=product.sku, changes=changes)
    return Response(serializer.data)
