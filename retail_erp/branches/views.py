import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from retail_erp.core.cache_utils import get_cached_branch_list, cache_branch_list
from retail_erp.core.capabilities import MANAGE_BRANCHES
from retail_erp.core.session import session_for
from retail_erp.core.utils import create_audit_log
from .models import Branch
from .serializers import BranchSerializer

logger = logging.getLogger('retail_erp.branches')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def branch_list_create(request):
    """List all branches or create a new branch (create requires general manager)"""
    session = session_for(request)

    if request.method == 'GET':
        logger.info(f"User {session.email} requested branch list")

        cached_data = get_cached_branch_list()
        if cached_data is not None:
            return Response(cached_data)

        branches = Branch.objects.all().order_by('-created_at')
        response_data = BranchSerializer(branches, many=True).data
        cache_branch_list(response_data)
        return Response(response_data)

    if not session.can(MANAGE_BRANCHES):
        logger.warning(f"User {session.email} attempted to create branch without general manager role")
        return Response({'error': 'Only general managers can create branches'}, status=status.HTTP_403_FORBIDDEN)

    logger.info(f"User {session.email} creating branch with data: {request.data}")
    serializer = BranchSerializer(data=request.data)
    if serializer.is_valid():
        branch = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Branch',
            object_id=branch.id,
            object_name=branch.name,
            changes=serializer.data,
        )
        logger.info(f"Branch '{branch.name}' created successfully by {session.email}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    logger.warning(f"Branch creation validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def branch_detail(request, pk):
    """Retrieve, update or delete a branch (update/delete requires general manager)"""
    branch = get_object_or_404(Branch, pk=pk)
    session = session_for(request)

    if request.method == 'GET':
        return Response(BranchSerializer(branch).data)

    if not session.can(MANAGE_BRANCHES):
        logger.warning(f"User {session.email} attempted to modify branch {pk} without general manager role")
        return Response({'error': 'Only general managers can modify branches'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = BranchSerializer(branch, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Branch',
                object_id=branch.id,
                object_name=branch.name,
                changes=dict(request.data),
            )
            logger.info(f"Branch {pk} updated by {session.email}")
            return Response(serializer.data)
        logger.warning(f"Branch update validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    logger.info(f"User {session.email} deleting branch {pk} ({branch.name})")
    create_audit_log(
        request=request,
        action='delete',
        model_name='Branch',
        object_id=branch.id,
        object_name=branch.name,
    )
    branch.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
