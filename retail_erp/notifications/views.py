import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_datetime
from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger('retail_erp.notifications')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def notification_list_create(request):
    """
    GET: the caller's notifications, newest first, with the unread count.
    Clients poll with ``?since=<ISO datetime>`` to fetch only newer rows.
    POST: create a notification for a given user.
    """
    if request.method == 'GET':
        queryset = Notification.objects.filter(user=request.user)
        unread_count = queryset.filter(read=False).count()

        since = request.query_params.get('since')
        if since:
            since_dt = parse_datetime(since.replace(' ', '+'))
            if since_dt is None:
                return Response({'error': 'Invalid since parameter'}, status=status.HTTP_400_BAD_REQUEST)
            queryset = queryset.filter(created_at__gt=since_dt)

        if request.query_params.get('unread') in ('1', 'true'):
            queryset = queryset.filter(read=False)

        return Response({
            'unread_count': unread_count,
            'results': NotificationSerializer(queryset.order_by('-created_at'), many=True).data,
        })

    serializer = NotificationSerializer(data=request.data)
    if serializer.is_valid():
        notification = serializer.save()
        logger.info(f"User {request.user.email} created notification {notification.id} for user {notification.user_id}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return Response(NotificationSerializer(notification).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
    logger.debug(f"Marked {updated} notification(s) read for {request.user.email}")
    return Response({'updated': updated})
