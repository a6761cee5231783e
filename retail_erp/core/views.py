import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .capabilities import (
    GENERAL_MANAGER, MANAGE_USERS, VIEW_AUDIT_LOGS,
    require, navigation_for, dashboard_for,
)
from .exceptions import BootstrapError
from .models import AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer, UserProvisionSerializer, UserUpdateSerializer,
    ProfileUpdateSerializer, PasswordChangeSerializer, GeneralManagerBootstrapSerializer,
    AuditLogSerializer,
)
from .services import bootstrap_general_manager, provision_user, has_general_manager
from .session import session_for
from .utils import create_audit_log

logger = logging.getLogger('retail_erp.core')

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        token['branch_id'] = user.branch_id
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {'access': str(refresh.access_token), 'refresh': str(refresh)}


def profile_payload(request, user):
    """Profile plus everything the client needs to render its shell for this role"""
    session = session_for(request)
    data = UserSerializer(user).data
    data['role'] = session.role
    data['capabilities'] = sorted(session.capabilities)
    data['navigation'] = navigation_for(session.role)
    data['dashboard'] = dashboard_for(session.role)
    return data


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Self-registration as accountant or branch manager"""
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    branch = data.get('branch')
    try:
        user = provision_user(
            email=data['email'],
            password=data['password'],
            full_name=data.get('full_name'),
            role=data['role'],
            branch_id=branch.id if branch else None,
            phone=data.get('phone'),
            request=request,
        )
    except BootstrapError as e:
        return Response({'error': e.message}, status=e.status_code)

    logger.info(f"User {user.email} registered as {user.role}")
    return Response({'user': UserSerializer(user).data, **tokens_for(user)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with role, capabilities, navigation and dashboard variant"""
    user = request.user
    if request.method == 'PATCH':
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        logger.info(f"User {user.email} updated own profile")
    return Response(profile_payload(request, user))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = PasswordChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    if not user.check_password(serializer.validated_data['current_password']):
        logger.warning(f"User {user.email} failed password change: wrong current password")
        return Response({'error': 'Current password is incorrect'}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(serializer.validated_data['new_password'])
    user.save()
    create_audit_log(request=request, action='update', model_name='User', object_id=user.id,
                     object_name=user.email, changes={'password': 'changed'})
    return Response({'message': 'Password updated'})


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(MANAGE_USERS)])
def user_list_create(request):
    """List all users or provision a new one"""
    if request.method == 'GET':
        users = User.objects.select_related('branch').order_by('-created_at')
        return Response(UserSerializer(users, many=True).data)

    serializer = UserProvisionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        user = provision_user(
            email=data['email'],
            password=data['password'],
            full_name=data['full_name'],
            role=data['role'],
            branch_id=data.get('branch'),
            phone=data.get('phone'),
            request=request,
        )
    except BootstrapError as e:
        logger.warning(f"User provisioning refused: {e.message}")
        return Response({'error': e.message}, status=e.status_code)
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require(MANAGE_USERS)])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    if request.method == 'DELETE':
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='User', object_id=user.id,
                         object_name=user.email)
        user.delete()
        logger.info(f"User {pk} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = UserUpdateSerializer(user, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_role = serializer.validated_data.get('role')
    if (new_role == GENERAL_MANAGER and user.role != GENERAL_MANAGER
            and User.objects.filter(role=GENERAL_MANAGER).exclude(pk=user.pk).exists()):
        return Response({'error': 'A general manager already exists'}, status=status.HTTP_400_BAD_REQUEST)

    serializer.save()
    create_audit_log(request=request, action='update', model_name='User', object_id=user.id,
                     object_name=user.email, changes=dict(request.data))
    return Response(UserSerializer(user).data)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def general_manager_setup(request):
    """Report whether a general manager exists, or create the first one"""
    if request.method == 'GET':
        return Response({'has_general_manager': has_general_manager()})

    serializer = GeneralManagerBootstrapSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        user = bootstrap_general_manager(
            password=data.get('password'),
            full_name=data.get('full_name'),
            branch_id=data.get('branch_id'),
            email=data.get('email') or None,
            request=request,
        )
    except BootstrapError as e:
        return Response({'error': e.message}, status=e.status_code)

    return Response({'success': True, 'user': UserSerializer(user).data}, status=status.HTTP_201_CREATED)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs; general managers see all, everyone else their own"""
    session = session_for(request)
    queryset = AuditLog.objects.select_related('user', 'user__branch')

    if not session.can(VIEW_AUDIT_LOGS):
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action')
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model')
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from')
    date_to = request.query_params.get('date_to')
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    return Response(AuditLogSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    audit_log = get_object_or_404(AuditLog, pk=pk)
    session = session_for(request)

    if not session.can(VIEW_AUDIT_LOGS) and audit_log.user_id != request.user.pk:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    return Response(AuditLogSerializer(audit_log).data)
