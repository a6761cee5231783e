"""
Privileged user operations: initial general manager bootstrap and
provisioning of users by a general manager.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from retail_erp.branches.models import Branch
from .capabilities import GENERAL_MANAGER, ROLES
from .exceptions import BootstrapError
from .utils import create_audit_log

logger = logging.getLogger('retail_erp.core')

User = get_user_model()


def has_general_manager():
    return User.objects.filter(role=GENERAL_MANAGER).exists()


def _username_for(email):
    base = email.split('@')[0][:140] or 'user'
    username = base
    suffix = 1
    while User.objects.filter(username=username).exists():
        suffix += 1
        username = f"{base}{suffix}"
    return username


def _create_user(email, password, full_name, role, branch, phone=None):
    if User.objects.filter(email__iexact=email).exists():
        raise BootstrapError('A user with this email already exists')
    user = User(
        email=email,
        username=_username_for(email),
        full_name=full_name,
        role=role,
        branch=branch,
        phone=phone,
        is_active=True,
    )
    user.set_password(password)
    user.save()
    return user


def bootstrap_general_manager(password, full_name, branch_id, email=None, request=None):
    """
    Create the first general manager.

    Refused once any user holds the general_manager role. The auth identity
    and the profile live in the same row, so there is no second step to
    fail half way.
    """
    email = email or settings.INITIAL_GENERAL_MANAGER_EMAIL
    if not password or not full_name or not branch_id or not email:
        raise BootstrapError('Missing required fields')

    if has_general_manager():
        logger.warning("General manager bootstrap refused: a general manager already exists")
        raise BootstrapError('A general manager already exists')

    try:
        branch = Branch.objects.get(pk=branch_id)
    except (Branch.DoesNotExist, ValueError, TypeError):
        raise BootstrapError('Branch not found')

    with transaction.atomic():
        user = _create_user(email, password, full_name, GENERAL_MANAGER, branch)
        user.is_staff = True
        user.save(update_fields=['is_staff'])

    create_audit_log(
        request=request,
        user=user,
        action='general_manager_bootstrap',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'branch_id': branch.id, 'role': GENERAL_MANAGER},
    )
    logger.info(f"General manager {user.email} bootstrapped for branch {branch.name}")
    return user


def provision_user(email, password, full_name, role, branch_id=None, phone=None, request=None):
    """Create a user on behalf of a general manager. A second general manager is refused."""
    if not email or not password or not role:
        raise BootstrapError('Missing required fields')
    if role not in ROLES:
        raise BootstrapError(f'Invalid role: {role}')
    if role == GENERAL_MANAGER and has_general_manager():
        raise BootstrapError('A general manager already exists')

    branch = None
    if branch_id:
        try:
            branch = Branch.objects.get(pk=branch_id)
        except (Branch.DoesNotExist, ValueError, TypeError):
            raise BootstrapError('Branch not found')

    user = _create_user(email, password, full_name, role, branch, phone=phone)
    create_audit_log(
        request=request,
        action='user_provision',
        model_name='User',
        object_id=user.id,
        object_name=user.email,
        changes={'role': role, 'branch_id': branch.id if branch else None},
    )
    logger.info(f"User {user.email} provisioned with role {role}")
    return user
