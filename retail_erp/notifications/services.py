"""Creating notifications for users and branch managers"""
import logging

from django.contrib.auth import get_user_model

from retail_erp.core.capabilities import BRANCH_MANAGER
from .models import Notification

logger = logging.getLogger('retail_erp.notifications')

User = get_user_model()

REFERENCE_TARGETS = {
    'inventory_transfer': '/inventory/transfers/{id}',
    'low_stock': '/inventory/products?lowStock=true',
    'invoice': '/accounting/invoices/{id}',
}


def target_for(reference_type, reference_id):
    """Client path a notification links to, or None when its reference type is unknown"""
    template = REFERENCE_TARGETS.get(reference_type)
    if template is None:
        return None
    return template.format(id=reference_id)


def notify(user, title, message, type=Notification.TYPE_INFO, reference_type=None, reference_id=None):
    notification = Notification.objects.create(
        user=user,
        title=title,
        message=message,
        type=type,
        reference_type=reference_type,
        reference_id=str(reference_id) if reference_id is not None else None,
    )
    logger.debug(f"Notification {notification.id} '{title}' sent to user {user.pk}")
    return notification


def notify_branch_managers(branch, title, message, type=Notification.TYPE_INFO,
                           reference_type=None, reference_id=None, exclude_user_id=None):
    """Notify every active branch manager of ``branch``. Returns the created notifications."""
    managers = User.objects.filter(branch=branch, role=BRANCH_MANAGER, is_active=True)
    if exclude_user_id is not None:
        managers = managers.exclude(pk=exclude_user_id)

    notifications = [
        notify(manager, title, message, type=type, reference_type=reference_type, reference_id=reference_id)
        for manager in managers
    ]
    logger.info(f"Notified {len(notifications)} branch manager(s) of branch {getattr(branch, 'pk', branch)}: {title}")
    return notifications
