"""
Role-based capability resolution.

This is the single place that maps a role string to what the user may see
and do. Navigation entries, dashboard selection, transfer action buttons
and the DRF permission classes guarding the API all read from here.

Role membership is exact: there is no hierarchy between roles. A general
manager does not gain an accountant-only capability unless it is listed
for the general manager too.
"""
from collections import namedtuple

from rest_framework.permissions import BasePermission

ACCOUNTANT = 'accountant'
BRANCH_MANAGER = 'branch_manager'
GENERAL_MANAGER = 'general_manager'

ROLES = (ACCOUNTANT, BRANCH_MANAGER, GENERAL_MANAGER)

# Capabilities
VIEW_ACCOUNTING = 'view_accounting'
RECORD_TRANSACTIONS = 'record_transactions'
CREATE_INVOICES = 'create_invoices'
DELETE_TRANSACTIONS = 'delete_transactions'
VIEW_REPORTS = 'view_reports'
VIEW_INVENTORY = 'view_inventory'
MANAGE_PRODUCTS = 'manage_products'
UPDATE_STOCK = 'update_stock'
REQUEST_TRANSFERS = 'request_transfers'
DECIDE_TRANSFERS = 'decide_transfers'
COMPLETE_TRANSFERS = 'complete_transfers'
VIEW_ALL_BRANCHES = 'view_all_branches'
USE_POS = 'use_pos'
MANAGE_BRANCHES = 'manage_branches'
MANAGE_USERS = 'manage_users'
VIEW_AUDIT_LOGS = 'view_audit_logs'

ROLE_CAPABILITIES = {
    ACCOUNTANT: frozenset({
        VIEW_ACCOUNTING,
        RECORD_TRANSACTIONS,
        CREATE_INVOICES,
        VIEW_REPORTS,
    }),
    BRANCH_MANAGER: frozenset({
        VIEW_ACCOUNTING,
        RECORD_TRANSACTIONS,
        CREATE_INVOICES,
        VIEW_REPORTS,
        VIEW_INVENTORY,
        MANAGE_PRODUCTS,
        UPDATE_STOCK,
        REQUEST_TRANSFERS,
        DECIDE_TRANSFERS,
        USE_POS,
    }),
    GENERAL_MANAGER: frozenset({
        VIEW_ACCOUNTING,
        RECORD_TRANSACTIONS,
        CREATE_INVOICES,
        DELETE_TRANSACTIONS,
        VIEW_REPORTS,
        VIEW_INVENTORY,
        MANAGE_PRODUCTS,
        UPDATE_STOCK,
        REQUEST_TRANSFERS,
        COMPLETE_TRANSFERS,
        VIEW_ALL_BRANCHES,
        USE_POS,
        MANAGE_BRANCHES,
        MANAGE_USERS,
        VIEW_AUDIT_LOGS,
    }),
}


def resolve_capabilities(role):
    """Return the frozenset of capabilities granted to ``role`` (empty for unknown roles)."""
    return ROLE_CAPABILITIES.get(role, frozenset())


# Navigation
NavItem = namedtuple('NavItem', ['key', 'label', 'path', 'roles'])

NAVIGATION = (
    NavItem('dashboard', 'Dashboard', '/', None),
    NavItem('accounting', 'Accounting', '/accounting', frozenset({ACCOUNTANT, BRANCH_MANAGER, GENERAL_MANAGER})),
    NavItem('inventory', 'Inventory', '/inventory', frozenset({BRANCH_MANAGER, GENERAL_MANAGER})),
    NavItem('users', 'Users', '/users', frozenset({GENERAL_MANAGER})),
    NavItem('settings', 'Settings', '/settings', None),
    NavItem('help', 'Help & Support', '/help', None),
    NavItem('logout', 'Logout', '/logout', None),
)


def can_see(item, role):
    """An entry without a role set is visible to everyone; otherwise the role must be listed."""
    if item.roles is None:
        return True
    return role in item.roles


def navigation_for(role):
    """Navigation entries visible to ``role``, in declaration order."""
    return [
        {'key': item.key, 'label': item.label, 'path': item.path}
        for item in NAVIGATION
        if can_see(item, role)
    ]


DASHBOARDS = {
    GENERAL_MANAGER: 'general_manager',
    BRANCH_MANAGER: 'branch_manager',
    ACCOUNTANT: 'accountant',
}

GENERIC_DASHBOARD = 'generic'


def dashboard_for(role):
    return DASHBOARDS.get(role, GENERIC_DASHBOARD)


# Transfer actions
APPROVE = 'approve'
REJECT = 'reject'
COMPLETE = 'complete'


def transfer_actions(session, transfer):
    """
    Actions ``session`` may perform on ``transfer`` right now.

    approve/reject: branch managers of the destination branch while the
    transfer is pending. complete: general managers once it is approved.
    """
    actions = set()
    if session is None:
        return actions

    if (DECIDE_TRANSFERS in session.capabilities
            and transfer.status == 'pending'
            and session.branch_id is not None
            and transfer.to_branch_id == session.branch_id):
        actions.update({APPROVE, REJECT})

    if COMPLETE_TRANSFERS in session.capabilities and transfer.status == 'approved':
        actions.add(COMPLETE)

    return actions


# DRF permissions
class CapabilityRequired(BasePermission):
    """Grants access when the request session holds ``capability``."""
    capability = None
    message = 'You do not have permission to perform this action.'

    def has_permission(self, request, view):
        from .session import session_for

        session = session_for(request)
        if session is None:
            return False
        return self.capability in session.capabilities


def require(capability):
    """Build a permission class for one capability, e.g. ``@permission_classes([require(USE_POS)])``."""
    return type(
        f'Requires_{capability}',
        (CapabilityRequired,),
        {'capability': capability, 'message': f'Missing capability: {capability}'},
    )
