"""
Per-request session holder.

Views build one ``Session`` from the authenticated user and hand it to the
services layer explicitly, so nothing below the view reads ``request.user``.
"""
from dataclasses import dataclass, field

from django.conf import settings
from rest_framework.exceptions import PermissionDenied, ValidationError

from .capabilities import VIEW_ALL_BRANCHES, resolve_capabilities


@dataclass(frozen=True)
class Session:
    user_id: int
    email: str
    full_name: str
    role: str
    branch_id: int = None
    capabilities: frozenset = field(default_factory=frozenset)

    def can(self, capability):
        return capability in self.capabilities


def session_from_user(user):
    """Build a Session from a stored user row; a missing role falls back to DEFAULT_USER_ROLE."""
    if user is None or not user.is_authenticated:
        return None
    role = user.role or settings.DEFAULT_USER_ROLE
    return Session(
        user_id=user.pk,
        email=user.email,
        full_name=user.full_name or '',
        role=role,
        branch_id=user.branch_id,
        capabilities=resolve_capabilities(role),
    )


def session_for(request):
    """Session for the request's user, memoised on the request object."""
    if request is None:
        return None
    cached = getattr(request, '_retail_session', None)
    if cached is not None and cached.user_id == getattr(request.user, 'pk', None):
        return cached
    session = session_from_user(getattr(request, 'user', None))
    if session is not None:
        request._retail_session = session
    return session


def branch_scope(session, requested=None):
    """
    Branch id a request may act on.

    Without an explicit branch the user's own branch is used (None for a
    user without one, meaning every branch). Users without a home branch
    may pick any branch; everyone else needs the view-all-branches
    capability to look outside their own.
    """

    if requested in (None, ''):
        return session.branch_id
    try:
        requested = int(requested)
    except (TypeError, ValueError):
        raise ValidationError({'branch': 'A valid integer is required.'})
    if (session.branch_id is not None and requested != session.branch_id
            and not session.can(VIEW_ALL_BRANCHES)):
        raise PermissionDenied('You can only access your own branch')
    return requested
