"""
Role names used for authorization.

Rather than refer to roles by writing new str objects, these constants
should be imported and used, e.g. when registering RPC endpoints (see
:meth:`bud.users.service.UserService.register`).
"""

from typing import List, Optional

from ..domain import Role

ADMIN = Role.ADMIN.value
"""Administrators may act on any account."""

USER = Role.USER.value
"""Standard users may act on their own account."""

ANY: List[str] = []
"""No role required; the endpoint is open to anonymous callers."""

ALL = [ADMIN, USER]

_HUMAN_LABELS = {
    ADMIN: "Can create, view, change and delete any user account.",
    USER: "Can view and change their own account.",
}


def get_human_label(role: str) -> Optional[str]:
    """The human-readable label for a role, for display to end users."""
    return _HUMAN_LABELS.get(role)
