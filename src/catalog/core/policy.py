"""Access policy for book records."""

from collections.abc import Iterable
from enum import Enum

from src.catalog.core.errors import AuthorizationError

DEFAULT_ADMIN_ROLE = "ROLE_ADMIN"


class Action(str, Enum):
    """Operations a user can request on book records."""

    LIST = "list"
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


READ_ACTIONS = frozenset({Action.LIST, Action.VIEW})
WRITE_ACTIONS = frozenset({Action.CREATE, Action.EDIT, Action.DELETE})


def is_allowed(
    roles: Iterable[str], action: Action, admin_role: str = DEFAULT_ADMIN_ROLE
) -> bool:
    """Decide whether a user holding ``roles`` may perform ``action``.

    Reads are open to every authenticated user; writes need the administrator
    role. Verification status plays no part in the decision.
    """
    if action in READ_ACTIONS:
        return True
    return admin_role in set(roles)


def authorize(
    roles: Iterable[str], action: Action, admin_role: str = DEFAULT_ADMIN_ROLE
) -> None:
    """Raise ``AuthorizationError`` unless ``action`` is allowed."""
    if not is_allowed(roles, action, admin_role):
        raise AuthorizationError(f"Action '{action.value}' requires role {admin_role}")
