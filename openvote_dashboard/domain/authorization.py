# SPDX-License-Identifier: Apache-2.0

"""
Authorization domain logic for role-based access control.

Capabilities are determined solely by the role label. The policy is a
declarative table evaluated by `capability(action, role)`; both UI gating and
the client-side checks of the state machine go through it. The backend
re-checks every request, so this table only decides what the client offers
and what it refuses before a network call.
"""

from typing import Dict, FrozenSet, List, Optional, Union
from dataclasses import dataclass
from ..models.enums import Action, UserRole


ADMIN_ROLES: FrozenSet[UserRole] = frozenset({UserRole.SUPER_ADMIN, UserRole.REGION_ADMIN})
ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)

# super_admin > region_admin > local_coord > observer > verified_citizen > citizen
ROLE_HIERARCHY: List[UserRole] = [
    UserRole.SUPER_ADMIN,
    UserRole.REGION_ADMIN,
    UserRole.LOCAL_COORD,
    UserRole.OBSERVER,
    UserRole.VERIFIED_CITIZEN,
    UserRole.CITIZEN,
]

CAPABILITY_POLICY: Dict[Action, FrozenSet[UserRole]] = {
    Action.VIEW_REPORTS: ALL_ROLES,
    Action.SUBMIT_REPORT: ALL_ROLES,
    Action.VIEW_ANALYTICS: ALL_ROLES,
    Action.TRIAGE_REPORT: ADMIN_ROLES,
    Action.QUALIFY_REPORT: ADMIN_ROLES,
    Action.MANAGE_USERS: ADMIN_ROLES,
    Action.GENERATE_TOKEN: ADMIN_ROLES,
    Action.VIEW_AUDIT_LOGS: ADMIN_ROLES,
}


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None


def _coerce_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    if role is None or isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def capability(action: Action, role: Union[UserRole, str, None]) -> bool:
    """
    Check whether a role may perform an action.

    Unknown roles and unknown actions are denied.

    Args:
        action: Action to perform
        role: Acting role

    Returns:
        True if the policy grants the action to the role
    """
    user_role = _coerce_role(role)
    if user_role is None:
        return False
    return user_role in CAPABILITY_POLICY.get(action, frozenset())


def check_capability(action: Action, role: Union[UserRole, str, None]) -> AuthorizationResult:
    """
    Check a capability and explain a refusal.

    Args:
        action: Action to perform
        role: Acting role

    Returns:
        AuthorizationResult indicating if the action is granted
    """
    if capability(action, role):
        return AuthorizationResult(allowed=True)

    role_name = role.value if isinstance(role, UserRole) else role
    return AuthorizationResult(
        allowed=False,
        reason=f"Role '{role_name}' is not allowed to {action.value.replace('_', ' ')}"
    )


def allowed_actions(role: Union[UserRole, str, None]) -> List[Action]:
    """List the actions granted to a role, in declaration order."""
    return [action for action in Action if capability(action, role)]


def role_rank(role: Union[UserRole, str]) -> int:
    """
    Position of a role in the hierarchy, 0 being the highest.

    Raises:
        ValueError: If the role is unknown
    """
    user_role = _coerce_role(role)
    if user_role is None:
        raise ValueError(f"Unknown role: {role}")
    return ROLE_HIERARCHY.index(user_role)


def is_at_least(role: Union[UserRole, str, None], minimum: UserRole) -> bool:
    """Check if a role sits at or above `minimum` in the hierarchy."""
    user_role = _coerce_role(role)
    if user_role is None:
        return False
    return role_rank(user_role) <= role_rank(minimum)
