"""
Complaint workflow rules.

Which role may trigger which transition from which status, and where the
transition leads. Everything here is a pure lookup; actor identity checks
(owner, entity, assignee) belong to the complaint service.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple

from gov_complaints.core.exceptions import AuthorizationError, StateViolationError
from gov_complaints.models.base.enums import ComplaintStatus, UserRole

__all__ = [
    "ComplaintTransition",
    "evaluate",
    "ensure_allowed",
    "next_status",
    "allowed_transitions",
]


class ComplaintTransition(str, Enum):
    ACCEPT = "accept"
    CITIZEN_EDIT = "citizen_edit"
    FINISH = "finish"
    DECLINE = "decline"
    REQUEST_INFO = "request_info"


# (from status, transition) -> (to status, roles allowed)
# ACCEPT from in_progress lets an employee take over a claim that was
# released by expiry; the lock check in the service rejects active claims.
_TRANSITIONS: Dict[Tuple[ComplaintStatus, ComplaintTransition], Tuple[ComplaintStatus, FrozenSet[UserRole]]] = {
    (ComplaintStatus.NEW, ComplaintTransition.ACCEPT): (
        ComplaintStatus.IN_PROGRESS, frozenset({UserRole.EMPLOYEE}),
    ),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.ACCEPT): (
        ComplaintStatus.IN_PROGRESS, frozenset({UserRole.EMPLOYEE}),
    ),
    (ComplaintStatus.NEW, ComplaintTransition.CITIZEN_EDIT): (
        ComplaintStatus.NEW, frozenset({UserRole.CITIZEN}),
    ),
    (ComplaintStatus.DECLINED, ComplaintTransition.CITIZEN_EDIT): (
        ComplaintStatus.NEW, frozenset({UserRole.CITIZEN}),
    ),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.FINISH): (
        ComplaintStatus.FINISHED, frozenset({UserRole.EMPLOYEE}),
    ),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.DECLINE): (
        ComplaintStatus.DECLINED, frozenset({UserRole.EMPLOYEE}),
    ),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.REQUEST_INFO): (
        ComplaintStatus.IN_PROGRESS, frozenset({UserRole.EMPLOYEE}),
    ),
}

_ROLES_BY_TRANSITION: Dict[ComplaintTransition, FrozenSet[UserRole]] = {
    transition: frozenset().union(
        *(roles for (_, t), (_, roles) in _TRANSITIONS.items() if t == transition)
    )
    for transition in ComplaintTransition
}

_DENIED_MESSAGES = {
    ComplaintTransition.ACCEPT: "Complaint cannot be accepted in current status: {status}",
    ComplaintTransition.CITIZEN_EDIT: "Complaint cannot be updated in current status: {status}",
    ComplaintTransition.FINISH: "Cannot finish complaint in current status: {status}",
    ComplaintTransition.DECLINE: "Cannot decline complaint in current status: {status}",
    ComplaintTransition.REQUEST_INFO: "Can only request info for in-progress complaints. Current status: {status}",
}


def evaluate(status: ComplaintStatus, transition: ComplaintTransition, role: UserRole) -> bool:
    """True if ``role`` may trigger ``transition`` while the complaint is in ``status``."""
    rule = _TRANSITIONS.get((ComplaintStatus(status), ComplaintTransition(transition)))
    return rule is not None and UserRole(role) in rule[1]


def ensure_allowed(status: ComplaintStatus, transition: ComplaintTransition, role: UserRole) -> None:
    """
    Raise unless the transition is allowed.

    Raises:
        AuthorizationError: The role can never trigger this transition
        StateViolationError: The role is right but the status is not
    """
    status = ComplaintStatus(status)
    transition = ComplaintTransition(transition)

    if UserRole(role) not in _ROLES_BY_TRANSITION.get(transition, frozenset()):
        raise AuthorizationError("role", f"Role {UserRole(role).value} cannot {transition.value.replace('_', ' ')} complaints.")

    if not evaluate(status, transition, role):
        raise StateViolationError(
            status.value,
            _DENIED_MESSAGES[transition].format(status=status.value),
        )


def next_status(status: ComplaintStatus, transition: ComplaintTransition) -> ComplaintStatus:
    """
    Target status of an allowed transition.

    Raises:
        StateViolationError: No such transition from ``status``
    """
    rule = _TRANSITIONS.get((ComplaintStatus(status), ComplaintTransition(transition)))
    if rule is None:
        raise StateViolationError(
            ComplaintStatus(status).value,
            _DENIED_MESSAGES[ComplaintTransition(transition)].format(status=ComplaintStatus(status).value),
        )
    return rule[0]


def allowed_transitions(status: ComplaintStatus, role: UserRole) -> FrozenSet[ComplaintTransition]:
    """Transitions ``role`` could trigger from ``status``, for UI affordances."""
    return frozenset(
        transition
        for (from_status, transition), (_target, roles) in _TRANSITIONS.items()
        if from_status == ComplaintStatus(status) and UserRole(role) in roles
    )
