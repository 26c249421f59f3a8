"""
Appointment status transitions.

    pending  -> approved | declined | cancelled
    approved -> completed | cancelled

declined, completed and cancelled are terminal. Whether a terminal
appointment may be reopened (moved back to pending) is a deployment policy,
see `Settings.appointment_reopen_policy`.
"""

from app.core.exceptions import InvalidTransition

PENDING = "pending"
APPROVED = "approved"
DECLINED = "declined"
COMPLETED = "completed"
CANCELLED = "cancelled"

STATUSES = (PENDING, APPROVED, DECLINED, COMPLETED, CANCELLED)
TERMINAL_STATUSES = frozenset({DECLINED, COMPLETED, CANCELLED})
CLIENT_RESPONSES = frozenset({APPROVED, DECLINED})
CANCELLABLE_STATUSES = frozenset({PENDING, APPROVED})
UPCOMING_STATUSES = frozenset({PENDING, APPROVED})

TRANSITIONS = {
    PENDING: frozenset({APPROVED, DECLINED, CANCELLED}),
    APPROVED: frozenset({COMPLETED, CANCELLED}),
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: str, target: str, allow_reopen: bool = False) -> bool:
    if target in TRANSITIONS.get(current, frozenset()):
        return True
    return allow_reopen and is_terminal(current) and target == PENDING


def ensure_transition(current: str, target: str, allow_reopen: bool = False):
    if not can_transition(current, target, allow_reopen):
        raise InvalidTransition(current, target)
