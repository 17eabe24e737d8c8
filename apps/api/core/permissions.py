"""
Role-based authorization for mutations.

All role rules live in POLICY, keyed by action. Services call ``authorize``
exactly once at entry; routers never check roles themselves.

Failure modes are kept distinct:
- no caller            -> UnauthorizedError (401)
- caller, wrong role   -> ForbiddenError (403), never NotFound
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from core.exceptions import ForbiddenError, UnauthorizedError, ValidationError


class Role(str, Enum):
    CLIENT = "client"
    COACH = "coach"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def parse(cls, value: str) -> "Role":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise ValidationError(f"Invalid role '{value}'. Allowed: {allowed}", field="role")


class Action(str, Enum):
    ASSIGN_PROGRAM = "assign_program"
    MARK_WORKOUT_DONE = "mark_workout_done"
    SUBMIT_FEEDBACK = "submit_feedback"
    CREATE_PROGRAM = "create_program"
    ADD_WORKOUT = "add_workout"
    CHANGE_USER_ROLE = "change_user_role"
    RESET_PASSWORD = "reset_password"
    SET_USER_ACTIVE = "set_user_active"
    READ_AUDIT_LOG = "read_audit_log"


_EVERYONE = frozenset({Role.CLIENT, Role.COACH, Role.SUPER_ADMIN})
_STAFF = frozenset({Role.COACH, Role.SUPER_ADMIN})
_ADMIN = frozenset({Role.SUPER_ADMIN})

POLICY: Dict[Action, FrozenSet[Role]] = {
    Action.ASSIGN_PROGRAM: _STAFF,
    Action.MARK_WORKOUT_DONE: _EVERYONE,
    Action.SUBMIT_FEEDBACK: _EVERYONE,
    Action.CREATE_PROGRAM: _STAFF,
    Action.ADD_WORKOUT: _STAFF,
    Action.CHANGE_USER_ROLE: _ADMIN,
    Action.RESET_PASSWORD: _ADMIN,
    Action.SET_USER_ACTIVE: _ADMIN,
    Action.READ_AUDIT_LOG: _ADMIN,
}

# Roles that may act on another user's progress/feedback rows.
# Everyone else is limited to their own user_id.
ACT_FOR_OTHERS: Dict[Action, FrozenSet[Role]] = {
    Action.MARK_WORKOUT_DONE: _STAFF,
    Action.SUBMIT_FEEDBACK: _ADMIN,
}


@dataclass(frozen=True)
class Caller:
    """Verified identity supplied by the credential layer for one request."""

    user_id: UUID
    role: Role


def is_allowed(role: Role, action: Action) -> bool:
    return role in POLICY.get(action, frozenset())


def authorize(caller: Optional[Caller], action: Action, *, subject_user_id: Optional[UUID] = None) -> Caller:
    """
    Gate one operation.

    ``subject_user_id`` is the user whose rows the action touches; when given,
    roles outside ACT_FOR_OTHERS[action] may only act on themselves.
    """
    if caller is None:
        raise UnauthorizedError("Not authenticated")

    if not is_allowed(caller.role, action):
        raise ForbiddenError(f"Role '{caller.role.value}' may not perform '{action.value}'")

    if subject_user_id is not None and subject_user_id != caller.user_id:
        if caller.role not in ACT_FOR_OTHERS.get(action, frozenset()):
            raise ForbiddenError("You can only act on your own data")

    return caller
