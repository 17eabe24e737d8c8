"""
Super-admin user mutations: role change, password reset, activation toggle.

Each operation is gate -> validate -> single-row update -> audit. The audit
entry is emitted only after the update committed; the recorder swallows its
own failures, so the mutation result never depends on it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, aliased

from core.config import settings
from core.database import unit_of_work
from core.exceptions import NotFoundError, ValidationError
from core.password_policy import validate_password
from core.permissions import Action, Caller, Role, authorize
from core.security import get_password_hash
from models import AuditLog, User
from services.admin_audit import (
    ACTION_ACTIVATION_TOGGLE,
    ACTION_PASSWORD_RESET,
    ACTION_ROLE_CHANGE,
    AuditRecorder,
)

logger = logging.getLogger(__name__)


def _load_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User", str(user_id))
    return user


def change_user_role(
    db: Session,
    caller: Optional[Caller],
    audit: AuditRecorder,
    *,
    user_id: UUID,
    role: str,
) -> User:
    authorize(caller, Action.CHANGE_USER_ROLE)
    if not role:
        raise ValidationError("Role is required", field="role")
    new_role = Role.parse(role)

    with unit_of_work(db):
        user = _load_user(db, user_id)
        before = user.role
        user.role = new_role.value

    audit.emit(
        actor_id=caller.user_id,
        action=ACTION_ROLE_CHANGE,
        target_id=user.id,
        detail={"before": {"role": before}, "after": {"role": new_role.value}},
    )
    logger.info(f"Role changed for user {user.id}: {before} -> {new_role.value}")
    return user


def reset_password(
    db: Session,
    caller: Optional[Caller],
    audit: AuditRecorder,
    *,
    user_id: UUID,
    new_password: str,
) -> User:
    authorize(caller, Action.RESET_PASSWORD)
    ok, errors = validate_password(new_password or "")
    if not ok:
        raise ValidationError("; ".join(errors), field="new_password")

    hashed = get_password_hash(new_password)
    with unit_of_work(db):
        user = _load_user(db, user_id)
        user.password_hash = hashed

    # Never put the password or its hash in the audit detail.
    audit.emit(actor_id=caller.user_id, action=ACTION_PASSWORD_RESET, target_id=user.id, detail={})
    logger.info(f"Password reset for user {user.id}")
    return user


def set_user_active(
    db: Session,
    caller: Optional[Caller],
    audit: AuditRecorder,
    *,
    user_id: UUID,
    active: Optional[bool],
) -> User:
    authorize(caller, Action.SET_USER_ACTIVE)
    if active is None:
        raise ValidationError("Missing active flag", field="active")

    with unit_of_work(db):
        user = _load_user(db, user_id)
        before = bool(user.is_active)
        user.is_active = bool(active)

    audit.emit(
        actor_id=caller.user_id,
        action=ACTION_ACTIVATION_TOGGLE,
        target_id=user.id,
        detail={"before": {"active": before}, "after": {"active": bool(active)}},
    )
    logger.info(f"Active flag for user {user.id}: {before} -> {bool(active)}")
    return user


def list_audit_records(
    db: Session,
    caller: Optional[Caller],
    *,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Newest audit records first, with actor and target names."""
    authorize(caller, Action.READ_AUDIT_LOG)

    limit = limit or settings.AUDIT_LOG_LIMIT_DEFAULT
    if limit < 1 or limit > settings.AUDIT_LOG_LIMIT_MAX:
        raise ValidationError(
            f"limit must be between 1 and {settings.AUDIT_LOG_LIMIT_MAX}", field="limit"
        )

    actor = aliased(User)
    target = aliased(User)
    rows = (
        db.query(AuditLog, actor.name, target.name)
        .join(actor, actor.id == AuditLog.actor_id)
        .outerjoin(target, target.id == AuditLog.target_id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
        .all()
    )

    out: List[Dict[str, Any]] = []
    for ev, actor_name, target_name in rows:
        out.append(
            {
                "id": ev.id,
                "created_at": ev.created_at,
                "actor_id": ev.actor_id,
                "actor_name": actor_name,
                "action": ev.action,
                "target_id": ev.target_id,
                "target_name": target_name,
                "detail": ev.detail or {},
            }
        )
    return out
