"""
Admin API Router

User management for super_admin: role changes, password resets,
activation toggles, and the audit log that records them.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from core.auth import get_current_caller
from core.database import SessionLocal, get_db
from core.permissions import Caller
from schemas import (
    ActiveUpdateRequest,
    AuditLogListResponse,
    AuditRecordResponse,
    PasswordResetRequest,
    RoleUpdateRequest,
    UserResponse,
)
from services.admin_audit import AuditRecorder
from services.user_admin import (
    change_user_role,
    list_audit_records,
    reset_password,
    set_user_active,
)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


def get_audit_recorder(request: Request, background_tasks: BackgroundTasks) -> AuditRecorder:
    """Audit writes run after the response, in their own session."""
    return AuditRecorder(SessionLocal, schedule=background_tasks.add_task, request=request)


@router.patch("/users/{user_id}/role", response_model=UserResponse)
def update_role(
    user_id: UUID,
    request: RoleUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    audit: AuditRecorder = Depends(get_audit_recorder),
    db: Session = Depends(get_db),
):
    return change_user_role(db, caller, audit, user_id=user_id, role=request.role)


@router.patch("/users/{user_id}/password", response_model=UserResponse)
def update_password(
    user_id: UUID,
    request: PasswordResetRequest,
    caller: Caller = Depends(get_current_caller),
    audit: AuditRecorder = Depends(get_audit_recorder),
    db: Session = Depends(get_db),
):
    return reset_password(db, caller, audit, user_id=user_id, new_password=request.new_password)


@router.patch("/users/{user_id}/active", response_model=UserResponse)
def update_active(
    user_id: UUID,
    request: ActiveUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    audit: AuditRecorder = Depends(get_audit_recorder),
    db: Session = Depends(get_db),
):
    return set_user_active(db, caller, audit, user_id=user_id, active=request.active)


@router.get("/audit-logs", response_model=AuditLogListResponse)
def get_audit_logs(
    limit: Optional[int] = Query(None, ge=1),
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    items = list_audit_records(db, caller, limit=limit)
    return AuditLogListResponse(
        count=len(items),
        items=[AuditRecordResponse(**item) for item in items],
    )
