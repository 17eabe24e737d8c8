from __future__ import annotations

from typing import Any, Callable, Dict, Optional
from uuid import UUID

import logging
from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from models import AuditLog

logger = logging.getLogger(__name__)

ACTION_ROLE_CHANGE = "role_change"
ACTION_PASSWORD_RESET = "password_reset"
ACTION_ACTIVATION_TOGGLE = "activation_toggle"


class AuditRecorder:
    """
    Best-effort append-only audit logging for admin actions.

    Writes go through their own session, after the admin mutation has
    committed. ``schedule`` decides when the write runs: the HTTP layer
    passes ``BackgroundTasks.add_task`` so it happens after the response;
    without a scheduler the write runs inline.

    Safety:
    - Never throws (does not block primary operation).
    - Detail must be bounded and must not contain secrets.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | sessionmaker,
        schedule: Optional[Callable[..., Any]] = None,
        request: Optional[Request] = None,
    ):
        self._session_factory = session_factory
        self._schedule = schedule
        self._request = request

    def emit(
        self,
        *,
        actor_id: UUID,
        action: str,
        target_id: Optional[UUID] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        ip_address = None
        user_agent = None
        if self._request is not None:
            ip_address = self._request.client.host if self._request.client else None
            user_agent = self._request.headers.get("user-agent")

        record = {
            "actor_id": actor_id,
            "action": action,
            "target_id": target_id,
            "detail": detail or {},
            "ip_address": ip_address,
            "user_agent": user_agent,
        }
        try:
            if self._schedule is not None:
                self._schedule(self._write, record)
            else:
                self._write(record)
        except Exception as e:
            logger.exception("Admin audit scheduling failed: %s", str(e))

    def _write(self, record: Dict[str, Any]) -> None:
        db = None
        try:
            db = self._session_factory()
            db.add(AuditLog(**record))
            db.commit()
        except Exception as e:
            # Never block admin operations on audit logging, but do emit a server log.
            # close() below discards the failed transaction.
            logger.exception(
                "Admin audit logging failed: %s",
                str(e),
                extra={"extra_fields": {"audit_action": record.get("action")}},
            )
        finally:
            if db is not None:
                db.close()
