"""
Authentication dependencies.

Turns a bearer token into a Caller for the service layer. The token only
identifies the user; role and active flag are read from the database on
every request, so admin changes take effect immediately.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from core.database import get_db
from core.exceptions import ForbiddenError, UnauthorizedError
from core.permissions import Caller, Role
from core.security import decode_access_token
from models import User

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from JWT token.

    Raises UnauthorizedError if token is invalid or user not found, and
    ForbiddenError if the account has been deactivated.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")

    try:
        user_id_uuid = UUID(str(user_id))
    except ValueError:
        raise UnauthorizedError("Invalid user ID format")

    user = db.query(User).filter(User.id == user_id_uuid).first()
    if not user:
        raise UnauthorizedError("User not found")

    # Sessions issued before deactivation are not honored.
    if not user.is_active:
        raise ForbiddenError("Account is deactivated")

    return user


def get_current_caller(current_user: User = Depends(get_current_user)) -> Caller:
    return Caller(user_id=current_user.id, role=Role(current_user.role))
