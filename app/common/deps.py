"""Shared FastAPI dependencies for authentication, authorization, and context."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.common.clock import utcnow
from app.common.utils import ensure_utc
from app.Core.config import get_settings
from app.DB.session import get_db
from app.features.users.models import DISTRICT_ADMIN, MASTER_ADMIN, STUDENT, User


logger = logging.getLogger("auth.deps")
security = HTTPBearer(auto_error=True)
ACTIVITY_TOUCH_INTERVAL = timedelta(minutes=5)


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: str
    email: str
    role: str
    name: Optional[str] = None
    class_level: Optional[str] = None
    district_id: Optional[str] = None
    school: Optional[str] = None


def decode_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        ) from exc


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to a local user row.

    Steps:
      1. Verify signature and expiry of the JWT
      2. Look up the ``sub`` claim in the users table
      3. Refresh ``last_active_at`` (at most every few minutes)
      4. Return typed minimal identity object
    """
    claims = decode_token(credentials.credentials)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing subject")

    user = db.get(User, str(user_id))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    now = utcnow()
    seen = ensure_utc(user.last_active_at)
    if seen is None or now - seen > ACTIVITY_TOUCH_INTERVAL:
        user.last_active_at = now
        db.commit()

    current = CurrentUser(
        id=user.id,
        email=user.email,
        role=user.role or STUDENT,
        name=user.name,
        class_level=user.class_level,
        district_id=user.district_id,
        school=user.school,
    )

    request_id = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    logger.info(
        "auth_resolved user_id=%s role=%s request_id=%s path=%s",
        current.id,
        current.role,
        request_id,
        request.url.path,
    )
    return current


def require_role(*roles: str) -> Callable:
    """Factory returning dependency enforcing that user has one of the roles.

    Args:
      roles: Allowed roles (case-insensitive). Empty -> no restriction.
        Master admins pass every check.
    """
    normalized = {r.lower() for r in roles if r}

    def _checker(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not normalized:
            return current
        role_l = current.role.lower()
        if role_l in normalized or role_l == MASTER_ADMIN:
            return current
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")

    return _checker


def require_student() -> Callable:
    return require_role(STUDENT)


def require_district_admin() -> Callable:
    def dependency(user: CurrentUser = Depends(require_role(DISTRICT_ADMIN))) -> CurrentUser:
        if user.role == DISTRICT_ADMIN and not user.district_id:
            raise HTTPException(status_code=403, detail="District admin has no district assigned")
        return user

    return dependency


def require_master_admin() -> Callable:
    return require_role(MASTER_ADMIN)
