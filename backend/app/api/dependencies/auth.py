# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Sessions are opaque tokens carried either as ``Authorization: Bearer`` or in
the session cookie; only their SHA-256 digest is stored server-side.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...auth import extract_session_token
from ...models.user import User
from ...services.auth_service import AuthService
from .database import get_db

logger = logging.getLogger(__name__)


def get_current_user_optional(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Resolve the session user, or None for anonymous requests."""
    token = extract_session_token(request)
    if not token:
        return None

    user = AuthService(db).get_user_for_session(token)
    if user is None:
        logger.debug("Ignoring unknown or expired session token on %s", request.url.path)
        return None

    request.state.user = user
    return user


def get_current_user(current_user: Optional[User] = Depends(get_current_user_optional)) -> User:
    """
    Require an authenticated, active user.

    Raises:
        HTTPException: 401 if no valid session accompanies the request
    """
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Authentication required", "code": "NOT_AUTHENTICATED"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user
