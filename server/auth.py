"""Auth dependency: extract session from cookie, resolve the learner."""

from typing import Optional

from fastapi import Cookie, Depends, HTTPException
from sqlalchemy.orm import Session as DBSession

from server.db.models import User
from server.dependencies import get_db_session
from server.services import auth_service

SESSION_COOKIE = "tidepool_session"


def get_current_user_optional(
    tidepool_session: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
    db: DBSession = Depends(get_db_session),
) -> Optional[User]:
    """Return current user or None if not authenticated."""
    if not tidepool_session:
        return None
    return auth_service.get_user_by_session(db, tidepool_session)


def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """Require authenticated user. Raises 401 if not logged in."""
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
