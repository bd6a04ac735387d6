"""Authentication service: register, login, session management."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError
from sqlalchemy.orm import Session as DBSession

from flashcards.models import parse_timestamp
from server.db.models import Session, User

ph = PasswordHasher()


def _normalize_email(email: str) -> str:
    return email.lower().strip()


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def register_user(db: DBSession, email: str, password: str) -> User:
    """Create a new user. Raises ValueError if email exists."""
    email = _normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ValueError("Email already registered")
    user = User(email=email, password_hash=ph.hash(password))
    db.add(user)
    db.flush()
    return user


def authenticate(db: DBSession, email: str, password: str) -> Optional[User]:
    """Return the user if the credentials match, else None."""
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None:
        return None
    try:
        ph.verify(user.password_hash, password)
    except VerificationError:
        return None
    return user


def create_session(db: DBSession, user_id: str, ttl_hours: int = 24 * 7) -> str:
    """Create session, return raw token (to set in cookie)."""
    token = secrets.token_urlsafe(32)
    db.add(Session(
        user_id=user_id,
        token_hash=hash_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=ttl_hours),
    ))
    db.flush()
    return token


def get_user_by_session(db: DBSession, token: str) -> Optional[User]:
    """Return user if the session token is known and unexpired, else None."""
    if not token:
        return None
    sess = db.query(Session).filter(Session.token_hash == hash_token(token)).first()
    if sess is None or parse_timestamp(sess.expires_at) <= datetime.now(timezone.utc):
        return None
    return db.get(User, sess.user_id)


def logout_session(db: DBSession, token: str) -> bool:
    """Delete session by token. Returns True if found."""
    if not token:
        return False
    deleted = db.query(Session).filter(Session.token_hash == hash_token(token)).delete()
    return deleted > 0
