# ruff: noqa: I001
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from fastapi import Depends, HTTPException
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.requests import Request

from quiz_api.core.settings import settings
from quiz_api.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, User, UserSession
from db import get_db

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_COOKIE = "session_id"


def _utcnow() -> datetime:
    # Aware UTC, stored naive to match the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Password hashing


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unknown or corrupt hash
        return False


def validate_password(password: str) -> list:
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not any(char.isdigit() for char in password):
        errors.append("Password must contain at least 1 number")
    if not any(char.isalpha() for char in password):
        errors.append("Password must contain at least 1 letter")
    # Note: passwords longer than 72 bytes are truncated by bcrypt
    return errors


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


# Users


def create_user(
    db: Session, name: str, email: str, password: str, role: str = ROLE_STUDENT
) -> Optional[User]:
    """Create a user; returns None if the email is already registered."""
    user = User(
        Name=name.strip(),
        Email=normalize_email(email),
        HashedPassword=hash_password(password),
        Role=role,
        IsActive=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return None
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = (
        db.query(User)
        .filter(User.Email == normalize_email(email), User.IsActive.is_(True))
        .first()
    )
    if user and verify_password(password, user.HashedPassword):
        return user
    return None


# Session management


def create_session(
    db: Session,
    user_id: int,
    expires_in_minutes: Optional[int] = None,
    ip_address: str = "",
    user_agent: str = "",
) -> UserSession:
    now = _utcnow()
    ttl = expires_in_minutes if expires_in_minutes is not None else settings.SESSION_TTL_MINUTES
    session = UserSession(
        SessionID=str(uuid.uuid4()),
        UserID=user_id,
        CreatedAt=now,
        ExpiresAt=now + timedelta(minutes=ttl),
        IsActive=True,
        IPAddress=ip_address or None,
        UserAgent=(user_agent or "")[:255] or None,
    )
    db.add(session)
    db.commit()
    return session


def get_session(db: Session, session_id: str) -> Optional[UserSession]:
    session = (
        db.query(UserSession)
        .filter(UserSession.SessionID == str(session_id), UserSession.IsActive.is_(True))
        .first()
    )
    if session is None:
        return None
    if session.ExpiresAt is not None and session.ExpiresAt <= _utcnow():
        return None
    return session


def deactivate_session(db: Session, session_id: str) -> None:
    session = db.query(UserSession).filter(UserSession.SessionID == str(session_id)).first()
    if session:
        session.IsActive = False
        db.commit()


def deactivate_user_sessions(db: Session, user_id: int) -> int:
    count = (
        db.query(UserSession)
        .filter(UserSession.UserID == user_id, UserSession.IsActive.is_(True))
        .update({UserSession.IsActive: False}, synchronize_session=False)
    )
    db.commit()
    return count


# Helpers to read the session token from a request


def get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(SESSION_COOKIE) or None


# FastAPI dependencies for auth


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Return the authenticated User or None if the token is missing or invalid."""
    token = get_token_from_request(request)
    if not token:
        return None
    session_obj = get_session(db, token)
    if session_obj is None:
        return None
    user = (
        db.query(User)
        .filter(User.UserID == session_obj.UserID, User.IsActive.is_(True))
        .first()
    )
    if user is not None:
        request.state.session_id = session_obj.SessionID
    return user


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_roles(*roles: str):
    """Dependency factory: the current user must hold one of ``roles``."""

    def _dependency(user: User = Depends(require_user)) -> User:
        if user.Role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return _dependency


require_admin = require_roles(ROLE_ADMIN)
require_teacher = require_roles(ROLE_TEACHER, ROLE_ADMIN)
