# ruff: noqa: I001
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from db import get_db
from quiz_api.api.schemas import LoginRequest, RegisterRequest, user_out
from quiz_api.models.user import User
from quiz_api.services import auth
from quiz_api.services.auth import require_user

router = APIRouter()
audit = logging.getLogger("audit")


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _issue_token(request: Request, db: Session, user: User) -> dict:
    session = auth.create_session(
        db,
        user_id=user.UserID,
        ip_address=_client(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    return {"token": session.SessionID, "user": user_out(user)}


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    errors = auth.validate_password(payload.password)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    user = auth.create_user(db, payload.name, payload.email, payload.password, role=payload.role)
    if user is None:
        raise HTTPException(status_code=409, detail="Email is already registered")
    audit.info(
        "auth.register",
        extra={"user_id": user.UserID, "role": user.Role, "client": _client(request)},
    )
    return _issue_token(request, db, user)


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    limiter = request.app.state.login_limiter
    rl_key = f"login:{_client(request)}:{auth.normalize_email(payload.email)}"
    if limiter.is_limited(rl_key):
        audit.warning("auth.login.throttled", extra={"client": _client(request)})
        raise HTTPException(
            status_code=429, detail="Too many login attempts. Please try again later."
        )
    user = auth.authenticate_user(db, payload.email, payload.password)
    if user is None:
        limiter.record(rl_key)
        audit.warning(
            "auth.login.failed",
            extra={
                "email": auth.normalize_email(payload.email),
                "client": _client(request),
                "request_id": getattr(request.state, "request_id", None),
            },
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")
    limiter.reset(rl_key)
    user.LastLogin = datetime.now(timezone.utc).replace(tzinfo=None)
    db.commit()
    audit.info("auth.login.success", extra={"user_id": user.UserID, "client": _client(request)})
    return _issue_token(request, db, user)


@router.get("/me")
def me(user: User = Depends(require_user)):
    return user_out(user)


@router.post("/logout", status_code=204)
def logout(request: Request, db: Session = Depends(get_db), user: User = Depends(require_user)):
    session_id = getattr(request.state, "session_id", None)
    if session_id:
        auth.deactivate_session(db, session_id)
    audit.info("auth.logout", extra={"user_id": user.UserID})
    response = Response(status_code=204)
    response.delete_cookie(auth.SESSION_COOKIE)
    return response
