import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from db import get_db
from quiz_api.api.schemas import ActiveUpdate, RoleUpdate, user_out
from quiz_api.models import Quiz, Result, User
from quiz_api.models.user import ROLES
from quiz_api.services.auth import deactivate_user_sessions, require_admin

router = APIRouter()

audit = logging.getLogger("audit")


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.UserID == user_id).first()
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users")
def list_users(
    role: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(User)
    if role:
        if role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role '{role}'")
        q = q.filter(User.Role == role)
    return [user_out(u) for u in q.order_by(User.UserID).all()]


@router.put("/users/{user_id}/role")
def set_role(
    user_id: int,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _get_user_or_404(db, user_id)
    previous = user.Role
    user.Role = payload.role
    db.commit()
    audit.info(
        "admin.role.changed",
        extra={"admin_id": admin.UserID, "user_id": user.UserID, "from": previous, "to": user.Role},
    )
    return user_out(user)


@router.put("/users/{user_id}/active")
def set_active(
    user_id: int,
    payload: ActiveUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _get_user_or_404(db, user_id)
    if user.UserID == admin.UserID and not payload.active:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    user.IsActive = payload.active
    db.commit()
    if not payload.active:
        deactivate_user_sessions(db, user.UserID)
    audit.info(
        "admin.user.active",
        extra={"admin_id": admin.UserID, "user_id": user.UserID, "active": payload.active},
    )
    return user_out(user)


@router.get("/stats")
def stats(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    by_role = dict.fromkeys(ROLES, 0)
    for role, count in db.query(User.Role, func.count(User.UserID)).group_by(User.Role).all():
        by_role[role] = int(count)
    return {
        "users": by_role,
        "total_users": sum(by_role.values()),
        "quizzes": db.query(Quiz).count(),
        "published_quizzes": db.query(Quiz).filter(Quiz.IsPublished.is_(True)).count(),
        "results": db.query(Result).count(),
    }
