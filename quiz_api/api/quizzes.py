"""Quiz catalogue and authoring endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session, selectinload

from db import get_db
from quiz_api.api.schemas import QuizIn, quiz_detail, quiz_summary
from quiz_api.models import Question, Quiz, Result, User
from quiz_api.models.user import ROLE_ADMIN
from quiz_api.services.auth import get_current_user, require_teacher

router = APIRouter()
audit = logging.getLogger("audit")


def can_manage(user: Optional[User], quiz: Quiz) -> bool:
    if user is None:
        return False
    return user.Role == ROLE_ADMIN or quiz.OwnerID == user.UserID


def get_quiz_or_404(db: Session, quiz_id: int) -> Quiz:
    quiz = (
        db.query(Quiz)
        .options(selectinload(Quiz.questions))
        .filter(Quiz.QuizID == quiz_id)
        .first()
    )
    if quiz is None:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


def _apply(quiz: Quiz, payload: QuizIn) -> None:
    quiz.Title = payload.title.strip()
    quiz.Description = payload.description
    quiz.TimeLimitSeconds = payload.time_limit_seconds
    quiz.IsPublished = payload.is_published
    quiz.questions = [
        Question(
            Prompt=q.prompt,
            Options=[o.strip() for o in q.options],
            CorrectIndex=q.correct_index,
            Points=q.points,
            Position=i,
        )
        for i, q in enumerate(payload.questions)
    ]


@router.get("")
def list_quizzes(db: Session = Depends(get_db)):
    quizzes = (
        db.query(Quiz)
        .options(selectinload(Quiz.questions))
        .filter(Quiz.IsPublished.is_(True))
        .order_by(Quiz.DateCreated.desc(), Quiz.QuizID.desc())
        .all()
    )
    return [quiz_summary(q) for q in quizzes]


@router.get("/{quiz_id}")
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
):
    quiz = get_quiz_or_404(db, quiz_id)
    manager = can_manage(user, quiz)
    # Drafts are invisible to everyone but their owner and admins
    if not quiz.IsPublished and not manager:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz_detail(quiz, include_answers=manager)


@router.post("", status_code=201)
def create_quiz(
    payload: QuizIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_teacher),
):
    quiz = Quiz(OwnerID=user.UserID)
    _apply(quiz, payload)
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    audit.info("quiz.created", extra={"quiz_id": quiz.QuizID, "user_id": user.UserID})
    return quiz_detail(quiz, include_answers=True)


@router.put("/{quiz_id}")
def update_quiz(
    quiz_id: int,
    payload: QuizIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_teacher),
):
    quiz = get_quiz_or_404(db, quiz_id)
    if not can_manage(user, quiz):
        raise HTTPException(status_code=403, detail="Forbidden")
    _apply(quiz, payload)
    db.commit()
    db.refresh(quiz)
    audit.info("quiz.updated", extra={"quiz_id": quiz.QuizID, "user_id": user.UserID})
    return quiz_detail(quiz, include_answers=True)


@router.delete("/{quiz_id}", status_code=204)
def delete_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_teacher),
):
    quiz = get_quiz_or_404(db, quiz_id)
    if not can_manage(user, quiz):
        raise HTTPException(status_code=403, detail="Forbidden")
    db.query(Result).filter(Result.QuizID == quiz.QuizID).delete(synchronize_session=False)
    db.delete(quiz)
    db.commit()
    audit.info("quiz.deleted", extra={"quiz_id": quiz_id, "user_id": user.UserID})
    return Response(status_code=204)
