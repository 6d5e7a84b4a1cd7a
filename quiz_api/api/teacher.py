"""Teacher dashboard: own quizzes, their attempts, publishing."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from db import get_db
from quiz_api.api.quizzes import can_manage, get_quiz_or_404
from quiz_api.api.schemas import PublishUpdate, quiz_summary, result_out
from quiz_api.models import Quiz, Result, User
from quiz_api.services.auth import require_teacher
from quiz_api.services.grading import percentage

router = APIRouter()
audit = logging.getLogger("audit")


def _owned_quiz(db: Session, quiz_id: int, user: User) -> Quiz:
    quiz = get_quiz_or_404(db, quiz_id)
    if not can_manage(user, quiz):
        raise HTTPException(status_code=403, detail="Forbidden")
    return quiz


@router.get("/quizzes")
def my_quizzes(db: Session = Depends(get_db), user: User = Depends(require_teacher)):
    quizzes = (
        db.query(Quiz)
        .options(selectinload(Quiz.questions))
        .filter(Quiz.OwnerID == user.UserID)
        .order_by(Quiz.DateCreated.desc(), Quiz.QuizID.desc())
        .all()
    )
    ids = [q.QuizID for q in quizzes]
    aggregates = {}
    if ids:
        rows = (
            db.query(
                Result.QuizID,
                func.count(Result.ResultID),
                func.sum(Result.Score),
                func.sum(Result.MaxScore),
            )
            .filter(Result.QuizID.in_(ids))
            .group_by(Result.QuizID)
            .all()
        )
        aggregates = {quiz_id: (count, score, max_score) for quiz_id, count, score, max_score in rows}
    out = []
    for quiz in quizzes:
        count, score, max_score = aggregates.get(quiz.QuizID, (0, 0, 0))
        item = quiz_summary(quiz)
        item["attempts"] = int(count or 0)
        item["average_percentage"] = percentage(score, max_score)
        out.append(item)
    return out


@router.get("/quizzes/{quiz_id}/results")
def quiz_results(
    quiz_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_teacher),
):
    quiz = _owned_quiz(db, quiz_id, user)
    rows = (
        db.query(Result, User.Name)
        .join(User, User.UserID == Result.UserID)
        .filter(Result.QuizID == quiz.QuizID)
        .order_by(Result.SubmittedAt.desc(), Result.ResultID.desc())
        .all()
    )
    out = []
    for result, taker in rows:
        item = result_out(result, quiz_title=quiz.Title)
        item["user_name"] = taker
        out.append(item)
    return out


@router.put("/quizzes/{quiz_id}/publish")
def publish_quiz(
    quiz_id: int,
    payload: PublishUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_teacher),
):
    quiz = _owned_quiz(db, quiz_id, user)
    if payload.published and not quiz.questions:
        raise HTTPException(status_code=400, detail="A quiz with no questions cannot be published")
    quiz.IsPublished = payload.published
    db.commit()
    audit.info(
        "quiz.publish",
        extra={"quiz_id": quiz.QuizID, "user_id": user.UserID, "published": payload.published},
    )
    return quiz_summary(quiz)
