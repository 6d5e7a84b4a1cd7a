from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from db import get_db
from quiz_api.api.quizzes import can_manage, get_quiz_or_404
from quiz_api.api.schemas import SubmitRequest, result_out
from quiz_api.models import Quiz, Result, User
from quiz_api.models.user import ROLE_ADMIN
from quiz_api.services.auth import require_user
from quiz_api.services.grading import grade

router = APIRouter()


@router.post("", status_code=201)
def submit_result(
    payload: SubmitRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    quiz = get_quiz_or_404(db, payload.quiz_id)
    if not quiz.IsPublished:
        raise HTTPException(status_code=404, detail="Quiz not found")
    questions = list(quiz.questions)
    if len(payload.answers) != len(questions):
        raise HTTPException(
            status_code=400,
            detail=f"Expected {len(questions)} answers, got {len(payload.answers)}",
        )
    outcome = grade(questions, payload.answers)
    result = Result(
        QuizID=quiz.QuizID,
        UserID=user.UserID,
        Score=outcome.score,
        MaxScore=outcome.max_score,
        Answers=list(payload.answers),
        Correct=outcome.correct,
    )
    db.add(result)
    db.commit()
    db.refresh(result)
    return result_out(result, quiz_title=quiz.Title)


@router.get("/me")
def my_results(db: Session = Depends(get_db), user: User = Depends(require_user)):
    rows = (
        db.query(Result, Quiz.Title)
        .join(Quiz, Quiz.QuizID == Result.QuizID)
        .filter(Result.UserID == user.UserID)
        .order_by(Result.SubmittedAt.desc(), Result.ResultID.desc())
        .all()
    )
    return [result_out(r, quiz_title=title) for r, title in rows]


@router.get("/{result_id}")
def get_result(
    result_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    result = db.query(Result).filter(Result.ResultID == result_id).first()
    if result is None:
        raise HTTPException(status_code=404, detail="Result not found")
    quiz = get_quiz_or_404(db, result.QuizID)
    if not (result.UserID == user.UserID or user.Role == ROLE_ADMIN or can_manage(user, quiz)):
        raise HTTPException(status_code=404, detail="Result not found")
    return result_out(result, quiz_title=quiz.Title)
