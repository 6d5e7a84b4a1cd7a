"""Request bodies and response serializers for the JSON API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from quiz_api.models import Question, Quiz, Result, User
from quiz_api.models.user import ROLE_STUDENT, ROLE_TEACHER, ROLES
from quiz_api.services.grading import percentage


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    role: str = ROLE_STUDENT

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        local, _, domain = v.strip().partition("@")
        if not local or "." not in domain:
            raise ValueError("must be a valid email address")
        return v.strip()

    @field_validator("role")
    @classmethod
    def _self_service_role(cls, v: str) -> str:
        # Admins are appointed, never self-registered
        if v not in (ROLE_STUDENT, ROLE_TEACHER):
            raise ValueError("must be 'student' or 'teacher'")
        return v


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class QuestionIn(BaseModel):
    prompt: str = Field(min_length=1, max_length=2000)
    options: List[str] = Field(min_length=2, max_length=10)
    correct_index: int = Field(ge=0)
    points: int = Field(default=1, ge=1, le=100)

    @model_validator(mode="after")
    def _correct_in_range(self):
        if self.correct_index >= len(self.options):
            raise ValueError("correct_index must point at one of the options")
        if any(not o.strip() for o in self.options):
            raise ValueError("options must not be blank")
        return self


class QuizIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    time_limit_seconds: Optional[int] = Field(default=None, ge=10, le=24 * 3600)
    is_published: bool = False
    questions: List[QuestionIn] = Field(default_factory=list, max_length=100)

    @model_validator(mode="after")
    def _publishable(self):
        if self.is_published and not self.questions:
            raise ValueError("a quiz needs at least one question to be published")
        return self


class SubmitRequest(BaseModel):
    quiz_id: int
    answers: List[Optional[int]] = Field(max_length=100)


class RoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def _known_role(cls, v: str) -> str:
        if v not in ROLES:
            raise ValueError(f"must be one of {', '.join(ROLES)}")
        return v


class ActiveUpdate(BaseModel):
    active: bool


class PublishUpdate(BaseModel):
    published: bool


# Serializers


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def user_out(user: User) -> Dict[str, Any]:
    return {
        "id": user.UserID,
        "name": user.Name,
        "email": user.Email,
        "role": user.Role,
        "is_active": bool(user.IsActive),
        "created_at": _iso(user.DateCreated),
    }


def question_out(question: Question, include_answer: bool = False) -> Dict[str, Any]:
    out = {
        "id": question.QuestionID,
        "prompt": question.Prompt,
        "options": list(question.Options or []),
        "points": question.Points,
    }
    if include_answer:
        out["correct_index"] = question.CorrectIndex
    return out


def quiz_summary(quiz: Quiz) -> Dict[str, Any]:
    return {
        "id": quiz.QuizID,
        "title": quiz.Title,
        "description": quiz.Description,
        "owner_id": quiz.OwnerID,
        "is_published": bool(quiz.IsPublished),
        "time_limit_seconds": quiz.TimeLimitSeconds,
        "question_count": len(quiz.questions),
        "created_at": _iso(quiz.DateCreated),
    }


def quiz_detail(quiz: Quiz, include_answers: bool = False) -> Dict[str, Any]:
    out = quiz_summary(quiz)
    out["questions"] = [question_out(q, include_answers) for q in quiz.questions]
    return out


def result_out(result: Result, quiz_title: Optional[str] = None) -> Dict[str, Any]:
    max_score = int(result.MaxScore or 0)
    return {
        "id": result.ResultID,
        "quiz_id": result.QuizID,
        "quiz_title": quiz_title,
        "user_id": result.UserID,
        "score": result.Score,
        "max_score": max_score,
        "percentage": percentage(result.Score, max_score) or 0.0,
        "answers": list(result.Answers or []),
        "correct": list(result.Correct) if result.Correct is not None else None,
        "submitted_at": _iso(result.SubmittedAt),
    }
