from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from quiz_api.models.quiz import Question


@dataclass
class GradeOutcome:
    score: int
    max_score: int
    correct: List[bool] = field(default_factory=list)


def percentage(score, max_score) -> Optional[float]:
    """Share of ``max_score`` as a percentage (2 dp); None when nothing was scorable."""
    if not max_score:
        return None
    return round(100.0 * float(score or 0) / float(max_score), 2)


def grade(questions: Sequence[Question], answers: Sequence[Optional[int]]) -> GradeOutcome:
    """Score ``answers`` against ``questions`` (same order, same length).

    An unanswered question (None) or an out-of-range index scores zero.
    """
    if len(answers) != len(questions):
        raise ValueError(f"expected {len(questions)} answers, got {len(answers)}")
    outcome = GradeOutcome(score=0, max_score=0)
    for question, answer in zip(questions, answers):
        points = int(question.Points or 0)
        outcome.max_score += points
        ok = answer is not None and int(answer) == int(question.CorrectIndex)
        if ok:
            outcome.score += points
        outcome.correct.append(ok)
    return outcome
