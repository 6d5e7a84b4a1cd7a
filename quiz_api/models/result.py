from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer
from sqlalchemy.sql import func

from quiz_api.models.user import Base


class Result(Base):
    __tablename__ = "Result"
    ResultID = Column(Integer, primary_key=True, autoincrement=True)
    QuizID = Column(Integer, ForeignKey("Quiz.QuizID"), nullable=False, index=True)
    UserID = Column(Integer, ForeignKey("Users.UserID"), nullable=False, index=True)
    Score = Column(Integer, nullable=False, default=0)
    MaxScore = Column(Integer, nullable=False, default=0)
    Answers = Column(JSON, nullable=False)  # chosen option index per question, or null
    Correct = Column(JSON, nullable=True)  # per-question correctness at submission time
    SubmittedAt = Column(DateTime, server_default=func.now(), index=True)
