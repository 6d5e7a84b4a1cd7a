from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from quiz_api.models.user import Base


class Quiz(Base):
    __tablename__ = "Quiz"
    QuizID = Column(Integer, primary_key=True, autoincrement=True)
    Title = Column(String(200), nullable=False)
    Description = Column(Text, nullable=True)
    OwnerID = Column(Integer, ForeignKey("Users.UserID"), nullable=False, index=True)
    IsPublished = Column(Boolean, nullable=False, default=False)
    TimeLimitSeconds = Column(Integer, nullable=True)
    DateCreated = Column(DateTime, server_default=func.now())
    LastUpdated = Column(DateTime, server_default=func.now(), onupdate=func.now())

    questions = relationship(
        "Question",
        order_by="Question.Position",
        cascade="all, delete-orphan",
        back_populates="quiz",
    )


class Question(Base):
    __tablename__ = "Question"
    QuestionID = Column(Integer, primary_key=True, autoincrement=True)
    QuizID = Column(Integer, ForeignKey("Quiz.QuizID"), nullable=False, index=True)
    Prompt = Column(Text, nullable=False)
    Options = Column(JSON, nullable=False)  # list of option strings
    CorrectIndex = Column(Integer, nullable=False)
    Points = Column(Integer, nullable=False, default=1)
    Position = Column(Integer, nullable=False, default=0)

    quiz = relationship("Quiz", back_populates="questions")
