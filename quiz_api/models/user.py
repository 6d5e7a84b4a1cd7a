import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STUDENT, ROLE_TEACHER, ROLE_ADMIN)


class User(Base):
    __tablename__ = "Users"
    UserID = Column(Integer, primary_key=True, autoincrement=True)
    Name = Column(String(100), nullable=False)
    Email = Column(String(255), nullable=False, unique=True)
    HashedPassword = Column(String(255), nullable=False)
    Role = Column(String(16), nullable=False, default=ROLE_STUDENT)
    IsActive = Column(Boolean, nullable=False, default=True)
    DateCreated = Column(DateTime, server_default=func.now())
    LastLogin = Column(DateTime, nullable=True)


class UserSession(Base):
    __tablename__ = "UserSession"
    # uuid4 string; used as the bearer token
    SessionID = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    UserID = Column(Integer, ForeignKey("Users.UserID"), nullable=False, index=True)
    CreatedAt = Column(DateTime, server_default=func.now())
    ExpiresAt = Column(DateTime, nullable=True)
    IsActive = Column(Boolean, nullable=False, default=True)
    IPAddress = Column(String(45), nullable=True)
    UserAgent = Column(String(255), nullable=True)
