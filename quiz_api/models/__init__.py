# Package init for quiz_api.models
from .quiz import Question as Question
from .quiz import Quiz as Quiz
from .result import Result as Result
from .user import Base as Base  # explicit re-export
from .user import User as User
from .user import UserSession as UserSession
