# SQLAlchemy models
from .base import Base
from .knowledge import ContentPack, Knowledge
from .quiz import (
    AnswerOptionComponent,
    QuizAnswerOption,
    QuizQuestion,
    QuizSessionRecord,
)

__all__ = [
    "Base",
    # Knowledge
    "ContentPack",
    "Knowledge",
    # Quiz
    "AnswerOptionComponent",
    "QuizAnswerOption",
    "QuizQuestion",
    "QuizSessionRecord",
]
