from nuquiz.services.quiz_session_service import (
    QuizSessionService,
    QuizSessionWithQuestions,
    QuizSubmissionResult,
    preview_questions,
)

__all__ = [
    "QuizSessionService",
    "QuizSessionWithQuestions",
    "QuizSubmissionResult",
    "preview_questions",
]
