"""
Quiz Session Service.

Business logic for quiz session creation and submission. Wires the pure
planner/generator/scorer to the repositories.

Create:
    1. fetch the content pack's knowledge nodes
    2. check there are category/attribute pairs with facts
    3. create the session row
    4. plan, generate each question from its seed and persist it

Submit:
    1. ownership and completion checks
    2. reject option ids that are not part of the session
    3. apply selections and score in memory
    4. persist selections, complete (conditional update)
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Sequence

from loguru import logger
from sqlalchemy.orm import Session

from config import Settings, get_settings
from nuquiz.core.errors import AlreadyCompleted, NotFound, SessionOwnershipError
from nuquiz.core.types import GeneratedQuestion, QuizSession, ScoreResult
from nuquiz.db.repositories import KnowledgeRepository, QuizSessionRepository
from nuquiz.quiz.generator import generate_question
from nuquiz.quiz.planner import find_valid_pairs, plan_questions
from nuquiz.quiz.scorer import (
    apply_selections,
    complete_session,
    score_submission,
    validate_selection,
)


@dataclass
class OptionView:
    id: int
    option_order: int
    display_text: str
    is_correct: bool


@dataclass
class QuestionView:
    id: int
    question_text: str
    question_type: str
    question_order: int
    options: list[OptionView] = field(default_factory=list)


@dataclass
class QuizSessionWithQuestions:
    session: QuizSession
    questions: list[QuestionView]


@dataclass
class QuizSubmissionResult:
    session: QuizSession
    total_questions: int
    correct_answers: int
    score: float


class QuizSessionService:
    """Create and submit quiz sessions within one SQLAlchemy session."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.knowledge = KnowledgeRepository(db)
        self.sessions = QuizSessionRepository(db)

    def create_quiz_session(
        self,
        user_id: int,
        content_pack_id: int,
        question_count: int | None = None,
    ) -> QuizSessionWithQuestions:
        """
        Create a session and generate its questions.

        ``total_questions`` on the returned session is the number actually
        generated, which is capped by the number of usable pairs.

        Raises:
            NoValidPairs: the content pack has nothing to ask about
        """
        if question_count is None:
            requested = self.settings.quiz_default_question_count
        else:
            requested = question_count
        nodes = self.knowledge.find_by_content_pack(content_pack_id)

        # Fail before any row is written
        find_valid_pairs(nodes)

        session = self.sessions.create_session(user_id, content_pack_id, requested)
        planned = plan_questions(
            nodes,
            question_count=requested,
            session_id=session.id,
            num_distractors=self.settings.quiz_num_distractors,
            seed_multiplier=self.settings.quiz_seed_multiplier,
        )

        for item in planned:
            generated = generate_question(item.data, item.seed)
            self.sessions.save_question(session.id, generated, item.order, seed=item.seed)

        record_session = self.sessions.set_total_questions(session.id, len(planned))
        logger.info(
            f"Created quiz session {session.id} for user {user_id} "
            f"with {len(planned)} questions (requested {requested})"
        )
        return QuizSessionWithQuestions(
            session=record_session,
            questions=self._question_views(session.id),
        )

    def get_quiz_session(self, session_id: int, user_id: int) -> QuizSessionWithQuestions:
        session = self._owned_session(session_id, user_id)
        return QuizSessionWithQuestions(
            session=session,
            questions=self._question_views(session_id),
        )

    def submit_quiz_session(
        self,
        session_id: int,
        user_id: int,
        selected_option_ids: Sequence[int],
        completed_at: datetime | None = None,
    ) -> QuizSubmissionResult:
        """
        Record selections and score the session.

        Raises:
            NotFound, SessionOwnershipError, AlreadyCompleted, InvalidSelection
        """
        session = self._owned_session(session_id, user_id)
        if session.is_completed:
            logger.warning(f"Rejected resubmission of completed session {session_id}")
            raise AlreadyCompleted(session_id)

        validate_selection(self.sessions.get_session_option_ids(session_id), selected_option_ids)

        selected = set(selected_option_ids)
        questions = [
            replace(q, options=apply_selections(q.options, selected))
            for q in self.sessions.get_session_questions(session_id)
        ]
        result: ScoreResult = score_submission(session, questions)
        scored = complete_session(session, result, completed_at)

        self.sessions.mark_selected(selected)
        completed = self.sessions.complete(session_id, result, scored.completed_at)
        logger.info(
            f"Session {session_id} scored {result.correct_count}/{result.total_questions} "
            f"({result.score:.1f}%)"
        )
        return QuizSubmissionResult(
            session=completed,
            total_questions=result.total_questions,
            correct_answers=result.correct_count,
            score=result.score,
        )

    # ========================================
    # Helpers
    # ========================================

    def _owned_session(self, session_id: int, user_id: int) -> QuizSession:
        session = self.sessions.get_session(session_id)
        if session is None:
            raise NotFound("quiz_session", session_id)
        if session.user_id != user_id:
            logger.warning(f"User {user_id} attempted to access session {session_id}")
            raise SessionOwnershipError(session_id, user_id)
        return session

    def _question_views(self, session_id: int) -> list[QuestionView]:
        return [
            QuestionView(
                id=q.id,
                question_text=q.question_text,
                question_type=q.question_type,
                question_order=q.question_order,
                options=[
                    OptionView(
                        id=o.id,
                        option_order=o.option_order,
                        display_text=o.display_text,
                        is_correct=o.is_correct,
                    )
                    for o in q.options
                ],
            )
            for q in self.sessions.get_question_rows(session_id)
        ]


def preview_questions(
    questions: Sequence[GeneratedQuestion],
) -> list[dict]:
    """Plain-dict rendering of generated questions (CLI / API previews)."""
    return [
        {
            "prompt": q.prompt,
            "direction": q.direction.value,
            "options": [
                {
                    "order": o.display_order,
                    "text": o.option_text,
                    "is_correct": o.is_correct,
                    "components": list(o.components),
                }
                for o in q.answer_options
            ],
        }
        for q in questions
    ]
