"""
Strict-match submission scoring.

A question counts as correct only when the selected option set equals the
correct option set exactly. No partial credit.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Collection, Iterable, Sequence

from nuquiz.core.errors import AlreadyCompleted, InvalidSelection
from nuquiz.core.types import QuizSession, ScoreResult, SessionOption, SessionQuestion


def validate_selection(valid_option_ids: Collection[int], selected_ids: Iterable[int]) -> None:
    """Reject any selected id that does not belong to the session."""
    valid = set(valid_option_ids)
    invalid = [option_id for option_id in selected_ids if option_id not in valid]
    if invalid:
        raise InvalidSelection(invalid)


def apply_selections(
    options: Iterable[SessionOption],
    selected_ids: Collection[int],
) -> tuple[SessionOption, ...]:
    """Return copies of ``options`` with ``was_selected`` set from ``selected_ids``."""
    selected = set(selected_ids)
    return tuple(replace(o, was_selected=o.id in selected) for o in options)


def is_question_correct(options: Iterable[SessionOption]) -> bool:
    options = list(options)
    correct_ids = {o.id for o in options if o.is_correct}
    selected_ids = {o.id for o in options if o.was_selected}
    return correct_ids == selected_ids


def calculate_score(correct_count: int, total_questions: int) -> float:
    """Percentage score; 0 for an empty session."""
    if total_questions <= 0:
        return 0.0
    return (correct_count / total_questions) * 100


def score_submission(session: QuizSession, questions: Sequence[SessionQuestion]) -> ScoreResult:
    """
    Score a session whose options already carry ``was_selected`` flags.

    Raises:
        AlreadyCompleted: the session was scored before
    """
    if session.is_completed:
        raise AlreadyCompleted(session.id)

    correct_count = sum(1 for q in questions if is_question_correct(q.options))
    total = len(questions)
    return ScoreResult(
        correct_count=correct_count,
        total_questions=total,
        score=calculate_score(correct_count, total),
    )


def complete_session(
    session: QuizSession,
    result: ScoreResult,
    completed_at: datetime | None = None,
) -> QuizSession:
    """Return the completed copy of ``session``. Completion happens once."""
    if session.is_completed:
        raise AlreadyCompleted(session.id)
    return replace(
        session,
        correct_answers=result.correct_count,
        score=result.score,
        completed_at=completed_at or datetime.now(timezone.utc),
    )
