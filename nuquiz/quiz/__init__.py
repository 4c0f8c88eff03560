"""
Quiz module for question generation and scoring.

This module provides:
- SeededRandom: reproducible PRNG with shuffle/sample
- generate_question: downward/upward multiple-select question builder
- plan_questions: pair selection and distractor pools for a session
- score_submission: strict-match scoring (no partial credit)

Question Directions:
- downward: "select all | Category | Attribute" -> facts
- upward: "select all | Attribute | Fact" -> categories
"""

from .generator import generate_question
from .planner import PlannedQuestion, find_valid_pairs, plan_questions, question_seed
from .rng import SeededRandom
from .scorer import (
    apply_selections,
    calculate_score,
    complete_session,
    is_question_correct,
    score_submission,
    validate_selection,
)

__all__ = [
    "SeededRandom",
    "generate_question",
    "PlannedQuestion",
    "find_valid_pairs",
    "plan_questions",
    "question_seed",
    "apply_selections",
    "calculate_score",
    "complete_session",
    "is_question_correct",
    "score_submission",
    "validate_selection",
]
