"""
Deterministic question generator.

Same input + same seed = same question, every time. No I/O, no global
randomness; all state lives in one SeededRandom per call.

Downward (category | attribute -> facts):
    1. all correct facts                      (correct)
    2. half of the correct facts, if 2+       (correct)
    3. up to 2 mixed options: 1 correct fact + 1 distractor (+ confusing facts)
    4. one pure distractor option (+ confusing facts)
    then shuffle and renumber.

Upward (attribute | fact -> categories):
    1. all correct categories                 (correct)
    2+. single distractor categories
    then shuffle and renumber.
"""
from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable

from loguru import logger

from nuquiz.core.errors import QuestionDataError
from nuquiz.core.types import (
    AnswerOption,
    DownwardQuestionData,
    GeneratedQuestion,
    NodeRef,
    QuestionData,
    QuestionDirection,
    UpwardQuestionData,
)
from nuquiz.quiz.rng import SeededRandom

PROMPT_TEMPLATE = "select all | {primary} | {secondary}"
OPTION_SEPARATOR = ", "
MAX_MIXED_OPTIONS = 2
MAX_PURE_DISTRACTORS = 2


def generate_question(data: QuestionData, seed: int) -> GeneratedQuestion:
    """
    Generate a single multiple-select question.

    Args:
        data: DownwardQuestionData or UpwardQuestionData
        seed: Seed for the per-call SeededRandom

    Returns:
        GeneratedQuestion ready to persist
    """
    rng = SeededRandom(seed)

    if isinstance(data, DownwardQuestionData):
        question = _generate_downward(data, rng)
    elif isinstance(data, UpwardQuestionData):
        question = _generate_upward(data, rng)
    else:
        raise TypeError(f"Unsupported question data: {type(data).__name__}")

    logger.debug(
        f"Generated {question.direction.value} question '{question.prompt}' "
        f"with {len(question.answer_options)} options (seed={seed})"
    )
    return question


def _generate_downward(data: DownwardQuestionData, rng: SeededRandom) -> GeneratedQuestion:
    correct = list(data.correct_facts)
    pool = list(data.distractor_pool)
    confusing = list(data.confusing_facts)

    if not correct:
        raise QuestionDataError(
            "Downward question needs at least one correct fact",
            category_id=data.category.id,
            attribute_id=data.attribute.id,
        )

    options: list[AnswerOption] = [_option(correct, is_correct=True, order=1)]

    if len(correct) > 1:
        some_correct = rng.sample(correct, math.ceil(len(correct) / 2))
        options.append(_option(some_correct, is_correct=True, order=len(options) + 1))

    for _ in range(min(MAX_MIXED_OPTIONS, len(pool))):
        one_correct = rng.sample(correct, 1)
        one_wrong = rng.sample(pool, 1)
        components = _unique([*one_correct, *one_wrong, *confusing])
        options.append(_option(components, is_correct=False, order=len(options) + 1))

    pure = rng.sample(pool, min(MAX_PURE_DISTRACTORS, len(pool)))
    components = _unique([*pure, *confusing])
    options.append(_option(components, is_correct=False, order=len(options) + 1))

    return GeneratedQuestion(
        prompt=_prompt(data.category, data.attribute),
        direction=QuestionDirection.DOWNWARD,
        category_id=data.category.id,
        attribute_id=data.attribute.id,
        fact_id=None,
        answer_options=_shuffle_options(options, rng),
    )


def _generate_upward(data: UpwardQuestionData, rng: SeededRandom) -> GeneratedQuestion:
    correct = list(data.correct_categories)
    pool = list(data.distractor_pool)

    if not correct:
        raise QuestionDataError(
            "Upward question needs at least one correct category",
            attribute_id=data.attribute.id,
            fact_id=data.fact.id,
        )

    options: list[AnswerOption] = [_option(correct, is_correct=True, order=1)]

    # Loop bound and index check kept as-is: the effective number of
    # distractor options is not always num_distractors.
    num_options = min(data.num_distractors, len(pool) + 1)
    for i in range(1, num_options):
        is_distractor = i > len(correct)
        if is_distractor and pool:
            selected = rng.sample(pool, 1)
            options.append(_option(selected, is_correct=False, order=len(options) + 1))

    return GeneratedQuestion(
        prompt=_prompt(data.attribute, data.fact),
        direction=QuestionDirection.UPWARD,
        category_id=None,
        attribute_id=data.attribute.id,
        fact_id=data.fact.id,
        answer_options=_shuffle_options(options, rng),
    )


def _prompt(primary: NodeRef, secondary: NodeRef) -> str:
    return PROMPT_TEMPLATE.format(primary=primary.label, secondary=secondary.label)


def _option(components: Iterable[NodeRef], is_correct: bool, order: int) -> AnswerOption:
    refs = list(components)
    return AnswerOption(
        option_text=OPTION_SEPARATOR.join(r.label for r in refs),
        is_correct=is_correct,
        components=tuple(r.id for r in refs),
        display_order=order,
    )


def _unique(refs: Iterable[NodeRef]) -> list[NodeRef]:
    """De-duplicate by id, keeping the first occurrence."""
    seen: dict[int, NodeRef] = {}
    for ref in refs:
        seen.setdefault(ref.id, ref)
    return list(seen.values())


def _shuffle_options(options: list[AnswerOption], rng: SeededRandom) -> tuple[AnswerOption, ...]:
    shuffled = rng.shuffle(options)
    return tuple(replace(opt, display_order=idx) for idx, opt in enumerate(shuffled, start=1))
