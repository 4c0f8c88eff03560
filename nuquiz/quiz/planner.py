"""
Question planning for a quiz session.

Turns a content pack's flat node list into per-question generator input:
which category/attribute pairs to ask about, which facts are correct, which
facts serve as distractors, and which seed each question uses.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from nuquiz.core.errors import NoValidPairs
from nuquiz.core.types import DownwardQuestionData, KnowledgeNode, NodeType

DEFAULT_SEED_MULTIPLIER = 1000


@dataclass(frozen=True)
class PlannedQuestion:
    """One question to generate."""

    order: int  # 1-based question_order
    seed: int
    data: DownwardQuestionData


def question_seed(session_id: int, index: int, multiplier: int = DEFAULT_SEED_MULTIPLIER) -> int:
    """Unique seed per question within a session."""
    return session_id * multiplier + index


def find_question_pairs(nodes: Iterable[KnowledgeNode]) -> list[tuple[KnowledgeNode, KnowledgeNode]]:
    """Every (category, attribute) pair where the attribute is a child of the category."""
    nodes = list(nodes)
    categories = [n for n in nodes if n.type == NodeType.CATEGORY]
    attributes = [n for n in nodes if n.type == NodeType.ATTRIBUTE]

    return [
        (category, attribute)
        for category in categories
        for attribute in attributes
        if attribute.parent_id == category.id
    ]


def find_valid_pairs(nodes: Iterable[KnowledgeNode]) -> list[tuple[KnowledgeNode, KnowledgeNode]]:
    """
    Pairs whose attribute has at least one fact.

    Raises:
        NoValidPairs: no pair exists, or no pair has any fact
    """
    nodes = list(nodes)
    pairs = find_question_pairs(nodes)
    if not pairs:
        raise NoValidPairs("No valid category/attribute pairs found for question generation")

    with_facts = {n.parent_id for n in nodes if n.type == NodeType.FACT}
    valid_pairs = [(c, a) for c, a in pairs if a.id in with_facts]
    if not valid_pairs:
        raise NoValidPairs("No category/attribute pairs with facts found for question generation")
    return valid_pairs


def plan_questions(
    nodes: Iterable[KnowledgeNode],
    question_count: int,
    session_id: int,
    num_distractors: int = 4,
    seed_multiplier: int = DEFAULT_SEED_MULTIPLIER,
) -> list[PlannedQuestion]:
    """
    Plan downward questions for a session.

    Distractors for a pair are the facts under the category's other attributes.

    Raises:
        NoValidPairs: no pair exists, or no pair has any fact
    """
    nodes = list(nodes)
    attributes = [n for n in nodes if n.type == NodeType.ATTRIBUTE]
    facts = [n for n in nodes if n.type == NodeType.FACT]

    valid_pairs = find_valid_pairs(nodes)

    facts_by_attribute: dict[int, list[KnowledgeNode]] = {}
    for fact in facts:
        facts_by_attribute.setdefault(fact.parent_id, []).append(fact)

    count = max(0, min(question_count, len(valid_pairs)))
    logger.info(
        f"Planning {count} questions for session {session_id} "
        f"({len(valid_pairs)} pairs have facts)"
    )

    planned: list[PlannedQuestion] = []
    for i in range(count):
        category, attribute = valid_pairs[i]
        correct_facts = facts_by_attribute[attribute.id]

        sibling_ids = {
            a.id for a in attributes
            if a.parent_id == category.id and a.id != attribute.id
        }
        distractor_pool = [f for f in facts if f.parent_id in sibling_ids]

        data = DownwardQuestionData(
            category=category.ref(),
            attribute=attribute.ref(),
            correct_facts=tuple(f.ref() for f in correct_facts),
            distractor_pool=tuple(f.ref() for f in distractor_pool),
            num_distractors=num_distractors,
        )
        planned.append(PlannedQuestion(
            order=i + 1,
            seed=question_seed(session_id, i, seed_multiplier),
            data=data,
        ))

    return planned
