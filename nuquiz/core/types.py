"""
Shared data model for the quiz core.

Knowledge tree:
- topic: grouping node, may nest under another topic
- category: the thing being compared (e.g. "Left-sided CHF")
- attribute: the axis of comparison (e.g. "Symptoms")
- fact: a leaf value (e.g. "Pulmonary edema")

Generated questions and their options are frozen dataclasses so that two
generations from the same input compare equal by value.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Union


class NodeType(str, Enum):
    """Knowledge node types, in nesting order."""

    TOPIC = "topic"
    CATEGORY = "category"
    ATTRIBUTE = "attribute"
    FACT = "fact"


class QuestionDirection(str, Enum):
    """Which way a question walks the tree."""

    DOWNWARD = "downward"  # category | attribute -> facts
    UPWARD = "upward"  # attribute | fact -> categories


class SessionState(str, Enum):
    CREATED = "created"
    OPEN = "open"
    COMPLETED = "completed"


@dataclass(frozen=True)
class KnowledgeNode:
    """A node in a content pack's knowledge tree."""

    id: int
    parent_id: int | None
    name: str  # slug
    label: str  # display text
    type: NodeType
    content_pack_id: int
    order_index: int = 0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def ref(self) -> NodeRef:
        return NodeRef(self.id, self.label)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.order_index, self.id)


@dataclass(frozen=True)
class NodeRef:
    """Minimal node shape consumed by the question generator."""

    id: int
    label: str


# ============================================================================
# Question generation input (tagged union)
# ============================================================================


@dataclass(frozen=True)
class DownwardQuestionData:
    """Pick the facts that belong to a category + attribute pair."""

    direction: ClassVar[QuestionDirection] = QuestionDirection.DOWNWARD

    category: NodeRef
    attribute: NodeRef
    correct_facts: tuple[NodeRef, ...]
    distractor_pool: tuple[NodeRef, ...]
    confusing_facts: tuple[NodeRef, ...] = ()
    num_distractors: int = 4

    def __post_init__(self):
        # Accept lists from callers; store tuples so instances stay hashable
        for name in ("correct_facts", "distractor_pool", "confusing_facts"):
            object.__setattr__(self, name, tuple(getattr(self, name)))


@dataclass(frozen=True)
class UpwardQuestionData:
    """Pick the categories to which an attribute + fact pair belongs."""

    direction: ClassVar[QuestionDirection] = QuestionDirection.UPWARD

    attribute: NodeRef
    fact: NodeRef
    correct_categories: tuple[NodeRef, ...]
    distractor_pool: tuple[NodeRef, ...]
    confusing_facts: tuple[NodeRef, ...] = ()
    num_distractors: int = 4

    def __post_init__(self):
        for name in ("correct_categories", "distractor_pool", "confusing_facts"):
            object.__setattr__(self, name, tuple(getattr(self, name)))


QuestionData = Union[DownwardQuestionData, UpwardQuestionData]


# ============================================================================
# Question generation output
# ============================================================================


@dataclass(frozen=True)
class AnswerOption:
    """One selectable option of a multiple-select question."""

    option_text: str
    is_correct: bool
    components: tuple[int, ...]  # knowledge ids (facts or categories)
    display_order: int


@dataclass(frozen=True)
class GeneratedQuestion:
    """A generated question, not yet persisted."""

    prompt: str
    direction: QuestionDirection
    category_id: int | None
    attribute_id: int
    fact_id: int | None
    answer_options: tuple[AnswerOption, ...]

    @property
    def correct_options(self) -> tuple[AnswerOption, ...]:
        return tuple(o for o in self.answer_options if o.is_correct)


# ============================================================================
# Sessions and scoring
# ============================================================================


@dataclass(frozen=True)
class SessionOption:
    """A persisted answer option as seen by the scorer."""

    id: int
    question_id: int
    is_correct: bool
    was_selected: bool = False


@dataclass(frozen=True)
class SessionQuestion:
    """A persisted question with its options."""

    id: int
    question_order: int
    options: tuple[SessionOption, ...] = ()


@dataclass(frozen=True)
class QuizSession:
    """A learner's quiz attempt over one content pack."""

    id: int
    user_id: int
    content_pack_id: int
    total_questions: int
    started_at: datetime
    correct_answers: int = 0
    score: float | None = None
    completed_at: datetime | None = None
    question_count_written: int = field(default=0, compare=False)

    @property
    def state(self) -> SessionState:
        if self.completed_at is not None:
            return SessionState.COMPLETED
        if self.question_count_written > 0:
            return SessionState.OPEN
        return SessionState.CREATED

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one submission."""

    correct_count: int
    total_questions: int
    score: float
