"""
Core Module - Knowledge tree types, hierarchy rules and path resolution.

Components:
- types: KnowledgeNode, NodeRef, question input/output dataclasses
- errors: QuizCoreError hierarchy
- hierarchy: parent/child type rules (validate_hierarchy, ensure_hierarchy)
- paths: PathResolver over an injected NodeLookup

Nothing in this package performs I/O.
"""

from nuquiz.core.errors import (
    AlreadyCompleted,
    HierarchyViolation,
    InvalidRelationship,
    InvalidSelection,
    KnowledgeInUse,
    NoValidPairs,
    NotFound,
    QuestionDataError,
    QuizCoreError,
    SessionOwnershipError,
    ValidationError,
)
from nuquiz.core.hierarchy import (
    HIERARCHY_RULES,
    allowed_child_types,
    can_have_children,
    check_tree,
    count_by_type,
    ensure_hierarchy,
    node_depth,
    validate_hierarchy,
)
from nuquiz.core.paths import InMemoryNodeLookup, NodeLookup, PathResolver
from nuquiz.core.types import (
    AnswerOption,
    DownwardQuestionData,
    GeneratedQuestion,
    KnowledgeNode,
    NodeRef,
    NodeType,
    QuestionData,
    QuestionDirection,
    QuizSession,
    ScoreResult,
    SessionOption,
    SessionQuestion,
    SessionState,
    UpwardQuestionData,
)

__all__ = [
    # Types
    "AnswerOption",
    "DownwardQuestionData",
    "GeneratedQuestion",
    "KnowledgeNode",
    "NodeRef",
    "NodeType",
    "QuestionData",
    "QuestionDirection",
    "QuizSession",
    "ScoreResult",
    "SessionOption",
    "SessionQuestion",
    "SessionState",
    "UpwardQuestionData",
    # Errors
    "AlreadyCompleted",
    "HierarchyViolation",
    "InvalidRelationship",
    "InvalidSelection",
    "KnowledgeInUse",
    "NoValidPairs",
    "NotFound",
    "QuestionDataError",
    "QuizCoreError",
    "SessionOwnershipError",
    "ValidationError",
    # Hierarchy
    "HIERARCHY_RULES",
    "allowed_child_types",
    "can_have_children",
    "check_tree",
    "count_by_type",
    "ensure_hierarchy",
    "node_depth",
    "validate_hierarchy",
    # Paths
    "InMemoryNodeLookup",
    "NodeLookup",
    "PathResolver",
]
