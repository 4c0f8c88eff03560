"""
Hierarchy rules for the knowledge tree.

Pure functions only: no database access. The write path calls
``ensure_hierarchy`` before it touches storage.

    root      -> topic
    topic     -> topic, category
    category  -> attribute
    attribute -> fact
    fact      -> (nothing)
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from nuquiz.core.errors import HierarchyViolation
from nuquiz.core.types import KnowledgeNode, NodeType

HIERARCHY_RULES: Mapping[NodeType, frozenset[NodeType]] = MappingProxyType({
    NodeType.TOPIC: frozenset({NodeType.TOPIC, NodeType.CATEGORY}),
    NodeType.CATEGORY: frozenset({NodeType.ATTRIBUTE}),
    NodeType.ATTRIBUTE: frozenset({NodeType.FACT}),
    NodeType.FACT: frozenset(),
})

ROOT_CHILD_TYPES: frozenset[NodeType] = frozenset({NodeType.TOPIC})

_DEPTHS: Mapping[NodeType, int] = MappingProxyType({
    NodeType.TOPIC: 0,
    NodeType.CATEGORY: 1,
    NodeType.ATTRIBUTE: 2,
    NodeType.FACT: 3,
})

PATH_SEPARATOR = " | "


def coerce_node_type(value: NodeType | str) -> NodeType:
    """Accept a NodeType or its string value ("Topic" and "topic" both work)."""
    if isinstance(value, NodeType):
        return value
    return NodeType(str(value).strip().lower())


def validate_hierarchy(parent_type: NodeType | str | None, child_type: NodeType | str) -> bool:
    """
    Check whether ``child_type`` may be placed under ``parent_type``.

    ``parent_type=None`` means the child is a root node.

    >>> validate_hierarchy(None, "topic")
    True
    >>> validate_hierarchy(None, "category")
    False
    >>> validate_hierarchy("topic", "fact")
    False
    """
    child = coerce_node_type(child_type)
    if parent_type is None:
        return child in ROOT_CHILD_TYPES
    return child in HIERARCHY_RULES[coerce_node_type(parent_type)]


def ensure_hierarchy(parent_type: NodeType | str | None, child_type: NodeType | str) -> None:
    """Raise HierarchyViolation if the pair is disallowed."""
    if not validate_hierarchy(parent_type, child_type):
        raise HierarchyViolation(
            coerce_node_type(parent_type) if parent_type is not None else None,
            coerce_node_type(child_type),
        )


def node_depth(node_type: NodeType | str) -> int:
    """Nominal depth of a node type. Nested topics are not counted."""
    return _DEPTHS[coerce_node_type(node_type)]


def can_have_children(node_type: NodeType | str) -> bool:
    return bool(HIERARCHY_RULES[coerce_node_type(node_type)])


def allowed_child_types(parent_type: NodeType | str | None) -> frozenset[NodeType]:
    if parent_type is None:
        return ROOT_CHILD_TYPES
    return HIERARCHY_RULES[coerce_node_type(parent_type)]


def validate_knowledge_data(
    name: str | None,
    label: str | None,
    node_type: NodeType | str | None,
    content_pack_id: int | None,
) -> list[str]:
    """
    Validate node fields before creation.

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []

    if not name or not name.strip():
        errors.append("name is required and cannot be empty")

    if not label or not label.strip():
        errors.append("label is required and cannot be empty")

    if node_type is None or node_type == "":
        errors.append("type is required")
    else:
        try:
            coerce_node_type(node_type)
        except ValueError:
            allowed = ", ".join(t.value for t in NodeType)
            errors.append(f"type must be one of: {allowed} (got: {node_type})")

    if not content_pack_id or content_pack_id <= 0:
        errors.append("content_pack_id is required and must be positive")

    return errors


def build_path_notation(category: str, attribute: str) -> str:
    """Format a pair as ``"category | attribute"``."""
    return f"{category}{PATH_SEPARATOR}{attribute}"


def parse_path_notation(path: str) -> tuple[str, str] | None:
    """Split ``"category | attribute"``; None if it is not exactly two non-empty parts."""
    parts = [p.strip() for p in path.split("|")]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def count_by_type(nodes: Iterable[KnowledgeNode]) -> dict[NodeType, int]:
    """Node count per type; every type is present, zero when absent."""
    counts = {node_type: 0 for node_type in NodeType}
    for node in nodes:
        counts[node.type] += 1
    return counts


def check_tree(nodes: Iterable[KnowledgeNode]) -> list[str]:
    """
    Check every node of an already-built tree against the hierarchy rules.

    Returns:
        Human-readable problems, one per offending node field
    """
    nodes = list(nodes)
    by_id: dict[int, KnowledgeNode] = {}
    problems: list[str] = []

    for node in nodes:
        if node.id in by_id:
            problems.append(f"node {node.id} ({node.name}): duplicate id")
            continue
        by_id[node.id] = node

    for node in nodes:
        if by_id[node.id] is not node:
            continue

        for error in validate_knowledge_data(node.name, node.label, node.type, node.content_pack_id):
            problems.append(f"node {node.id}: {error}")

        if node.is_root:
            parent_type = None
        else:
            parent = by_id.get(node.parent_id)
            if parent is None:
                problems.append(f"node {node.id}: parent {node.parent_id} not found")
                continue
            parent_type = parent.type

        if not validate_hierarchy(parent_type, node.type):
            parent_name = parent_type.value if parent_type else "root"
            problems.append(
                f"node {node.id} ({node.name}): {node.type.value} not allowed under {parent_name}"
            )

    return problems
