"""
Path resolution over the knowledge tree.

PathResolver never talks to a database directly. It reads through a
``NodeLookup`` supplied by the storage layer (``nuquiz.db.KnowledgeRepository``)
or by ``InMemoryNodeLookup`` for tests and file-based tooling.
"""
from __future__ import annotations

from typing import Iterable, Protocol, Sequence, runtime_checkable

from loguru import logger

from nuquiz.core.errors import InvalidRelationship, NotFound
from nuquiz.core.hierarchy import PATH_SEPARATOR
from nuquiz.core.types import KnowledgeNode, NodeType

_PATH_TYPES = frozenset({NodeType.CATEGORY, NodeType.ATTRIBUTE})


@runtime_checkable
class NodeLookup(Protocol):
    """Read capability the resolver needs from storage."""

    def get_node(self, node_id: int) -> KnowledgeNode | None:
        ...

    def get_children(self, parent_id: int) -> list[KnowledgeNode]:
        """Direct children, ordered by (order_index, id)."""
        ...


class InMemoryNodeLookup:
    """Dict-backed NodeLookup."""

    def __init__(self, nodes: Iterable[KnowledgeNode] = ()):
        self._nodes: dict[int, KnowledgeNode] = {}
        for node in nodes:
            self.add(node)

    def add(self, node: KnowledgeNode) -> None:
        self._nodes[node.id] = node

    def get_node(self, node_id: int) -> KnowledgeNode | None:
        return self._nodes.get(node_id)

    def get_children(self, parent_id: int) -> list[KnowledgeNode]:
        children = [n for n in self._nodes.values() if n.parent_id == parent_id]
        return sorted(children, key=lambda n: n.sort_key)

    def get_roots(self, content_pack_id: int) -> list[KnowledgeNode]:
        roots = [
            n for n in self._nodes.values()
            if n.is_root and n.content_pack_id == content_pack_id
        ]
        return sorted(roots, key=lambda n: n.sort_key)

    def all_nodes(self) -> list[KnowledgeNode]:
        return sorted(self._nodes.values(), key=lambda n: n.sort_key)

    def __len__(self) -> int:
        return len(self._nodes)


class PathResolver:
    """Tree traversal helpers parameterized over a NodeLookup."""

    def __init__(self, lookup: NodeLookup):
        self.lookup = lookup

    def build_path(self, node_id: int) -> str:
        """
        Build the ``"Category | Attribute"`` path for a node.

        Walks ancestors upward and keeps only category and attribute labels;
        topics and facts are skipped. Stops at a root or at a missing node.
        """
        labels: list[str] = []
        seen: set[int] = set()
        current_id: int | None = node_id

        while current_id is not None and current_id not in seen:
            seen.add(current_id)
            node = self.lookup.get_node(current_id)
            if node is None:
                break
            if node.type in _PATH_TYPES:
                labels.append(node.label)
            current_id = node.parent_id

        labels.reverse()
        return PATH_SEPARATOR.join(labels)

    def get_subtree(self, root_id: int) -> list[KnowledgeNode]:
        """Root plus all descendants, ordered by (order_index, id)."""
        native = getattr(self.lookup, "get_subtree", None)
        if callable(native):
            return list(native(root_id))

        root = self.lookup.get_node(root_id)
        if root is None:
            return []

        collected: dict[int, KnowledgeNode] = {root.id: root}
        stack = [root.id]
        while stack:
            parent_id = stack.pop()
            for child in self.lookup.get_children(parent_id):
                if child.id in collected:
                    continue
                collected[child.id] = child
                stack.append(child.id)

        return sorted(collected.values(), key=lambda n: n.sort_key)

    def find_facts_for_pair(self, category_id: int, attribute_id: int) -> list[KnowledgeNode]:
        """
        Facts under an attribute, after checking it belongs to the category.

        Raises:
            NotFound: either id is unknown
            InvalidRelationship: wrong node types or attribute not under category
        """
        category = self.lookup.get_node(category_id)
        if category is None:
            raise NotFound("knowledge", category_id)
        attribute = self.lookup.get_node(attribute_id)
        if attribute is None:
            raise NotFound("knowledge", attribute_id)

        if category.type != NodeType.CATEGORY:
            raise InvalidRelationship(
                f"Invalid category ID: {category_id} (type is {category.type.value})",
                category_id=category_id,
            )
        if attribute.type != NodeType.ATTRIBUTE:
            raise InvalidRelationship(
                f"Invalid attribute ID: {attribute_id} (type is {attribute.type.value})",
                attribute_id=attribute_id,
            )
        if attribute.parent_id != category_id:
            raise InvalidRelationship(
                f"Attribute {attribute_id} is not a child of category {category_id}",
                category_id=category_id,
                attribute_id=attribute_id,
            )

        facts = [
            n for n in self.lookup.get_children(attribute_id)
            if n.type == NodeType.FACT
        ]
        logger.debug(f"Pair ({category_id}, {attribute_id}) has {len(facts)} facts")
        return sorted(facts, key=lambda n: n.sort_key)

    def find_by_path(self, names: Sequence[str], content_pack_id: int) -> list[KnowledgeNode]:
        """
        Resolve a chain of slugs from a root node downward.

        Example: ``find_by_path(["cardiology", "left_sided", "symptoms"], pack_id)``

        Raises:
            NotFound: a name has no match at its level
        """
        if not names:
            return []

        get_roots = getattr(self.lookup, "get_roots", None)
        if not callable(get_roots):
            raise TypeError(f"{type(self.lookup).__name__} does not support get_roots()")

        results: list[KnowledgeNode] = []
        candidates = [n for n in get_roots(content_pack_id)]
        for name in names:
            match = next((n for n in candidates if n.name == name), None)
            if match is None:
                raise NotFound("knowledge path segment", name)
            results.append(match)
            candidates = [
                n for n in self.lookup.get_children(match.id)
                if n.content_pack_id == content_pack_id
            ]
        return results
