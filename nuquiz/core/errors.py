"""
Typed errors for the quiz core.

Every error is a business-rule violation raised synchronously to the caller.
Nothing in the core retries; retry policy belongs to the surrounding service.
"""
from __future__ import annotations

from typing import Any, Iterable


class QuizCoreError(Exception):
    """Base class for all quiz core errors."""

    status_code: int = 500

    def __init__(self, message: str, **metadata: Any):
        super().__init__(message)
        self.message = message
        self.metadata = metadata

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an API response body."""
        body: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "status_code": self.status_code,
        }
        if self.metadata:
            body["metadata"] = self.metadata
        return body


class ValidationError(QuizCoreError):
    """Input data failed validation."""

    status_code = 400


class QuestionDataError(ValidationError):
    """Question generation input is unusable (e.g. no correct items)."""


class NotFound(QuizCoreError):
    """A referenced node or session does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found: {identifier}",
            resource=resource,
            identifier=identifier,
        )
        self.resource = resource
        self.identifier = identifier


class HierarchyViolation(QuizCoreError):
    """A node type may not be placed under the given parent type."""

    status_code = 422

    def __init__(self, parent_type: Any, child_type: Any):
        parent = _type_value(parent_type) or "root"
        child = _type_value(child_type)
        super().__init__(
            f"Cannot add {child} as child of {parent}. "
            f"Check hierarchy rules: topics -> categories -> attributes -> facts",
            parent_type=parent,
            child_type=child,
            reason="hierarchy_rule_violation",
        )
        self.parent_type = parent_type
        self.child_type = child_type


class InvalidRelationship(QuizCoreError):
    """Two nodes are not in the required parent/child relationship."""

    status_code = 422


class NoValidPairs(QuizCoreError):
    """No category/attribute pair had eligible facts for generation."""

    status_code = 422


class KnowledgeInUse(QuizCoreError):
    """A node (or a node in its subtree) is referenced by stored quiz options."""

    status_code = 409

    def __init__(self, node_id: Any, reference_count: int):
        super().__init__(
            f"Knowledge node {node_id} is used by {reference_count} stored answer option component(s)",
            node_id=node_id,
            reference_count=reference_count,
        )
        self.node_id = node_id
        self.reference_count = reference_count


class InvalidSelection(QuizCoreError):
    """Submitted option ids do not belong to the session."""

    status_code = 400

    def __init__(self, invalid_ids: Iterable[int]):
        ids = list(invalid_ids)
        super().__init__(
            f"Invalid option IDs: {', '.join(str(i) for i in ids)} - "
            f"these options do not belong to this quiz session",
            invalid_ids=ids,
        )
        self.invalid_ids = ids


class AlreadyCompleted(QuizCoreError):
    """The session has already been scored."""

    status_code = 409

    def __init__(self, session_id: Any):
        super().__init__(
            f"Quiz session {session_id} already completed",
            session_id=session_id,
        )
        self.session_id = session_id


class SessionOwnershipError(QuizCoreError):
    """The acting user does not own the session."""

    status_code = 403

    def __init__(self, session_id: Any, user_id: Any):
        super().__init__(
            "You do not own this quiz session",
            session_id=session_id,
            user_id=user_id,
        )


def _type_value(node_type: Any) -> str | None:
    if node_type is None:
        return None
    return getattr(node_type, "value", node_type)
