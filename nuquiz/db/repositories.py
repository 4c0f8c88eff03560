"""
Repositories over the SQLAlchemy models.

KnowledgeRepository satisfies the NodeLookup protocol so PathResolver can run
directly against the database. QuizSessionRepository owns the single-writer
completion rule.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased, selectinload

from nuquiz.core.errors import AlreadyCompleted, KnowledgeInUse, NotFound, ValidationError
from nuquiz.core.hierarchy import coerce_node_type, ensure_hierarchy, validate_knowledge_data
from nuquiz.core.types import (
    GeneratedQuestion,
    KnowledgeNode,
    NodeType,
    QuestionDirection,
    QuizSession,
    ScoreResult,
    SessionQuestion,
)
from nuquiz.db.models import (
    AnswerOptionComponent,
    ContentPack,
    Knowledge,
    QuizAnswerOption,
    QuizQuestion,
    QuizSessionRecord,
)


class KnowledgeRepository:
    """Knowledge tree reads and writes."""

    def __init__(self, session: Session):
        self.session = session

    # ========================================
    # NodeLookup
    # ========================================

    def get_node(self, node_id: int) -> KnowledgeNode | None:
        row = self.session.get(Knowledge, node_id)
        return row.to_node() if row else None

    def get_children(self, parent_id: int) -> list[KnowledgeNode]:
        rows = self.session.scalars(
            select(Knowledge)
            .where(Knowledge.parent_id == parent_id)
            .order_by(Knowledge.order_index, Knowledge.id)
        )
        return [r.to_node() for r in rows]

    def get_roots(self, content_pack_id: int) -> list[KnowledgeNode]:
        rows = self.session.scalars(
            select(Knowledge)
            .where(Knowledge.parent_id.is_(None), Knowledge.content_pack_id == content_pack_id)
            .order_by(Knowledge.order_index, Knowledge.id)
        )
        return [r.to_node() for r in rows]

    def get_subtree(self, root_id: int) -> list[KnowledgeNode]:
        """Root and all descendants in one recursive query."""
        subtree = (
            select(Knowledge.id)
            .where(Knowledge.id == root_id)
            .cte(name="subtree", recursive=True)
        )
        child = aliased(Knowledge)
        subtree = subtree.union_all(
            select(child.id).where(child.parent_id == subtree.c.id)
        )
        rows = self.session.scalars(
            select(Knowledge)
            .where(Knowledge.id.in_(select(subtree.c.id)))
            .order_by(Knowledge.order_index, Knowledge.id)
        )
        return [r.to_node() for r in rows]

    # ========================================
    # Queries
    # ========================================

    def find_by_content_pack(self, content_pack_id: int) -> list[KnowledgeNode]:
        rows = self.session.scalars(
            select(Knowledge)
            .where(Knowledge.content_pack_id == content_pack_id)
            .order_by(Knowledge.order_index, Knowledge.id)
        )
        return [r.to_node() for r in rows]

    def find_by_type(self, node_type: NodeType | str) -> list[KnowledgeNode]:
        rows = self.session.scalars(
            select(Knowledge)
            .where(Knowledge.type == coerce_node_type(node_type).value)
            .order_by(Knowledge.order_index, Knowledge.id)
        )
        return [r.to_node() for r in rows]

    # ========================================
    # Mutations
    # ========================================

    def create_content_pack(self, name: str, description: str | None = None) -> int:
        pack = ContentPack(name=name, description=description, is_active=True)
        self.session.add(pack)
        self.session.flush()
        return pack.id

    def create(
        self,
        name: str,
        label: str,
        node_type: NodeType | str,
        content_pack_id: int,
        parent_id: int | None = None,
        order_index: int = 0,
    ) -> KnowledgeNode:
        """
        Insert a node after checking field and hierarchy rules.

        Raises:
            ValidationError: blank name/label, bad type, bad content pack id
            NotFound: parent_id does not exist
            HierarchyViolation: node type not allowed under the parent
        """
        errors = validate_knowledge_data(name, label, node_type, content_pack_id)
        if errors:
            raise ValidationError("; ".join(errors), errors=errors)
        child_type = coerce_node_type(node_type)

        parent_type: NodeType | None = None
        if parent_id is not None:
            parent = self.session.get(Knowledge, parent_id)
            if parent is None:
                raise NotFound("knowledge", parent_id)
            parent_type = NodeType(parent.type)

        ensure_hierarchy(parent_type, child_type)

        row = Knowledge(
            parent_id=parent_id,
            name=name,
            label=label,
            type=child_type.value,
            content_pack_id=content_pack_id,
            order_index=order_index,
        )
        self.session.add(row)
        self.session.flush()
        logger.debug(f"Created {child_type.value} '{name}' (id={row.id}, parent={parent_id})")
        return row.to_node()

    def update(
        self,
        node_id: int,
        label: str | None = None,
        order_index: int | None = None,
    ) -> KnowledgeNode:
        """Authors may change label and ordering; type and parent are fixed."""
        row = self.session.get(Knowledge, node_id)
        if row is None:
            raise NotFound("knowledge", node_id)
        if label is not None:
            if not label.strip():
                raise ValidationError("label is required and cannot be empty")
            row.label = label
        if order_index is not None:
            row.order_index = order_index
        self.session.flush()
        return row.to_node()

    def delete(self, node_id: int) -> None:
        """
        Delete a node and its whole subtree.

        Raises:
            NotFound: node_id does not exist
            KnowledgeInUse: a node in the subtree is part of a stored answer option
        """
        row = self.session.get(Knowledge, node_id)
        if row is None:
            raise NotFound("knowledge", node_id)

        subtree_ids = [n.id for n in self.get_subtree(node_id)]
        references = self.session.scalar(
            select(func.count())
            .select_from(AnswerOptionComponent)
            .where(AnswerOptionComponent.knowledge_id.in_(subtree_ids))
        )
        if references:
            raise KnowledgeInUse(node_id, references)

        self.session.delete(row)
        self.session.flush()

    def reorder_children(self, parent_id: int | None, ordered_ids: Sequence[int]) -> list[KnowledgeNode]:
        """
        Rewrite ``order_index`` of a parent's children to match ``ordered_ids``.

        Position i gets order_index i. Ids that are not children of
        ``parent_id`` (roots when it is None) are skipped. The caller's
        transaction makes the rewrite all-or-nothing.
        """
        updated: list[Knowledge] = []
        for position, node_id in enumerate(ordered_ids):
            row = self.session.get(Knowledge, node_id)
            if row is None or row.parent_id != parent_id:
                continue
            row.order_index = position
            updated.append(row)
        self.session.flush()
        return [row.to_node() for row in updated]

    # ========================================
    # Aggregates
    # ========================================

    def count_by_type(self, content_pack_id: int) -> dict[NodeType, int]:
        """Node count per type in a content pack; zero for absent types."""
        counts = {node_type: 0 for node_type in NodeType}
        rows = self.session.execute(
            select(Knowledge.type, func.count())
            .where(Knowledge.content_pack_id == content_pack_id)
            .group_by(Knowledge.type)
        )
        for node_type, total in rows:
            counts[NodeType(node_type)] = total
        return counts

    def has_children(self, node_id: int) -> bool:
        child = self.session.scalar(
            select(Knowledge.id).where(Knowledge.parent_id == node_id).limit(1)
        )
        return child is not None


class QuizSessionRepository:
    """Quiz session persistence."""

    def __init__(self, session: Session):
        self.session = session

    def create_session(self, user_id: int, content_pack_id: int, total_questions: int) -> QuizSession:
        record = QuizSessionRecord(
            user_id=user_id,
            content_pack_id=content_pack_id,
            total_questions=total_questions,
            correct_answers=0,
            started_at=datetime.now(timezone.utc),
        )
        self.session.add(record)
        self.session.flush()
        return record.to_session()

    def save_question(
        self,
        session_id: int,
        question: GeneratedQuestion,
        question_order: int,
        seed: int | None = None,
    ) -> QuizQuestion:
        """Persist a generated question with its options and option components."""
        component_type = "fact" if question.direction == QuestionDirection.DOWNWARD else "category"
        row = QuizQuestion(
            session_id=session_id,
            question_text=question.prompt,
            question_type="multiple_select",
            question_order=question_order,
            direction=question.direction.value,
            category_id=question.category_id,
            attribute_id=question.attribute_id,
            fact_id=question.fact_id,
            seed=seed,
        )
        for option in question.answer_options:
            option_row = QuizAnswerOption(
                option_order=option.display_order,
                display_text=option.option_text,
                is_correct=option.is_correct,
                was_selected=False,
            )
            option_row.components = [
                AnswerOptionComponent(
                    knowledge_id=knowledge_id,
                    position=position,
                    component_type=component_type,
                    source_category_id=question.category_id,
                    source_attribute_id=question.attribute_id,
                )
                for position, knowledge_id in enumerate(option.components)
            ]
            row.options.append(option_row)

        self.session.add(row)
        self.session.flush()
        return row

    def set_total_questions(self, session_id: int, total: int) -> QuizSession:
        record = self.session.get(QuizSessionRecord, session_id)
        if record is None:
            raise NotFound("quiz_session", session_id)
        record.total_questions = total
        self.session.flush()
        # questions were inserted by session_id, not through the relationship
        self.session.expire(record, ["questions"])
        return record.to_session()

    def get_session(self, session_id: int) -> QuizSession | None:
        record = self.session.get(QuizSessionRecord, session_id)
        return record.to_session() if record else None

    def get_user_sessions(self, user_id: int, content_pack_id: int | None = None) -> list[QuizSession]:
        """A user's sessions, newest first, optionally limited to one content pack."""
        query = select(QuizSessionRecord).where(QuizSessionRecord.user_id == user_id)
        if content_pack_id is not None:
            query = query.where(QuizSessionRecord.content_pack_id == content_pack_id)
        rows = self.session.scalars(
            query.order_by(QuizSessionRecord.started_at.desc(), QuizSessionRecord.id.desc())
        )
        return [r.to_session() for r in rows]

    def get_question_rows(self, session_id: int) -> list[QuizQuestion]:
        return list(self.session.scalars(
            select(QuizQuestion)
            .options(selectinload(QuizQuestion.options))
            .where(QuizQuestion.session_id == session_id)
            .order_by(QuizQuestion.question_order)
            .execution_options(populate_existing=True)
        ))

    def get_session_questions(self, session_id: int) -> list[SessionQuestion]:
        return [q.to_session_question() for q in self.get_question_rows(session_id)]

    def get_session_option_ids(self, session_id: int) -> set[int]:
        rows = self.session.scalars(
            select(QuizAnswerOption.id)
            .join(QuizQuestion, QuizAnswerOption.question_id == QuizQuestion.id)
            .where(QuizQuestion.session_id == session_id)
        )
        return set(rows)

    def mark_selected(self, option_ids: Iterable[int]) -> None:
        ids = list(option_ids)
        if not ids:
            return
        self.session.execute(
            update(QuizAnswerOption)
            .where(QuizAnswerOption.id.in_(ids))
            .values(was_selected=True)
        )

    def complete(
        self,
        session_id: int,
        result: ScoreResult,
        completed_at: datetime | None = None,
    ) -> QuizSession:
        """
        Record the score and close the session.

        Gated on ``completed_at IS NULL`` so two concurrent submissions cannot
        both complete the same session.

        Raises:
            AlreadyCompleted: the conditional update matched no row
            NotFound: the session does not exist
        """
        outcome = self.session.execute(
            update(QuizSessionRecord)
            .where(
                QuizSessionRecord.id == session_id,
                QuizSessionRecord.completed_at.is_(None),
            )
            .values(
                correct_answers=result.correct_count,
                score=result.score,
                completed_at=completed_at or datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session="fetch")
        )
        if outcome.rowcount == 0:
            if self.session.get(QuizSessionRecord, session_id) is None:
                raise NotFound("quiz_session", session_id)
            raise AlreadyCompleted(session_id)

        record = self.session.get(QuizSessionRecord, session_id)
        self.session.refresh(record)
        return record.to_session()
