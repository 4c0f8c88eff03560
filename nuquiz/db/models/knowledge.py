"""
Knowledge tree tables.

    content_packs
      └── knowledge (self-referencing via parent_id, ON DELETE CASCADE)

Hierarchy rules are enforced in code (nuquiz.core.hierarchy) before insert;
the CHECK constraint only guards the set of type values.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nuquiz.core.types import KnowledgeNode, NodeType

from .base import Base


class ContentPack(Base):
    """Authoring unit that scopes a knowledge tree and its quizzes."""

    __tablename__ = "content_packs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(default=func.now())

    nodes: Mapped[list[Knowledge]] = relationship(
        back_populates="content_pack",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Knowledge(Base):
    """A topic, category, attribute or fact."""

    __tablename__ = "knowledge"
    __table_args__ = (
        CheckConstraint(
            "type IN ('topic', 'category', 'attribute', 'fact')",
            name="ck_knowledge_type",
        ),
        Index("ix_knowledge_parent_order", "parent_id", "order_index", "id"),
        Index("ix_knowledge_content_pack", "content_pack_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("knowledge.id", ondelete="CASCADE")
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    content_pack_id: Mapped[int] = mapped_column(
        ForeignKey("content_packs.id", ondelete="CASCADE"), nullable=False
    )
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    # Relationships
    content_pack: Mapped[ContentPack] = relationship(back_populates="nodes")
    children: Mapped[list[Knowledge]] = relationship(
        back_populates="parent",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    parent: Mapped[Knowledge | None] = relationship(
        back_populates="children", remote_side="Knowledge.id"
    )

    def to_node(self) -> KnowledgeNode:
        return KnowledgeNode(
            id=self.id,
            parent_id=self.parent_id,
            name=self.name,
            label=self.label,
            type=NodeType(self.type),
            content_pack_id=self.content_pack_id,
            order_index=self.order_index or 0,
        )
