"""
Quiz session tables.

    quiz_sessions
      └── quiz_questions
            └── quiz_answer_options
                  └── answer_option_components -> knowledge

A session is completed exactly once: ``completed_at`` moves from NULL to a
timestamp through a conditional UPDATE (see QuizSessionRepository.complete).
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nuquiz.core.types import QuizSession, SessionOption, SessionQuestion

from .base import Base


class QuizSessionRecord(Base):
    """One learner attempt over a content pack."""

    __tablename__ = "quiz_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    content_pack_id: Mapped[int] = mapped_column(
        ForeignKey("content_packs.id", ondelete="CASCADE"), nullable=False
    )
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[float | None] = mapped_column(Float)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    questions: Mapped[list[QuizQuestion]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuizQuestion.question_order",
    )

    def to_session(self) -> QuizSession:
        return QuizSession(
            id=self.id,
            user_id=self.user_id,
            content_pack_id=self.content_pack_id,
            total_questions=self.total_questions,
            correct_answers=self.correct_answers or 0,
            score=self.score,
            started_at=self.started_at,
            completed_at=self.completed_at,
            question_count_written=len(self.questions),
        )


class QuizQuestion(Base):
    """A generated question, frozen at session creation."""

    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("quiz_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(Text, default="multiple_select")
    question_order: Mapped[int] = mapped_column(Integer, nullable=False)
    direction: Mapped[str] = mapped_column(Text, default="downward")
    # Knowledge sources the question was generated from
    category_id: Mapped[int | None] = mapped_column(ForeignKey("knowledge.id", ondelete="SET NULL"))
    attribute_id: Mapped[int | None] = mapped_column(ForeignKey("knowledge.id", ondelete="SET NULL"))
    fact_id: Mapped[int | None] = mapped_column(ForeignKey("knowledge.id", ondelete="SET NULL"))
    seed: Mapped[int | None] = mapped_column(Integer)

    session: Mapped[QuizSessionRecord] = relationship(back_populates="questions")
    options: Mapped[list[QuizAnswerOption]] = relationship(
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuizAnswerOption.option_order",
    )

    def to_session_question(self) -> SessionQuestion:
        return SessionQuestion(
            id=self.id,
            question_order=self.question_order,
            options=tuple(o.to_session_option() for o in self.options),
        )


class QuizAnswerOption(Base):
    """A selectable option; ``was_selected`` is written at submission."""

    __tablename__ = "quiz_answer_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_order: Mapped[int] = mapped_column(Integer, nullable=False)
    display_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    was_selected: Mapped[bool] = mapped_column(Boolean, default=False)

    question: Mapped[QuizQuestion] = relationship(back_populates="options")
    components: Mapped[list[AnswerOptionComponent]] = relationship(
        back_populates="answer_option",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AnswerOptionComponent.position",
    )

    def to_session_option(self) -> SessionOption:
        return SessionOption(
            id=self.id,
            question_id=self.question_id,
            is_correct=self.is_correct,
            was_selected=bool(self.was_selected),
        )


class AnswerOptionComponent(Base):
    """One knowledge node that makes up an answer option."""

    __tablename__ = "answer_option_components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    answer_option_id: Mapped[int] = mapped_column(
        ForeignKey("quiz_answer_options.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # No cascade: stored options are fixed, so referenced nodes cannot be deleted
    knowledge_id: Mapped[int] = mapped_column(ForeignKey("knowledge.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    component_type: Mapped[str] = mapped_column(Text, default="fact")
    source_category_id: Mapped[int | None] = mapped_column(Integer)
    source_attribute_id: Mapped[int | None] = mapped_column(Integer)

    answer_option: Mapped[QuizAnswerOption] = relationship(back_populates="components")
