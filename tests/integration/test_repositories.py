"""
Integration tests for the SQLAlchemy repositories.

Runs against in-memory SQLite with foreign keys enabled; the concurrency
test uses a file database so two connections see the same rows.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from nuquiz.core.errors import (
    AlreadyCompleted,
    HierarchyViolation,
    KnowledgeInUse,
    NotFound,
    ValidationError,
)
from nuquiz.core.paths import PathResolver
from nuquiz.core.types import NodeType, ScoreResult
from nuquiz.db.database import create_db_engine, init_db, session_scope
from nuquiz.db.models import AnswerOptionComponent, Knowledge, QuizAnswerOption
from nuquiz.db.repositories import KnowledgeRepository, QuizSessionRepository
from nuquiz.quiz.generator import generate_question
from nuquiz.quiz.planner import plan_questions

pytestmark = pytest.mark.integration


def _knowledge_count(session):
    return session.scalar(select(func.count()).select_from(Knowledge))


class TestKnowledgeRepository:
    def test_builds_full_tree(self, db_session, seeded_pack):
        pack_id, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        assert len(repo.find_by_content_pack(pack_id)) == len(created)
        assert len(repo.find_by_type(NodeType.FACT)) == 10
        assert len(repo.find_by_type("category")) == 2

    def test_topic_category_attribute_fact_chain(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Materials")

        topic = repo.create("matter", "Matter", "topic", pack_id)
        category = repo.create("solid", "Solid", "category", pack_id, parent_id=topic.id)
        attribute = repo.create("shape", "Shape", "attribute", pack_id, parent_id=category.id)
        fact = repo.create("definite", "Definite shape", "fact", pack_id, parent_id=attribute.id)

        assert fact.parent_id == attribute.id
        assert repo.get_node(fact.id).type == NodeType.FACT

    def test_category_at_root_rejected(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Materials")

        with pytest.raises(HierarchyViolation):
            repo.create("solid", "Solid", "category", pack_id)

        assert _knowledge_count(db_session) == 0

    def test_fact_under_topic_rejected(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Materials")
        topic = repo.create("matter", "Matter", "topic", pack_id)

        with pytest.raises(HierarchyViolation) as exc:
            repo.create("definite", "Definite", "fact", pack_id, parent_id=topic.id)

        assert exc.value.metadata["parent_type"] == "topic"
        assert _knowledge_count(db_session) == 1

    def test_missing_parent(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Materials")

        with pytest.raises(NotFound):
            repo.create("solid", "Solid", "category", pack_id, parent_id=424242)

    def test_blank_fields_rejected(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Materials")

        with pytest.raises(ValidationError) as exc:
            repo.create(" ", "", "topic", pack_id)

        assert len(exc.value.metadata["errors"]) == 2

    def test_children_ordered(self, db_session, seeded_pack):
        _, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        children = repo.get_children(created[100].id)

        assert [c.name for c in children] == ["pulmonary_edema", "dyspnea", "orthopnea"]

    def test_roots(self, db_session, seeded_pack):
        pack_id, created = seeded_pack
        assert [n.id for n in KnowledgeRepository(db_session).get_roots(pack_id)] == [created[1].id]

    def test_recursive_subtree(self, db_session, seeded_pack):
        _, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        subtree = repo.get_subtree(created[10].id)

        assert {n.id for n in subtree} == {created[i].id for i in (10, 100, 101, 1001, 1002, 1003, 1011, 1012)}
        assert repo.get_subtree(999999) == []

    def test_path_resolver_over_database(self, db_session, seeded_pack):
        _, created = seeded_pack
        resolver = PathResolver(KnowledgeRepository(db_session))

        assert resolver.build_path(created[2002].id) == "Right-sided CHF | Symptoms"
        facts = resolver.find_facts_for_pair(created[11].id, created[111].id)
        assert [f.name for f in facts] == ["left_sided_failure", "pulmonary_hypertension"]

    def test_update_label_and_order(self, db_session, seeded_pack):
        _, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        updated = repo.update(created[1003].id, label="Orthopnoea", order_index=0)

        assert updated.label == "Orthopnoea"
        assert repo.get_children(created[100].id)[0].id == created[1003].id

    def test_update_rejects_blank_label(self, db_session, seeded_pack):
        _, created = seeded_pack
        with pytest.raises(ValidationError):
            KnowledgeRepository(db_session).update(created[1003].id, label="  ")

    def test_delete_cascades_to_subtree(self, db_session, seeded_pack):
        pack_id, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        repo.delete(created[10].id)
        db_session.expire_all()

        remaining = {n.id for n in repo.find_by_content_pack(pack_id)}
        assert created[1001].id not in remaining
        assert created[100].id not in remaining
        assert created[11].id in remaining
        assert len(remaining) == len(created) - 8

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFound):
            KnowledgeRepository(db_session).delete(5)

    def test_reorder_children(self, db_session, seeded_pack):
        _, created = seeded_pack
        repo = KnowledgeRepository(db_session)
        ids = [created[1003].id, created[1001].id, created[1002].id]

        updated = repo.reorder_children(created[100].id, ids)

        assert [n.order_index for n in updated] == [0, 1, 2]
        assert [c.id for c in repo.get_children(created[100].id)] == ids

    def test_reorder_skips_foreign_ids(self, db_session, seeded_pack):
        _, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        updated = repo.reorder_children(created[100].id, [created[2001].id, created[1002].id, 999999])

        assert [n.id for n in updated] == [created[1002].id]
        assert updated[0].order_index == 1
        assert repo.get_node(created[2001].id).order_index == 1

    def test_reorder_roots(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Roots")
        first = repo.create("a", "A", "topic", pack_id)
        second = repo.create("b", "B", "topic", pack_id)

        repo.reorder_children(None, [second.id, first.id])

        assert [n.id for n in repo.get_roots(pack_id)] == [second.id, first.id]

    def test_count_by_type(self, db_session, seeded_pack):
        pack_id, _ = seeded_pack
        counts = KnowledgeRepository(db_session).count_by_type(pack_id)

        assert counts == {
            NodeType.TOPIC: 2,
            NodeType.CATEGORY: 2,
            NodeType.ATTRIBUTE: 4,
            NodeType.FACT: 10,
        }

    def test_count_by_type_empty_pack(self, db_session):
        repo = KnowledgeRepository(db_session)
        pack_id = repo.create_content_pack("Empty")
        assert set(repo.count_by_type(pack_id).values()) == {0}

    def test_has_children(self, db_session, seeded_pack):
        _, created = seeded_pack
        repo = KnowledgeRepository(db_session)

        assert repo.has_children(created[10].id) is True
        assert repo.has_children(created[1001].id) is False


class TestQuizSessionRepository:
    @pytest.fixture
    def session_with_question(self, db_session, seeded_pack):
        pack_id, _ = seeded_pack
        repo = QuizSessionRepository(db_session)
        session = repo.create_session(user_id=1, content_pack_id=pack_id, total_questions=1)

        nodes = KnowledgeRepository(db_session).find_by_content_pack(pack_id)
        planned = plan_questions(nodes, 1, session_id=session.id)[0]
        question = generate_question(planned.data, planned.seed)
        repo.save_question(session.id, question, planned.order, seed=planned.seed)
        return repo, session, question

    def test_save_question_persists_components(self, db_session, session_with_question):
        repo, session, question = session_with_question

        rows = repo.get_question_rows(session.id)

        assert len(rows) == 1
        assert rows[0].question_text == question.prompt
        assert len(rows[0].options) == len(question.answer_options)
        components = db_session.scalars(select(AnswerOptionComponent)).all()
        assert len(components) == sum(len(o.components) for o in question.answer_options)
        assert {c.component_type for c in components} == {"fact"}

    def test_option_ids_scoped_to_session(self, db_session, session_with_question):
        repo, session, _ = session_with_question

        ids = repo.get_session_option_ids(session.id)

        assert ids == set(db_session.scalars(select(QuizAnswerOption.id)))
        assert repo.get_session_option_ids(session.id + 1) == set()

    def test_mark_selected(self, session_with_question):
        repo, session, _ = session_with_question
        option_ids = sorted(repo.get_session_option_ids(session.id))

        repo.mark_selected(option_ids[:1])

        options = repo.get_session_questions(session.id)[0].options
        assert [o.was_selected for o in options if o.id == option_ids[0]] == [True]
        assert sum(o.was_selected for o in options) == 1

    def test_complete_once(self, session_with_question):
        repo, session, _ = session_with_question
        result = ScoreResult(correct_count=1, total_questions=1, score=100.0)
        finished = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

        completed = repo.complete(session.id, result, completed_at=finished)

        assert completed.score == 100.0
        assert completed.correct_answers == 1
        assert completed.completed_at is not None
        with pytest.raises(AlreadyCompleted):
            repo.complete(session.id, result)

    def test_delete_of_quizzed_fact_refused(self, db_session, seeded_pack, session_with_question):
        _, created = seeded_pack
        knowledge = KnowledgeRepository(db_session)
        before = db_session.scalar(select(func.count()).select_from(AnswerOptionComponent))

        with pytest.raises(KnowledgeInUse) as exc:
            knowledge.delete(created[1001].id)

        assert exc.value.status_code == 409
        assert knowledge.get_node(created[1001].id) is not None
        assert db_session.scalar(select(func.count()).select_from(AnswerOptionComponent)) == before

    def test_delete_of_quizzed_subtree_refused(self, db_session, seeded_pack, session_with_question):
        _, created = seeded_pack
        with pytest.raises(KnowledgeInUse):
            KnowledgeRepository(db_session).delete(created[10].id)

    def test_delete_of_unquizzed_subtree_allowed(self, db_session, seeded_pack, session_with_question):
        # the single stored question only uses Left-sided CHF facts
        _, created = seeded_pack
        knowledge = KnowledgeRepository(db_session)

        knowledge.delete(created[11].id)

        assert knowledge.get_node(created[11].id) is None

    def test_user_sessions(self, db_session, seeded_pack):
        pack_id, _ = seeded_pack
        knowledge = KnowledgeRepository(db_session)
        other_pack = knowledge.create_content_pack("Other")
        repo = QuizSessionRepository(db_session)
        first = repo.create_session(1, pack_id, 0)
        second = repo.create_session(1, other_pack, 0)
        repo.create_session(2, pack_id, 0)

        assert [s.id for s in repo.get_user_sessions(1)] == [second.id, first.id]
        assert [s.id for s in repo.get_user_sessions(1, content_pack_id=pack_id)] == [first.id]
        assert repo.get_user_sessions(3) == []

    def test_complete_missing_session(self, db_session):
        result = ScoreResult(correct_count=0, total_questions=0, score=0.0)
        with pytest.raises(NotFound):
            QuizSessionRepository(db_session).complete(99, result)


def test_two_writers_complete_once(tmp_path):
    """Two connections race to complete the same session; one wins."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'race.db'}")
    init_db(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    with session_scope(factory) as setup:
        pack_id = KnowledgeRepository(setup).create_content_pack("Race")
        session_id = QuizSessionRepository(setup).create_session(1, pack_id, 0).id

    result = ScoreResult(correct_count=0, total_questions=0, score=0.0)
    first, second = factory(), factory()
    try:
        QuizSessionRepository(first).complete(session_id, result)
        first.commit()

        with pytest.raises(AlreadyCompleted):
            QuizSessionRepository(second).complete(session_id, result)
    finally:
        first.close()
        second.close()
        engine.dispose()
