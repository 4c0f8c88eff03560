"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from nuquiz.core.paths import InMemoryNodeLookup  # noqa: E402
from nuquiz.core.types import KnowledgeNode, NodeType  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory SQLite)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def cardiology_pack_file(project_root):
    return project_root / "data" / "cardiology_pack.json"


def _node(id, parent_id, name, label, type, order_index=0, content_pack_id=1):
    return KnowledgeNode(
        id=id,
        parent_id=parent_id,
        name=name,
        label=label,
        type=NodeType(type),
        content_pack_id=content_pack_id,
        order_index=order_index,
    )


# Same tree as data/cardiology_pack.json
CARDIOLOGY_TREE = [
    (1, None, "cardiology", "Cardiology", "topic", 1),
    (2, 1, "chf", "Congestive Heart Failure", "topic", 1),
    (10, 2, "left_sided", "Left-sided CHF", "category", 1),
    (11, 2, "right_sided", "Right-sided CHF", "category", 2),
    (100, 10, "symptoms", "Symptoms", "attribute", 1),
    (101, 10, "causes", "Causes", "attribute", 2),
    (110, 11, "symptoms", "Symptoms", "attribute", 1),
    (111, 11, "causes", "Causes", "attribute", 2),
    (1001, 100, "pulmonary_edema", "Pulmonary edema", "fact", 1),
    (1002, 100, "dyspnea", "Dyspnea", "fact", 2),
    (1003, 100, "orthopnea", "Orthopnea", "fact", 3),
    (1011, 101, "hypertension", "Hypertension", "fact", 1),
    (1012, 101, "aortic_stenosis", "Aortic stenosis", "fact", 2),
    (2001, 110, "peripheral_edema", "Peripheral edema", "fact", 1),
    (2002, 110, "jvd", "Jugular vein distention", "fact", 2),
    (2003, 110, "hepatomegaly", "Hepatomegaly", "fact", 3),
    (2011, 111, "left_sided_failure", "Left-sided heart failure", "fact", 1),
    (2012, 111, "pulmonary_hypertension", "Pulmonary hypertension", "fact", 2),
]


@pytest.fixture
def cardiology_nodes():
    """Flat node list for a small two-category content pack."""
    return [_node(*row) for row in CARDIOLOGY_TREE]


@pytest.fixture
def cardiology_lookup(cardiology_nodes):
    return InMemoryNodeLookup(cardiology_nodes)


# ========================================
# Database fixtures (in-memory SQLite)
# ========================================


@pytest.fixture
def db_engine():
    from nuquiz.db.database import create_db_engine, init_db

    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    factory = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def seeded_pack(db_session):
    """
    Insert the cardiology tree through KnowledgeRepository.

    Returns (content_pack_id, {name_path: node}) where name_path is the
    fixture id from CARDIOLOGY_TREE.
    """
    from nuquiz.db.repositories import KnowledgeRepository

    repo = KnowledgeRepository(db_session)
    pack_id = repo.create_content_pack("Cardiology", "CHF left vs right")

    created = {}
    for fixture_id, parent_fixture_id, name, label, node_type, order_index in CARDIOLOGY_TREE:
        parent = created.get(parent_fixture_id)
        created[fixture_id] = repo.create(
            name=name,
            label=label,
            node_type=node_type,
            content_pack_id=pack_id,
            parent_id=parent.id if parent else None,
            order_index=order_index,
        )
    db_session.flush()
    return pack_id, created
