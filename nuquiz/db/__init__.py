"""
Storage adapter for the quiz core.

The pure core never imports this package; services wire the repositories in.
"""

from nuquiz.db.database import create_db_engine, get_engine, init_db, session_scope
from nuquiz.db.repositories import KnowledgeRepository, QuizSessionRepository

__all__ = [
    "create_db_engine",
    "get_engine",
    "init_db",
    "session_scope",
    "KnowledgeRepository",
    "QuizSessionRepository",
]
