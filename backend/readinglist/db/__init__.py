"""Database connections and article stores."""

from readinglist.db.articles import (
    ArticleRepository,
    InMemoryArticleRepository,
    SQLArticleRepository,
    memory_repository,
)
from readinglist.db.session import async_session, engine, init_db

__all__ = [
    "ArticleRepository",
    "InMemoryArticleRepository",
    "SQLArticleRepository",
    "memory_repository",
    "async_session",
    "engine",
    "init_db",
]
