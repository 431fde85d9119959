"""Article record stores.

Both stores expose the same owner-scoped operations: insert, fetch one,
filtered listing newest first, substring search, update and delete. Storage
failures surface as ``PersistenceError``.
"""

from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from readinglist.errors import PersistenceError
from readinglist.models import Article, ArticleStatus


class ArticleRepository(Protocol):
    async def add(self, article: Article) -> Article: ...

    async def get(self, owner_id: str, article_id: UUID) -> Article | None: ...

    async def list_by_status(self, owner_id: str, status: ArticleStatus | None = None) -> list[Article]: ...

    async def search(self, owner_id: str, query: str) -> list[Article]: ...

    async def save(self, article: Article) -> Article: ...

    async def delete(self, article: Article) -> None: ...


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _copy(article: Article) -> Article:
    return Article(**article.model_dump())


def _newest_first(articles: list[Article]) -> list[Article]:
    return sorted(articles, key=lambda a: (_sort_time(a.created_at), str(a.id)), reverse=True)


def _sort_time(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; compare everything as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class SQLArticleRepository:
    """Article store backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, article: Article) -> Article:
        try:
            self.session.add(article)
            await self.session.commit()
            await self.session.refresh(article)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to save the article") from e
        return article

    async def get(self, owner_id: str, article_id: UUID) -> Article | None:
        query = select(Article).where(Article.id == article_id, Article.owner_id == owner_id)
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to load the article") from e
        return result.scalar_one_or_none()

    async def list_by_status(self, owner_id: str, status: ArticleStatus | None = None) -> list[Article]:
        query = select(Article).where(Article.owner_id == owner_id)
        if status is not None:
            query = query.where(Article.status == status)
        query = query.order_by(col(Article.created_at).desc(), col(Article.id).desc())
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to load articles") from e
        return list(result.scalars().all())

    async def search(self, owner_id: str, query: str) -> list[Article]:
        pattern = f"%{_escape_like(query)}%"
        statement = (
            select(Article)
            .where(Article.owner_id == owner_id)
            .where(
                or_(
                    col(Article.url).ilike(pattern, escape="\\"),
                    col(Article.title).ilike(pattern, escape="\\"),
                    col(Article.memo).ilike(pattern, escape="\\"),
                )
            )
            .order_by(col(Article.created_at).desc(), col(Article.id).desc())
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to search articles") from e
        return list(result.scalars().all())

    async def save(self, article: Article) -> Article:
        return await self.add(article)

    async def delete(self, article: Article) -> None:
        try:
            await self.session.delete(article)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to delete the article") from e


class InMemoryArticleRepository:
    """Process-local article store. Data is lost on restart."""

    def __init__(self) -> None:
        self._articles: dict[UUID, Article] = {}

    async def add(self, article: Article) -> Article:
        self._articles[article.id] = _copy(article)
        return article

    async def get(self, owner_id: str, article_id: UUID) -> Article | None:
        article = self._articles.get(article_id)
        if article is None or article.owner_id != owner_id:
            return None
        return _copy(article)

    async def list_by_status(self, owner_id: str, status: ArticleStatus | None = None) -> list[Article]:
        articles = [
            _copy(a)
            for a in self._articles.values()
            if a.owner_id == owner_id and (status is None or a.status == status)
        ]
        return _newest_first(articles)

    async def search(self, owner_id: str, query: str) -> list[Article]:
        needle = query.lower()
        articles = [
            _copy(a)
            for a in self._articles.values()
            if a.owner_id == owner_id
            and any(needle in (field or "").lower() for field in (a.url, a.title, a.memo))
        ]
        return _newest_first(articles)

    async def save(self, article: Article) -> Article:
        if article.id not in self._articles:
            raise PersistenceError("Failed to save the article")
        self._articles[article.id] = _copy(article)
        return article

    async def delete(self, article: Article) -> None:
        self._articles.pop(article.id, None)

    def clear(self) -> None:
        self._articles.clear()

    def __len__(self) -> int:
        return len(self._articles)


# Singleton instance for the in-memory backend
memory_repository = InMemoryArticleRepository()
