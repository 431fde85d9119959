"""Article store - owner-scoped article operations with cached listings."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from readinglist.core.urls import normalize_url
from readinglist.db.articles import ArticleRepository
from readinglist.errors import FetchError, NotFoundError, UnauthorizedError, ValidationError
from readinglist.models import Article, ArticleStatus, StatusFilter
from readinglist.schemas.article import ArticleResponse
from readinglist.services.listing_cache import ListingCache
from readinglist.services.metadata_extractor import MetadataExtractor, PageMetadata

logger = logging.getLogger(__name__)

ArticleList = tuple[ArticleResponse, ...]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_owner(owner_id: str | None) -> str:
    if not owner_id or not str(owner_id).strip():
        raise UnauthorizedError()
    return str(owner_id)


def _coerce_status(status: ArticleStatus | str) -> ArticleStatus:
    try:
        return ArticleStatus(getattr(status, "value", status))
    except ValueError as e:
        raise ValidationError(f"Invalid status: {status}") from e


def coerce_status_filter(status: StatusFilter | ArticleStatus | str) -> StatusFilter:
    """Parse a listing filter, raising ValidationError for unknown values."""
    try:
        return StatusFilter(getattr(status, "value", status))
    except ValueError as e:
        raise ValidationError(f"Invalid status: {status}") from e


def _coerce_id(article_id: UUID | str) -> UUID:
    if isinstance(article_id, UUID):
        return article_id
    try:
        return UUID(str(article_id))
    except ValueError as e:
        raise ValidationError(f"Invalid article id: {article_id}") from e


class ArticleStore:
    """
    Owns every owner's articles.

    Articles only change through create, update and delete, and each of
    them invalidates the owner's cached listings and search results once it
    succeeds.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        extractor: MetadataExtractor,
        cache: ListingCache[ArticleList],
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.extractor = extractor
        self.cache = cache
        self.clock = clock

    async def fetch_metadata(self, url: str) -> PageMetadata:
        """Extract page metadata, degrading to empty metadata on fetch failure."""
        try:
            return await self.extractor.extract(url)
        except FetchError as e:
            logger.warning("Metadata fetch failed for %s (%s): %s", url, e.kind, e.message)
            return PageMetadata.empty()

    async def create(
        self,
        owner_id: str,
        url: str,
        status: ArticleStatus | str = ArticleStatus.WANT_TO_READ,
        memo: str | None = None,
    ) -> ArticleResponse:
        """
        Save a new article for ``owner_id``.

        Metadata extraction failures do not block creation; the article is
        stored with null metadata fields instead.
        """
        owner_id = _require_owner(owner_id)
        url = normalize_url(url)
        status = _coerce_status(status)

        metadata = await self.fetch_metadata(url)
        if metadata.is_empty:
            logger.info("Saving %s without page metadata", url)

        article = Article(
            owner_id=owner_id,
            url=url,
            title=metadata.title,
            description=metadata.description,
            image=metadata.image,
            memo=memo or "",
            status=status,
            created_at=self.clock(),
        )
        article = await self.repository.add(article)
        self.cache.invalidate(owner_id)
        return ArticleResponse.model_validate(article)

    async def list_by_status(
        self, owner_id: str, status: StatusFilter | ArticleStatus | str = StatusFilter.ALL
    ) -> list[ArticleResponse]:
        """Articles with ``status`` (or all for ``ALL``), newest first."""
        owner_id = _require_owner(owner_id)
        status_filter = coerce_status_filter(status)
        key = ("status", status_filter)

        cached = self.cache.get(owner_id, key)
        if cached is not None:
            return list(cached)

        version = self.cache.version(owner_id)
        articles = await self.repository.list_by_status(owner_id, status_filter.as_status())
        results = tuple(ArticleResponse.model_validate(a) for a in articles)
        self.cache.put(owner_id, key, results, version=version)
        return list(results)

    async def search(self, owner_id: str, query: str | None) -> list[ArticleResponse]:
        """
        Case-insensitive substring search over url, title and memo.

        An empty query returns no results rather than every article.
        """
        owner_id = _require_owner(owner_id)
        if query is None:
            return []
        if not isinstance(query, str):
            raise ValidationError("Search query must be a string")
        needle = query.strip()
        if not needle:
            return []

        # Same folding as the repositories apply when matching
        key = ("search", needle.lower())
        cached = self.cache.get(owner_id, key)
        if cached is not None:
            return list(cached)

        version = self.cache.version(owner_id)
        articles = await self.repository.search(owner_id, needle)
        results = tuple(ArticleResponse.model_validate(a) for a in articles)
        self.cache.put(owner_id, key, results, version=version)
        return list(results)

    async def get(self, owner_id: str, article_id: UUID | str) -> ArticleResponse:
        owner_id = _require_owner(owner_id)
        article = await self._get_owned(owner_id, _coerce_id(article_id))
        return ArticleResponse.model_validate(article)

    async def update(
        self,
        owner_id: str,
        article_id: UUID | str,
        memo: str | None = None,
        status: ArticleStatus | str | None = None,
    ) -> ArticleResponse:
        """Update memo and/or status. ``None`` leaves a field unchanged."""
        owner_id = _require_owner(owner_id)
        article_id = _coerce_id(article_id)
        new_status = _coerce_status(status) if status is not None else None

        article = await self._get_owned(owner_id, article_id)
        if memo is not None:
            article.memo = memo
        if new_status is not None:
            article.status = new_status

        article = await self.repository.save(article)
        self.cache.invalidate(owner_id)
        return ArticleResponse.model_validate(article)

    async def delete(self, owner_id: str, article_id: UUID | str) -> None:
        """Remove an article for good."""
        owner_id = _require_owner(owner_id)
        article = await self._get_owned(owner_id, _coerce_id(article_id))
        await self.repository.delete(article)
        self.cache.invalidate(owner_id)

    async def _get_owned(self, owner_id: str, article_id: UUID) -> Article:
        article = await self.repository.get(owner_id, article_id)
        if article is None:
            raise NotFoundError(f"Article {article_id} not found")
        return article
