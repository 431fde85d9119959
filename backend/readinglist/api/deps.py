"""Request-scoped dependencies: owner context, storage, extractor, store."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from readinglist.config import Settings, get_settings
from readinglist.db.articles import ArticleRepository, SQLArticleRepository, memory_repository
from readinglist.db.session import async_session
from readinglist.errors import UnauthorizedError
from readinglist.services.article_store import ArticleStore
from readinglist.services.listing_cache import listing_cache
from readinglist.services.metadata_extractor import MetadataExtractor


def get_owner_id(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Owner identifier supplied by the fronting auth layer."""
    owner_id = request.headers.get(settings.owner_header, "").strip()
    if not owner_id:
        raise UnauthorizedError()
    return owner_id


def get_metadata_extractor(request: Request) -> MetadataExtractor:
    """Extractor shared by every request; its HTTP client lives as long as the app."""
    return request.app.state.metadata_extractor


async def get_article_repository(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[ArticleRepository, None]:
    if settings.storage_backend == "memory":
        yield memory_repository
    else:
        async with async_session() as session:
            yield SQLArticleRepository(session)


def get_article_store(
    repository: ArticleRepository = Depends(get_article_repository),
    extractor: MetadataExtractor = Depends(get_metadata_extractor),
) -> ArticleStore:
    return ArticleStore(repository, extractor, listing_cache)
