"""Articles API endpoints, scoped to the requesting owner."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from readinglist.api.deps import get_article_store, get_owner_id
from readinglist.config import Settings, get_settings
from readinglist.core.pagination import ELLIPSIS, compute_window, slice_page, total_pages
from readinglist.models import StatusFilter
from readinglist.schemas.article import (
    ArticleCreate,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdate,
    SearchResponse,
)
from readinglist.schemas.metadata import ErrorResponse
from readinglist.services.article_store import ArticleStore

router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    status_filter: StatusFilter = Query(default=StatusFilter.ALL, alias="status"),
    page: int | None = Query(default=None, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=100),
    owner_id: str = Depends(get_owner_id),
    store: ArticleStore = Depends(get_article_store),
    settings: Settings = Depends(get_settings),
) -> ArticleListResponse:
    """
    List the owner's articles, newest first.

    - status: one of the three statuses, or ALL
    - page: when given, return only that page (1-based)
    - page_size: articles per page (defaults to the configured page size)
    """
    articles = await store.list_by_status(owner_id, status_filter)
    size = page_size or settings.page_size
    page_count = total_pages(len(articles), size)

    if page is not None:
        window = compute_window(page, page_count, settings.pagination_radius)
        articles_out = slice_page(articles, page, size)
    else:
        window = []
        articles_out = articles

    return ArticleListResponse(
        articles=articles_out,
        status=status_filter,
        total=len(articles),
        page=page,
        page_size=size if page is not None else None,
        total_pages=page_count,
        pages=[None if item is ELLIPSIS else item for item in window],
    )


@router.get("/search", response_model=SearchResponse)
async def search_articles(
    q: str = Query(default="", description="Matches url, title and memo"),
    owner_id: str = Depends(get_owner_id),
    store: ArticleStore = Depends(get_article_store),
) -> SearchResponse:
    """Case-insensitive keyword search. An empty query returns nothing."""
    articles = await store.search(owner_id, q)
    return SearchResponse(query=q, articles=articles, total=len(articles))


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: UUID,
    owner_id: str = Depends(get_owner_id),
    store: ArticleStore = Depends(get_article_store),
) -> ArticleResponse:
    """Get a specific article by ID."""
    return await store.get(owner_id, article_id)


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    article_in: ArticleCreate,
    owner_id: str = Depends(get_owner_id),
    store: ArticleStore = Depends(get_article_store),
) -> ArticleResponse:
    """
    Save an article.

    Page metadata is fetched first; if that fails the article is still saved
    with empty metadata.
    """
    return await store.create(
        owner_id,
        str(article_in.url),
        status=article_in.status,
        memo=article_in.memo,
    )


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: UUID,
    article_in: ArticleUpdate,
    owner_id: str = Depends(get_owner_id),
    store: ArticleStore = Depends(get_article_store),
) -> ArticleResponse:
    """Update an article's memo and/or status."""
    return await store.update(
        owner_id,
        article_id,
        memo=article_in.memo,
        status=article_in.status,
    )


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: UUID,
    owner_id: str = Depends(get_owner_id),
    store: ArticleStore = Depends(get_article_store),
) -> None:
    """Delete an article. There is no undo."""
    await store.delete(owner_id, article_id)
