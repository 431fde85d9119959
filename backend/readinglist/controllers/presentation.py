"""Presentation controller for the reading-list view.

Binds the active status tab, the current page and the search box to the
article store. Listing and search requests are tagged with the state they
were issued for; a response that arrives after the state moved on is
dropped instead of rendered.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from readinglist.config import Settings, get_settings
from readinglist.constants.tabs import DEFAULT_TAB, NO_SEARCH_RESULTS_MESSAGE, StatusTab, tab_for
from readinglist.core.debounce import Debouncer, TimerScheduler
from readinglist.core.pagination import DEFAULT_RADIUS, PageItem, compute_window, slice_page, total_pages
from readinglist.errors import ReadingListError
from readinglist.models import ArticleStatus, StatusFilter
from readinglist.schemas.article import ArticleResponse
from readinglist.services.article_store import ArticleStore, coerce_status_filter

logger = logging.getLogger(__name__)

# Search debounce delay in seconds
SEARCH_DEBOUNCE_DELAY = 0.3
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class Idle:
    """Nothing requested yet (search box empty)."""


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Empty:
    message: str


@dataclass(frozen=True)
class Loaded:
    articles: tuple[ArticleResponse, ...]


@dataclass(frozen=True)
class Failed:
    message: str


RenderState = Idle | Loading | Empty | Loaded | Failed


@dataclass(frozen=True)
class _ListingTicket:
    generation: int
    tab: StatusFilter
    page: int


class PresentationController:
    """
    State machine over ``(active tab, current page, search query)``.

    Switching tabs resets to page 1 and reloads the listing. Search input is
    debounced and an empty query never reaches the store. Successful updates
    and deletes reload the active listing and the current search.
    """

    def __init__(
        self,
        store: ArticleStore,
        owner_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        radius: int = DEFAULT_RADIUS,
        search_delay: float = SEARCH_DEBOUNCE_DELAY,
        scheduler: TimerScheduler | None = None,
        initial_tab: StatusFilter = DEFAULT_TAB,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.store = store
        self.owner_id = owner_id
        self.page_size = page_size
        self.radius = radius

        self._active_tab = initial_tab
        self._current_page = 1
        self._search_query = ""
        self._listing: RenderState = Idle()
        self._articles: tuple[ArticleResponse, ...] = ()
        self._search: RenderState = Idle()
        self._listing_generation = 0
        self._search_generation = 0
        self._busy_ids: set[UUID] = set()
        self._mutation_error: str | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._closed = False

        self._query_debouncer: Debouncer[str] = Debouncer(
            "",
            search_delay,
            on_change=self._on_debounced_query,
            scheduler=scheduler,
        )

    @classmethod
    def from_settings(
        cls,
        store: ArticleStore,
        owner_id: str,
        settings: Settings | None = None,
        scheduler: TimerScheduler | None = None,
    ) -> "PresentationController":
        """Build a controller from the presentation settings."""
        settings = settings or get_settings()
        return cls(
            store,
            owner_id,
            page_size=settings.page_size,
            radius=settings.pagination_radius,
            search_delay=settings.search_debounce_seconds,
            scheduler=scheduler,
        )

    # State

    @property
    def active_tab(self) -> StatusFilter:
        return self._active_tab

    @property
    def active_tab_info(self) -> StatusTab:
        return tab_for(self._active_tab)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def search_query(self) -> str:
        """The raw text in the search box."""
        return self._search_query

    @property
    def debounced_query(self) -> str:
        return self._query_debouncer.value

    @property
    def listing(self) -> RenderState:
        return self._listing

    @property
    def search_results(self) -> RenderState:
        return self._search

    @property
    def busy_ids(self) -> frozenset[UUID]:
        return frozenset(self._busy_ids)

    def is_busy(self, article_id: UUID) -> bool:
        return article_id in self._busy_ids

    @property
    def mutation_error(self) -> str | None:
        """Message of the last failed submit/update/delete, shown to the user."""
        return self._mutation_error

    @property
    def pending_timers(self) -> int:
        return self._query_debouncer.scheduler.pending_count

    # Pagination

    @property
    def total_pages(self) -> int:
        """Page count of the last loaded listing."""
        return total_pages(len(self._articles), self.page_size)

    @property
    def page_window(self) -> list[PageItem]:
        return compute_window(self._current_page, self.total_pages, self.radius)

    @property
    def visible_articles(self) -> list[ArticleResponse]:
        if not isinstance(self._listing, Loaded):
            return []
        return slice_page(self._articles, self._current_page, self.page_size)

    @property
    def can_go_previous(self) -> bool:
        return self._current_page > 1

    @property
    def can_go_next(self) -> bool:
        return self._current_page < self.total_pages

    # Listing

    async def open(self) -> None:
        """Load the initial listing."""
        await self._load_listing()

    async def select_tab(self, tab: StatusFilter | str) -> None:
        tab = coerce_status_filter(tab)
        self._active_tab = tab
        self._current_page = 1
        self._articles = ()
        await self._load_listing()

    async def go_to_page(self, page: int) -> None:
        """Show ``page``, clamped to the pages that exist."""
        if self.total_pages:
            page = min(page, self.total_pages)
        self._current_page = max(1, page)
        await self._load_listing()

    async def next_page(self) -> None:
        if self.can_go_next:
            await self.go_to_page(self._current_page + 1)

    async def previous_page(self) -> None:
        if self.can_go_previous:
            await self.go_to_page(self._current_page - 1)

    async def refresh(self) -> None:
        """Reload the active listing and, if one is shown, the search results."""
        await self._load_listing()
        if self.debounced_query.strip():
            await self._run_search(self.debounced_query)

    async def _load_listing(self) -> None:
        if self._closed:
            return
        self._listing_generation += 1
        ticket = _ListingTicket(self._listing_generation, self._active_tab, self._current_page)
        self._listing = Loading()

        try:
            articles = await self.store.list_by_status(self.owner_id, ticket.tab)
        except ReadingListError as e:
            if self._is_current(ticket):
                self._listing = Failed(e.message)
                self._articles = ()
            return

        if not self._is_current(ticket):
            logger.debug("Discarding stale listing for %s page %d", ticket.tab.value, ticket.page)
            return

        self._articles = tuple(articles)
        if not articles:
            self._listing = Empty(tab_for(ticket.tab).empty_message)
            self._current_page = 1
            return

        self._listing = Loaded(self._articles)
        last_page = total_pages(len(articles), self.page_size)
        if self._current_page > last_page:
            self._current_page = last_page

    def _is_current(self, ticket: _ListingTicket) -> bool:
        return (
            not self._closed
            and ticket.generation == self._listing_generation
            and ticket.tab is self._active_tab
            and ticket.page == self._current_page
        )

    # Search

    def set_search_query(self, query: str) -> None:
        """Feed a keystroke's worth of search text through the debouncer."""
        if self._closed:
            return
        self._search_query = query
        self._query_debouncer.push(query)

    def submit_search(self) -> None:
        """Search for the current text now instead of waiting out the debounce (Enter key)."""
        if self._closed:
            return
        self._query_debouncer.flush()

    def close_search(self) -> None:
        """Clear the search box and its results."""
        self._search_query = ""
        self._query_debouncer.reset("")
        self._search_generation += 1
        self._search = Idle()

    def _on_debounced_query(self, query: str) -> None:
        if not query.strip():
            # Nothing to search for; never scan the whole list
            self._search_generation += 1
            self._search = Idle()
            return
        self._track_task(self._run_search(query))

    async def _run_search(self, query: str) -> None:
        if self._closed:
            return
        self._search_generation += 1
        generation = self._search_generation

        if not query.strip():
            self._search = Idle()
            return

        self._search = Loading()
        try:
            results = await self.store.search(self.owner_id, query)
        except ReadingListError as e:
            if self._is_current_search(generation, query):
                self._search = Failed(e.message)
            return

        if not self._is_current_search(generation, query):
            logger.debug("Discarding stale search results for %r", query)
            return

        if results:
            self._search = Loaded(tuple(results))
        else:
            self._search = Empty(NO_SEARCH_RESULTS_MESSAGE)

    def _is_current_search(self, generation: int, query: str) -> bool:
        return (
            not self._closed
            and generation == self._search_generation
            and query == self._query_debouncer.value
        )

    # Mutations

    async def submit_url(
        self,
        url: str,
        status: ArticleStatus | str = ArticleStatus.WANT_TO_READ,
        memo: str | None = None,
    ) -> ArticleResponse | None:
        """Save a new article and reload the listing."""
        self._mutation_error = None
        try:
            article = await self.store.create(self.owner_id, url, status, memo)
        except ReadingListError as e:
            self._mutation_error = e.message
            return None
        await self.refresh()
        return article

    async def update_article(
        self,
        article_id: UUID,
        memo: str | None = None,
        status: ArticleStatus | str | None = None,
    ) -> ArticleResponse | None:
        self._mutation_error = None
        self._busy_ids.add(article_id)
        try:
            article = await self.store.update(self.owner_id, article_id, memo=memo, status=status)
        except ReadingListError as e:
            self._mutation_error = e.message
            return None
        finally:
            self._busy_ids.discard(article_id)
        await self.refresh()
        return article

    async def delete_article(self, article_id: UUID) -> bool:
        self._mutation_error = None
        self._busy_ids.add(article_id)
        try:
            await self.store.delete(self.owner_id, article_id)
        except ReadingListError as e:
            self._mutation_error = e.message
            return False
        finally:
            self._busy_ids.discard(article_id)
        await self.refresh()
        return True

    # Lifecycle

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    async def settle(self) -> None:
        """Wait for background searches to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def close(self) -> None:
        """Tear down: cancel the pending search timer and drop late responses."""
        self._query_debouncer.close()
        self._closed = True
        await self.settle()
