"""Shared fixtures: manual timer clock, stub metadata extractor, in-memory store."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from readinglist.db.articles import InMemoryArticleRepository
from readinglist.errors import FetchError
from readinglist.services.article_store import ArticleStore
from readinglist.services.listing_cache import ListingCache
from readinglist.services.metadata_extractor import PageMetadata


class ManualTimer:
    def __init__(self, scheduler: "ManualScheduler", due: float, callback: Callable[[], None]):
        self.scheduler = scheduler
        self.due = due
        self.callback = callback

    def cancel(self) -> None:
        if self in self.scheduler.timers:
            self.scheduler.timers.remove(self)


class ManualScheduler:
    """Timer scheduler driven by ``advance()`` instead of wall-clock time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    @property
    def pending_count(self) -> int:
        return len(self.timers)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = target


class StubExtractor:
    """Stands in for MetadataExtractor; returns canned metadata or raises."""

    def __init__(self, metadata: PageMetadata | None = None, error: FetchError | None = None):
        self.metadata = metadata or PageMetadata(
            title="An Article", description="About things", image="https://example.com/a.png"
        )
        self.error = error
        self.calls: list[str] = []

    async def extract(self, url: str) -> PageMetadata:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.metadata

    async def close(self) -> None:
        pass


class CountingRepository(InMemoryArticleRepository):
    """In-memory repository that counts read queries."""

    def __init__(self) -> None:
        super().__init__()
        self.list_calls = 0
        self.search_calls = 0

    async def list_by_status(self, owner_id, status=None):
        self.list_calls += 1
        return await super().list_by_status(owner_id, status)

    async def search(self, owner_id, query):
        self.search_calls += 1
        return await super().search(owner_id, query)


class StepClock:
    """Returns strictly increasing timestamps, one minute apart."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def extractor() -> StubExtractor:
    return StubExtractor()


@pytest.fixture
def repository() -> CountingRepository:
    return CountingRepository()


@pytest.fixture
def cache() -> ListingCache:
    return ListingCache()


@pytest.fixture
def store(repository, extractor, cache) -> ArticleStore:
    return ArticleStore(repository, extractor, cache, clock=StepClock())
