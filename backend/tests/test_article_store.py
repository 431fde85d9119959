"""Tests for the article store."""

import asyncio
from uuid import uuid4

import pytest

from readinglist.errors import (
    FetchNetworkError,
    FetchStatusError,
    MarkupError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
)
from readinglist.models import ArticleStatus, StatusFilter
from readinglist.services.article_store import ArticleStore
from readinglist.services.listing_cache import ListingCache
from tests.conftest import CountingRepository, StepClock, StubExtractor

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


class TestCreate:
    """Saving articles."""

    def test_saves_with_extracted_metadata(self, store, extractor) -> None:
        article = asyncio.run(store.create(OWNER, "https://example.com/post"))

        assert article.owner_id == OWNER
        assert article.url == "https://example.com/post"
        assert article.title == "An Article"
        assert article.description == "About things"
        assert article.image == "https://example.com/a.png"
        assert article.status == ArticleStatus.WANT_TO_READ
        assert article.memo == ""
        assert extractor.calls == ["https://example.com/post"]

    @pytest.mark.parametrize(
        "error",
        [
            FetchNetworkError("unreachable"),
            FetchStatusError(503, "Service Unavailable"),
            MarkupError("Page body is empty"),
        ],
        ids=["network", "status", "markup"],
    )
    def test_fetch_failure_still_saves(self, repository, cache, error) -> None:
        failing = StubExtractor(error=error)
        store = ArticleStore(repository, failing, cache, clock=StepClock())

        article = asyncio.run(store.create(OWNER, "https://down.example.com/"))

        assert article.title is None
        assert article.description is None
        assert article.image is None
        assert article.display_title == "https://down.example.com/"
        assert len(repository) == 1

    def test_keeps_status_and_memo(self, store) -> None:
        article = asyncio.run(
            store.create(OWNER, "https://example.com/", status="COMPLETED", memo="great read")
        )

        assert article.status == ArticleStatus.COMPLETED
        assert article.memo == "great read"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "not a url",
            "example.com/post",
            "ftp://example.com/x",
            "https://example.com/" + "a" * 2100,
        ],
    )
    def test_invalid_url_is_rejected_without_fetching(self, store, extractor, url) -> None:
        with pytest.raises(ValidationError):
            asyncio.run(store.create(OWNER, url))

        assert extractor.calls == []

    def test_all_is_not_a_status(self, store) -> None:
        with pytest.raises(ValidationError):
            asyncio.run(store.create(OWNER, "https://example.com/", status="ALL"))

    def test_requires_an_owner(self, store) -> None:
        with pytest.raises(UnauthorizedError):
            asyncio.run(store.create("", "https://example.com/"))


class TestListing:
    """Listing by status."""

    def test_newest_first_and_filtered(self, store) -> None:
        async def run():
            first = await store.create(OWNER, "https://example.com/1")
            second = await store.create(OWNER, "https://example.com/2", status="COMPLETED")
            third = await store.create(OWNER, "https://example.com/3")
            everything = await store.list_by_status(OWNER, StatusFilter.ALL)
            to_read = await store.list_by_status(OWNER, StatusFilter.WANT_TO_READ)
            read = await store.list_by_status(OWNER, "COMPLETED")
            in_progress = await store.list_by_status(OWNER, ArticleStatus.IN_PROGRESS)
            return (first, second, third), everything, to_read, read, in_progress

        (first, second, third), everything, to_read, read, in_progress = asyncio.run(run())

        assert [a.id for a in everything] == [third.id, second.id, first.id]
        assert [a.id for a in to_read] == [third.id, first.id]
        assert [a.id for a in read] == [second.id]
        assert in_progress == []

    def test_owners_are_isolated(self, store) -> None:
        async def run():
            mine = await store.create(OWNER, "https://example.com/mine")
            await store.create(OTHER_OWNER, "https://example.com/theirs")
            return mine, await store.list_by_status(OWNER)

        mine, listed = asyncio.run(run())

        assert [a.id for a in listed] == [mine.id]

    def test_invalid_filter(self, store) -> None:
        with pytest.raises(ValidationError):
            asyncio.run(store.list_by_status(OWNER, "DONE"))

    def test_second_read_is_served_from_cache(self, store, repository) -> None:
        async def run():
            await store.create(OWNER, "https://example.com/1")
            await store.list_by_status(OWNER, StatusFilter.ALL)
            await store.list_by_status(OWNER, StatusFilter.ALL)

        asyncio.run(run())

        assert repository.list_calls == 1

    def test_mutations_invalidate_cached_listings(self, store, repository) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/1")
            before = await store.list_by_status(OWNER, StatusFilter.COMPLETED)
            await store.update(OWNER, article.id, status=ArticleStatus.COMPLETED)
            after_update = await store.list_by_status(OWNER, StatusFilter.COMPLETED)
            await store.delete(OWNER, article.id)
            after_delete = await store.list_by_status(OWNER, StatusFilter.COMPLETED)
            return before, after_update, after_delete

        before, after_update, after_delete = asyncio.run(run())

        assert before == []
        assert len(after_update) == 1
        assert after_delete == []
        assert repository.list_calls == 3


class TestSearch:
    """Keyword search over url, title and memo."""

    def test_matches_case_insensitively(self, repository, cache) -> None:
        extractor = StubExtractor()
        store = ArticleStore(repository, extractor, cache, clock=StepClock())

        async def run():
            by_url = await store.create(OWNER, "https://rust-lang.org/learn")
            by_memo = await store.create(OWNER, "https://example.com/a", memo="Compare with RUST")
            await store.create(OWNER, "https://example.com/b", memo="python notes")
            return by_url, by_memo, await store.search(OWNER, "Rust")

        by_url, by_memo, results = asyncio.run(run())

        assert [a.id for a in results] == [by_memo.id, by_url.id]

    def test_matches_title(self, store) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x")
            return article, await store.search(OWNER, "an ARTICLE")

        article, results = asyncio.run(run())

        assert [a.id for a in results] == [article.id]

    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_blank_query_returns_nothing(self, store, repository, query) -> None:
        async def run():
            await store.create(OWNER, "https://example.com/x")
            return await store.search(OWNER, query)

        assert asyncio.run(run()) == []
        assert repository.search_calls == 0

    def test_like_wildcards_are_literal(self, store) -> None:
        async def run():
            await store.create(OWNER, "https://example.com/plain")
            return await store.search(OWNER, "%")

        assert asyncio.run(run()) == []

    def test_results_are_invalidated_by_mutations(self, store, repository) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x", memo="kafka")
            first = await store.search(OWNER, "kafka")
            await store.search(OWNER, "KAFKA")
            await store.update(OWNER, article.id, memo="nothing here")
            second = await store.search(OWNER, "kafka")
            return first, second

        first, second = asyncio.run(run())

        assert len(first) == 1
        assert second == []
        assert repository.search_calls == 2

    def test_queries_matching_different_rows_do_not_share_a_cache_entry(self, store) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x", memo="Strasse guide")
            sharp_s = await store.search(OWNER, "straße")
            upper = await store.search(OWNER, "STRASSE")
            return article, sharp_s, upper

        article, sharp_s, upper = asyncio.run(run())

        assert sharp_s == []
        assert [a.id for a in upper] == [article.id]

    def test_distinct_queries_keep_the_cache_bounded(self, repository, extractor) -> None:
        cache: ListingCache = ListingCache(max_entries_per_owner=8)
        store = ArticleStore(repository, extractor, cache, clock=StepClock())

        async def run():
            for i in range(500):
                await store.search(OWNER, f"q{i}")

        asyncio.run(run())

        assert len(cache) == 8


class TestUpdateAndDelete:
    """Changing and removing articles."""

    def test_update_changes_only_given_fields(self, store) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x", memo="keep me")
            return await store.update(OWNER, article.id, status="IN_PROGRESS")

        updated = asyncio.run(run())

        assert updated.status == ArticleStatus.IN_PROGRESS
        assert updated.memo == "keep me"

    def test_update_memo(self, store) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x")
            await store.update(OWNER, article.id, memo="new memo")
            return await store.get(OWNER, article.id)

        assert asyncio.run(run()).memo == "new memo"

    def test_update_rejects_invalid_status(self, store) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x")
            await store.update(OWNER, article.id, status="ALL")

        with pytest.raises(ValidationError):
            asyncio.run(run())

    def test_missing_article(self, store) -> None:
        with pytest.raises(NotFoundError):
            asyncio.run(store.update(OWNER, uuid4(), memo="x"))
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete(OWNER, uuid4()))

    def test_other_owners_article_is_not_found(self, store) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x")
            await store.delete(OTHER_OWNER, article.id)

        with pytest.raises(NotFoundError):
            asyncio.run(run())

    def test_delete_removes_for_good(self, store, repository) -> None:
        async def run():
            article = await store.create(OWNER, "https://example.com/x")
            await store.delete(OWNER, article.id)
            await store.get(OWNER, article.id)

        with pytest.raises(NotFoundError):
            asyncio.run(run())
        assert len(repository) == 0

    def test_invalid_id(self, store) -> None:
        with pytest.raises(ValidationError):
            asyncio.run(store.get(OWNER, "not-a-uuid"))


class FailingSaveRepository(CountingRepository):
    async def save(self, article):
        raise PersistenceError("Failed to save the article")


class FailingAddRepository(CountingRepository):
    async def add(self, article):
        raise PersistenceError("Failed to save the article")


class TestPersistenceFailures:
    def test_failed_update_keeps_the_cache(self, extractor) -> None:
        repository = FailingSaveRepository()
        cache: ListingCache = ListingCache()
        store = ArticleStore(repository, extractor, cache, clock=StepClock())

        async def run():
            article = await store.create(OWNER, "https://example.com/x")
            await store.list_by_status(OWNER)
            version = cache.version(OWNER)
            with pytest.raises(PersistenceError):
                await store.update(OWNER, article.id, memo="x")
            return version

        version = asyncio.run(run())

        assert cache.version(OWNER) == version
        assert len(cache) == 1

    def test_failed_create_surfaces_and_keeps_the_cache(self, extractor) -> None:
        repository = FailingAddRepository()
        cache: ListingCache = ListingCache()
        store = ArticleStore(repository, extractor, cache, clock=StepClock())

        async def run():
            await store.list_by_status(OWNER)
            version = cache.version(OWNER)
            with pytest.raises(PersistenceError):
                await store.create(OWNER, "https://example.com/x")
            return version

        version = asyncio.run(run())

        assert cache.version(OWNER) == version
        assert len(cache) == 1
        assert len(repository) == 0
