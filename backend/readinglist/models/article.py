"""Article model for the per-owner reading list."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from readinglist.core.urls import MAX_URL_LENGTH


class ArticleStatus(str, Enum):
    """Reading progress of a saved article."""

    WANT_TO_READ = "WANT_TO_READ"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class StatusFilter(str, Enum):
    """Listing filter: one of the statuses, or every article."""

    WANT_TO_READ = "WANT_TO_READ"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ALL = "ALL"

    def as_status(self) -> ArticleStatus | None:
        """The status to filter on, or None for ``ALL``."""
        if self is StatusFilter.ALL:
            return None
        return ArticleStatus(self.value)


class Article(SQLModel, table=True):
    """
    Saved article.
    Metadata fields are captured once at creation and may be missing when the
    page could not be fetched.
    """

    __tablename__ = "articles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: str = Field(index=True, max_length=255)

    url: str = Field(max_length=MAX_URL_LENGTH)

    # Page metadata
    title: str | None = Field(default=None)
    description: str | None = Field(default=None)
    image: str | None = Field(default=None, max_length=MAX_URL_LENGTH)

    # User data
    memo: str = Field(default="")
    status: ArticleStatus = Field(default=ArticleStatus.WANT_TO_READ, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
