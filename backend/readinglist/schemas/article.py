"""Article schemas for API request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, computed_field, field_validator

from readinglist.models.article import ArticleStatus, StatusFilter


class ArticleCreate(BaseModel):
    """Schema for saving a new article."""

    url: HttpUrl = Field(..., description="URL of the article to save")
    status: ArticleStatus = Field(default=ArticleStatus.WANT_TO_READ)
    memo: str | None = Field(default=None, max_length=10000)


class ArticleUpdate(BaseModel):
    """Schema for updating an article. Omitted fields are left unchanged."""

    memo: str | None = Field(default=None, max_length=10000)
    status: ArticleStatus | None = None


class ArticleResponse(BaseModel):
    """Schema for article responses."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    owner_id: str
    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None
    memo: str = ""
    status: ArticleStatus
    created_at: datetime

    @field_validator("memo", mode="before")
    @classmethod
    def _memo_floor(cls, value: str | None) -> str:
        return value or ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_title(self) -> str:
        """Title to render; falls back to the URL when the page had none."""
        return self.title or self.url


class ArticleListResponse(BaseModel):
    """Schema for article list responses, optionally one page of them."""

    articles: list[ArticleResponse]
    status: StatusFilter
    total: int
    page: int | None = None
    page_size: int | None = None
    total_pages: int = 0
    pages: list[int | None] = Field(
        default_factory=list,
        description="Page window; null marks an elided run of pages",
    )


class SearchResponse(BaseModel):
    """Schema for keyword search results."""

    query: str
    articles: list[ArticleResponse]
    total: int
