"""Models package - SQLModel database models."""

from readinglist.models.article import Article, ArticleStatus, StatusFilter

__all__ = ["Article", "ArticleStatus", "StatusFilter"]
