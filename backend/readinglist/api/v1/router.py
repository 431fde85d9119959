"""API v1 main router - aggregates all endpoint routers."""

from fastapi import APIRouter

from readinglist.api.v1 import articles, metadata

api_router = APIRouter()

api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(metadata.router, prefix="/metadata", tags=["metadata"])
