"""Metadata preview schemas."""

from pydantic import BaseModel, Field, HttpUrl


class MetadataRequest(BaseModel):
    url: HttpUrl = Field(..., description="Page to read metadata from")


class MetadataResponse(BaseModel):
    """Page metadata; any field may be null."""

    title: str | None = None
    description: str | None = None
    image: str | None = None


class ErrorDetail(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Error envelope used by every failing endpoint."""

    error: ErrorDetail
