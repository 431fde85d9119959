"""Metadata preview endpoint."""

from fastapi import APIRouter, Depends, Response

from readinglist.api.deps import get_metadata_extractor
from readinglist.config import Settings, get_settings
from readinglist.schemas.metadata import ErrorResponse, MetadataRequest, MetadataResponse
from readinglist.services.metadata_extractor import MetadataExtractor

router = APIRouter()


@router.post(
    "",
    response_model=MetadataResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def fetch_article_metadata(
    request: MetadataRequest,
    response: Response,
    extractor: MetadataExtractor = Depends(get_metadata_extractor),
    settings: Settings = Depends(get_settings),
) -> MetadataResponse:
    """
    Read title, description and image from a page before saving it.

    The title falls back to the URL itself when the page has none.
    """
    url = str(request.url)
    metadata = await extractor.extract(url)

    response.headers["Cache-Control"] = (
        f"public, s-maxage={settings.metadata_cache_max_age}, "
        f"stale-while-revalidate={settings.metadata_stale_while_revalidate}"
    )
    return MetadataResponse(
        title=metadata.title_or(url),
        description=metadata.description,
        image=metadata.image,
    )
