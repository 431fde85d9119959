"""Metadata Extractor - reads title, description and image from an article page."""

import logging
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from readinglist.config import Settings, get_settings
from readinglist.core.urls import MAX_URL_LENGTH, normalize_url
from readinglist.errors import FetchNetworkError, FetchStatusError, MarkupError

logger = logging.getLogger(__name__)

# First non-empty value wins, in this order
TITLE_KEYS = ("og:title", "twitter:title")
DESCRIPTION_KEYS = ("og:description", "twitter:description", "description")
IMAGE_KEYS = ("og:image", "twitter:image", "thumbnail")

MARKUP_CONTENT_TYPES = ("html", "xml", "text/")


@dataclass(frozen=True)
class PageMetadata:
    """Metadata read from a page. Every field is a non-empty string or None."""

    title: str | None = None
    description: str | None = None
    image: str | None = None

    @classmethod
    def empty(cls) -> "PageMetadata":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.description is None and self.image is None

    def title_or(self, fallback: str) -> str:
        return self.title if self.title is not None else fallback


def browser_headers(user_agent: str) -> dict[str, str]:
    """Request headers that look like a desktop browser."""
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


def _clean(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _meta_index(soup: BeautifulSoup) -> dict[str, str]:
    """Map lowercased ``property``/``name`` keys to the first non-empty content."""
    index: dict[str, str] = {}
    for tag in soup.find_all("meta"):
        content = _clean(tag.get("content"))
        if content is None:
            continue
        for attr in ("property", "name"):
            key = _clean(tag.get(attr))
            if key:
                index.setdefault(key.lower(), content)
    return index


def _first(index: dict[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        if key in index:
            return index[key]
    return None


def parse_metadata(html: str, base_url: str | None = None) -> PageMetadata:
    """
    Extract metadata from an HTML document.

    Args:
        html: Page markup
        base_url: Final page URL, used to resolve a relative image URL

    Returns:
        PageMetadata with missing fields set to None

    Raises:
        MarkupError: if the markup is empty or rejected by the parser
    """
    if not html or not html.strip():
        raise MarkupError("Page body is empty")

    try:
        soup = BeautifulSoup(html, "lxml")
    except ParserRejectedMarkup as e:
        raise MarkupError(f"Could not parse page markup: {e}") from e

    index = _meta_index(soup)

    title = _first(index, TITLE_KEYS)
    if title is None and soup.title is not None:
        title = _clean(soup.title.get_text(strip=True))

    image = _first(index, IMAGE_KEYS)
    if image is not None and base_url:
        image = urljoin(base_url, image)
    if image is not None and len(image) > MAX_URL_LENGTH:
        # Inline data: URIs and signed CDN links can outgrow the image column
        logger.debug("Dropping %d-character image URL", len(image))
        image = None

    return PageMetadata(
        title=title,
        description=_first(index, DESCRIPTION_KEYS),
        image=image,
    )


class MetadataExtractor:
    """
    Fetches an article page and reads its structured metadata.

    Results are not cached here; callers decide the caching policy.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.http_client = httpx.AsyncClient(
            timeout=self.settings.fetch_timeout_seconds,
            headers=browser_headers(self.settings.user_agent),
            follow_redirects=True,
            transport=transport,
        )

    async def fetch_page(self, url: str) -> tuple[str, str]:
        """Fetch a page and return its text and final URL (after redirects)."""
        try:
            response = await self.http_client.get(url)
        except httpx.TimeoutException as e:
            raise FetchNetworkError(f"Timed out fetching {url}") from e
        except httpx.HTTPError as e:
            raise FetchNetworkError(f"Could not reach {url}: {e}") from e

        if not response.is_success:
            raise FetchStatusError(response.status_code, response.reason_phrase)

        content_type = response.headers.get("content-type", "").lower()
        if content_type and not any(kind in content_type for kind in MARKUP_CONTENT_TYPES):
            raise MarkupError(f"Unsupported content type: {content_type}")

        return response.text, str(response.url)

    async def extract(self, url: str) -> PageMetadata:
        """
        Fetch ``url`` and extract its title, description and image.

        Raises:
            ValidationError: the URL is not an absolute http/https URL
            FetchNetworkError: the page could not be reached
            FetchStatusError: the page answered with a non-2xx status
            MarkupError: the body was empty, not HTML, or unparsable
        """
        url = normalize_url(url)
        html, final_url = await self.fetch_page(url)
        metadata = parse_metadata(html, base_url=final_url)
        logger.debug("Extracted metadata for %s: %s", url, metadata)
        return metadata

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

