"""URL validation for submitted article links."""

from urllib.parse import urlsplit

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from readinglist.errors import ValidationError

ALLOWED_SCHEMES = ("http", "https")

# Width of the url and image columns
MAX_URL_LENGTH = 2048

_http_url = TypeAdapter(HttpUrl)


def normalize_url(raw: str | None) -> str:
    """Validate an article URL and return its normalized absolute form.

    Only absolute http/https URLs with a host are accepted. Scheme and host
    are lowercased and an empty path becomes ``/``.
    """
    if raw is None or not str(raw).strip():
        raise ValidationError("URL is required")

    candidate = str(raw).strip()
    if len(candidate) > MAX_URL_LENGTH:
        raise ValidationError(f"URL must be at most {MAX_URL_LENGTH} characters")

    try:
        parts = urlsplit(candidate)
    except ValueError as e:
        raise ValidationError("Please enter a valid URL") from e

    if not parts.scheme or not parts.netloc:
        raise ValidationError("Please enter a valid URL")
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError("Please enter an HTTP or HTTPS URL")

    try:
        normalized = str(_http_url.validate_python(candidate))
    except PydanticValidationError as e:
        raise ValidationError("Please enter a valid URL") from e

    # Normalizing can percent-encode characters and grow the URL
    if len(normalized) > MAX_URL_LENGTH:
        raise ValidationError(f"URL must be at most {MAX_URL_LENGTH} characters")
    return normalized
