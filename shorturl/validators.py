"""Input rules shared by the request schemas and the manager."""

import re
from typing import Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from .exceptions import InvalidInputError
from .models import CODE_MAX_LENGTH

URL_MAX_LENGTH = 2048
HTTP_URL = TypeAdapter(HttpUrl)
CODE_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

# Top-level paths served by the app itself; a code equal to one of these
# could never be redirected.
RESERVED_CODES = frozenset({"urls", "health", "metrics", "docs", "redoc"})


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_url(value: Optional[str], field: str = "originalUrl") -> str:
    """Check that ``value`` is an absolute http(s) URL and return it stripped.

    Raises:
        InvalidInputError: if the URL is blank, too long, or malformed.
    """
    if is_blank(value):
        raise InvalidInputError("Original URL is required", [f"{field}: must not be blank"])

    url = value.strip()
    if len(url) > URL_MAX_LENGTH:
        raise InvalidInputError(
            "Invalid URL format",
            [f"{field}: must be at most {URL_MAX_LENGTH} characters"],
        )

    if not url.lower().startswith(("http://", "https://")):
        raise InvalidInputError("Invalid URL format", [f"{field}: must use http or https"])
    if any(c.isspace() for c in url):
        raise InvalidInputError("Invalid URL format", [f"{field}: must be a valid URL"])
    try:
        HTTP_URL.validate_python(url)
    except ValidationError as exc:
        raise InvalidInputError(
            "Invalid URL format",
            [f"{field}: must be a valid URL ({error['msg']})" for error in exc.errors()],
        ) from exc

    return url


def validate_code(value: Optional[str], field: str = "customCode") -> str:
    """Check a caller-supplied code. The code is used verbatim, never trimmed."""
    if is_blank(value):
        raise InvalidInputError("Code is required", [f"{field}: must not be blank"])
    if len(value) > CODE_MAX_LENGTH:
        raise InvalidInputError(
            "Invalid code",
            [f"{field}: must be at most {CODE_MAX_LENGTH} characters"],
        )
    if not CODE_PATTERN.fullmatch(value):
        raise InvalidInputError(
            "Invalid code",
            [f"{field}: may only contain letters, digits, hyphen and underscore"],
        )
    if value in RESERVED_CODES:
        raise InvalidInputError("Invalid code", [f"{field}: '{value}' is reserved"])
    return value
