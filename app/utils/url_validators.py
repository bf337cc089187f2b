"""URL validation shared by the provider adapters and the HTTP routes."""

from __future__ import annotations

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

_http_url_adapter: TypeAdapter[AnyHttpUrl] = TypeAdapter(AnyHttpUrl)


def is_valid_http_url(url: object) -> bool:
    """Check that ``url`` parses as an absolute http(s) URL with a host.

    Args:
        url: Candidate value, usually a string.

    Returns:
        True if the value is a well-formed http or https URL.
    """
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        _http_url_adapter.validate_python(url)
    except ValidationError:
        return False
    return True
