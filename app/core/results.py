"""Result types returned by providers and the shortening service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from app.core.errors import ShortenerError, ShortenerErrorKind


@dataclass(frozen=True)
class ShortenSuccess:
    """A URL was shortened.

    Attributes:
        short_url: Shortened URL.
        provider: Name of the provider that produced it ("Cache" on a cache hit).
    """

    short_url: str
    provider: str

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class ShortenFailure:
    """A URL could not be shortened."""

    error: ShortenerError

    @property
    def success(self) -> bool:
        return False

    @property
    def kind(self) -> ShortenerErrorKind:
        return self.error.kind


ShortenResult = Union[ShortenSuccess, ShortenFailure]


def failure(kind: ShortenerErrorKind, message: str, cause: object = None) -> ShortenFailure:
    """Build a ``ShortenFailure`` from its error parts."""
    return ShortenFailure(error=ShortenerError(kind=kind, message=message, cause=cause))
