"""Shortening provider adapters - one per third-party API."""

from app.adapters.shorteners.base import AbstractShortenerProvider
from app.adapters.shorteners.factory import PROVIDER_REGISTRY, create_providers
from app.adapters.shorteners.isgd import IsGdProvider
from app.adapters.shorteners.tinyurl import TinyUrlProvider

__all__ = [
    "AbstractShortenerProvider",
    "IsGdProvider",
    "PROVIDER_REGISTRY",
    "TinyUrlProvider",
    "create_providers",
]
