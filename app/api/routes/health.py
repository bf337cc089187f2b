from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.dependencies import get_shortener_service
from app.services.shortener_service import UrlShortenerService

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(
    service: Annotated[UrlShortenerService, Depends(get_shortener_service)],
) -> dict:
    """Liveness check listing the configured provider chain.

    Returns:
        dict: ``status`` set to "ok" and ``providers`` in fallback order.
    """

    return {
        "status": "ok",
        "providers": [provider.name for provider in service.providers],
    }
