from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.shortener import router as shortener_router

__all__ = ["health_router", "shortener_router"]
