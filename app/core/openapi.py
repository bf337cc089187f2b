"""OpenAPI metadata for the generated schema."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Shortener",
        "description": "Shorten URLs through the provider fallback chain.",
    },
    {
        "name": "Rate Limit",
        "description": "Inspect or reset the outbound provider budget.",
    },
    {
        "name": "Cache",
        "description": "Inspect or clear cached short URLs.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tag descriptions.

    Tags already present in the generated schema are left untouched.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
