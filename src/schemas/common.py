"""Shared response shapes.

Every endpoint answers with the envelope
``{"success": bool, "message": str, "data": ..., "pagination": {...}}``.
"""

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


def dump(value: Any) -> Any:
    """Serialize pydantic models (or lists of them) with camelCase keys."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [dump(item) for item in value]
    if isinstance(value, dict):
        return {key: dump(item) for key, item in value.items()}
    return value


def envelope(
    message: str,
    data: Any = None,
    pagination: Optional[Pagination] = None,
) -> Dict[str, Any]:
    """Build a success envelope.

    Args:
        message: Human readable message.
        data: Payload; pydantic models are serialized with camelCase keys.
        pagination: Optional pagination block for list endpoints.

    Returns:
        JSON-serializable dictionary.
    """
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = dump(data)
    if pagination is not None:
        body["pagination"] = dump(pagination)
    return body


def error_envelope(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return body
