"""Shared Pydantic base models and utilities."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class InventoryBase(BaseModel):
    """Base model with shared config for all API schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ---------- Generic pagination / response wrappers ----------


class PaginatedResponse(BaseModel):
    items: list[Any]
    total: int
    offset: int
    limit: int


class ErrorDetail(BaseModel):
    detail: str
