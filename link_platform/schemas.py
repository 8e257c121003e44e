"""
Pydantic schemas for the HTTP boundary.

JSON uses camelCase (`originalUrl`, `shortCode`, ...) while Python code uses
snake_case; the alias generator bridges the two. URL and code validation stay
in the registry so every caller gets the same rules; these models only pin
down shape and types.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(_CamelModel):
    """Request payload for creating a new short link."""
    original_url: str
    short_code: Optional[str] = None


class LinkOut(_CamelModel):
    """Response body describing one link."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    short_code: str
    original_url: str
    clicks: int
    last_clicked_at: Optional[datetime] = None
    created_at: datetime


class MessageOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    ok: bool
    version: str
    timestamp: datetime
    uptime: float
