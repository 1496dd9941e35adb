"""Pydantic schemas for request/response validation in the shortlink service.

This module defines Pydantic models for API input validation and output serialization,
ensuring type safety and automatic OpenAPI documentation generation.

Schema Hierarchy
=================
::
    ShortLinkCreate (Input)
    └─ url: str (also accepted as "originalUrl")

    ShortLinkResponse (Output)
    ├─ short_id: str
    ├─ short_url: str (computed)
    ├─ original_url: str
    ├─ clicks: int
    ├─ last_accessed: datetime | None
    └─ created_at: datetime

    ShortLinkStats (Output)
    └─ Same as ShortLinkResponse

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

Key Behaviours
===============
- URL syntax is checked by the service layer, so empty and malformed URLs
  surface as the same 422 response whether they come from HTTP or code.
- Models are configured for ORM attribute mapping.
"""

import datetime

from pydantic import AliasChoices, BaseModel, Field

from shortlink.enums import HealthStatus
from shortlink.models import ShortLink

__all__ = [
    "ShortLinkCreate",
    "ShortLinkResponse",
    "ShortLinkStats",
    "HealthResponse",
]


class ShortLinkCreate(BaseModel):
    url: str = Field(
        ...,
        validation_alias=AliasChoices("url", "originalUrl"),
        description="Long URL to shorten, e.g. 'https://example.com/a'",
    )


class ShortLinkResponse(BaseModel):
    short_id: str
    short_url: str
    original_url: str
    clicks: int
    last_accessed: datetime.datetime | None = None
    created_at: datetime.datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, link: ShortLink, base_url: str) -> "ShortLinkResponse":
        return cls(
            short_id=link.short_id,
            short_url=f"{base_url}/{link.short_id}",
            original_url=link.original_url,
            clicks=link.clicks,
            last_accessed=link.last_accessed,
            created_at=link.created_at,
        )


class ShortLinkStats(ShortLinkResponse):
    pass


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
