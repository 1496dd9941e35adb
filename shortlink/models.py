"""SQLAlchemy ORM models for the shortlink service.

This module defines the single persisted entity, ``ShortLink``, with the unique
indexes that act as the service's only concurrency control.

Data Model Layout
=================
::
    short_links table
    ├─ id (INTEGER PRIMARY KEY)
    ├─ short_id (VARCHAR(16) UNIQUE, INDEXED)
    ├─ original_url (TEXT NOT NULL)
    ├─ original_url_digest (CHAR(64) UNIQUE, NULL)
    ├─ clicks (INTEGER DEFAULT 0)
    ├─ last_accessed (TIMESTAMPTZ, NULL)
    └─ created_at (TIMESTAMPTZ NOT NULL)

How to Use
===========
**Step 1 — Create a record**::
    link = ShortLink(short_id="abc123", original_url="https://example.com/a")
    db.add(link)
    await db.commit()

**Step 2 — Query by identifier**::
    result = await db.execute(select(ShortLink).where(ShortLink.short_id == "abc123"))
    link = result.scalar_one_or_none()

**Step 3 — Record an access atomically**::
    await db.execute(
        update(ShortLink)
        .where(ShortLink.short_id == "abc123")
        .values(clicks=ShortLink.clicks + 1, last_accessed=utcnow())
    )

Key Behaviours
===============
- short_id is unique and indexed for redirect lookups.
- original_url_digest is only filled while deduplication is enabled; NULLs never collide.
- clicks starts at 0, last_accessed starts as NULL.
- Timestamps are generated in Python as timezone-aware UTC values.

Classes:
    ShortLink:  Short identifier to long URL mapping with access statistics.
"""

import datetime
import hashlib

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortlink.database import Base

__all__ = ["ShortLink", "url_digest", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def url_digest(original_url: str) -> str:
    """SHA-256 hex digest used as the dedup key for ``original_url``."""
    return hashlib.sha256(original_url.encode("utf-8")).hexdigest()


class ShortLink(Base):
    __tablename__ = "short_links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    short_id: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    original_url_digest: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_accessed: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ShortLink(id={self.id}, short_id='{self.short_id}', clicks={self.clicks})>"
