"""Shortlink Service Layer - Core Business Logic

This module provides identifier allocation and redirect resolution on top of
the ``short_links`` table: collision avoidance, the deduplication policy and
access-count bookkeeping all live here.

Architecture Overview
=====================
::
    ┌──────────────────────────────────────────────┐
    │                Service Layer                 │
    │  ┌──────────────────┐  ┌──────────────────┐  │
    │  │ Allocator        │  │ Resolver         │  │
    │  │ • Validate URL   │  │ • Lookup by id   │  │
    │  │ • Dedup lookup   │  │ • clicks + 1     │  │
    │  │ • nanoid + retry │  │ • last_accessed  │  │
    │  └──────────────────┘  └──────────────────┘  │
    └──────────────────────────────────────────────┘
                         │
                         ▼
               ┌──────────────────┐
               │   short_links    │
               │ (unique indexes) │
               └──────────────────┘

Allocation Flow
---------------
::
    ┌─────────────┐
    │ allocate()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐      invalid
    │ Validate URL │ ───────────────▶ ValidationError
    └──────┬──────┘
           ▼
    ┌─────────────┐      found
    │ Dedup digest │ ───────────────▶ existing record
    │ lookup       │
    └──────┬──────┘
           ▼
    ┌─────────────┐      taken
    │ Candidate id │ ──────┐
    │ free?        │ ◀─────┘ (retry, bounded)
    └──────┬──────┘
           ▼
    ┌─────────────┐  IntegrityError
    │ INSERT +     │ ──▶ digest now exists? ── yes ─▶ existing record
    │ COMMIT       │                         └─ no ──▶ retry
    └──────┬──────┘
           ▼
       new record        (attempts exhausted ─▶ AllocationExhaustedError)

Resolution Flow
---------------
::
    ┌─────────────┐      missing
    │ Lookup id    │ ───────────────▶ NotFoundError
    └──────┬──────┘
           ▼
    ┌─────────────┐      failure
    │ UPDATE clicks│ ───────────────▶ logged, rolled back
    │ + 1 (atomic) │                  (redirect still honoured)
    └──────┬──────┘
           ▼
      original_url

Usage Examples
==============
```python
@router.post("/api/shorten")
async def shorten_url(
    payload: ShortLinkCreate,
    service: ShortLinkService = Depends(get_shortlink_service),
) -> ShortLinkResponse:
    link = await service.allocate(payload.url)
    return ShortLinkResponse.from_model(link, service.settings.short_url_prefix)
```
"""

import time
from typing import Optional
from urllib.parse import urlsplit

import validators
from nanoid import generate
from prometheus_client import Counter, Histogram
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortlink.enums import RequestStatus
from shortlink.exceptions import AllocationExhaustedError, NotFoundError, ValidationError
from shortlink.models import ShortLink, url_digest, utcnow

__all__ = [
    "ALPHABET",
    "ShortLinkService",
    "generate_short_id",
    "validate_long_url",
]


# ============================================================================
# CONSTANTS
# ============================================================================

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
ALLOWED_SCHEMES = frozenset({"http", "https"})
# Paths served by fixed routes; an id equal to one of them could never resolve.
RESERVED_SHORT_IDS = frozenset({"api", "docs", "redoc", "health", "metrics"})


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

ALLOCATION_REQUESTS_TOTAL = Counter(
    "shortlink_allocation_requests_total",
    "Total short link allocation requests",
    ["status"],
)
ALLOCATION_DURATION = Histogram(
    "shortlink_allocation_duration_seconds",
    "Time taken to allocate short links",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
ALLOCATION_COLLISIONS_TOTAL = Counter(
    "shortlink_allocation_collisions_total",
    "Candidate short ids rejected because they were already taken",
)
DEDUP_HITS_TOTAL = Counter(
    "shortlink_dedup_hits_total",
    "Allocations answered with an existing record for the same URL",
)
RESOLUTION_REQUESTS_TOTAL = Counter(
    "shortlink_resolution_requests_total",
    "Total short link resolution requests",
    ["status"],
)
CLICK_UPDATE_FAILURES_TOTAL = Counter(
    "shortlink_click_update_failures_total",
    "Resolutions whose access statistics could not be persisted",
)
DATABASE_READS_TOTAL = Counter(
    "shortlink_database_reads_total",
    "Total database read operations",
)
DATABASE_WRITES_TOTAL = Counter(
    "shortlink_database_writes_total",
    "Total database write operations",
)


# ============================================================================
# HELPERS
# ============================================================================


def generate_short_id(length: int) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)


def validate_long_url(long_url: Optional[str]) -> str:
    """Return the stripped URL or raise ``ValidationError``.

    The URL must be absolute, use http(s) and name a host.
    """
    if not isinstance(long_url, str) or not long_url.strip():
        raise ValidationError("URL is required")

    candidate = long_url.strip()
    parts = urlsplit(candidate)
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        raise ValidationError(f"Invalid URL provided: {candidate!r}")
    # Hosts may be bare (localhost) or carry underscores; query keys may lack values.
    if not validators.url(candidate, simple_host=True, strict_query=False, rfc_2782=True):
        raise ValidationError(f"Invalid URL provided: {candidate!r}")
    return candidate


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class ShortLinkService:
    """Identifier allocation and redirect resolution.

    One instance serves one request: it holds that request's database session,
    the request-scoped logger and the process settings.

    Example:
        >>> service = ShortLinkService.from_context(ctx)
        >>> link = await service.allocate("https://example.com/a")
        >>> await service.resolve(link.short_id)
        'https://example.com/a'
    """

    def __init__(self, ctx: "RequestContext"):
        self._db = ctx.database
        self._logger = ctx.logger
        self._settings = ctx.settings

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "ShortLinkService":
        return cls(ctx)

    @property
    def settings(self):
        return self._settings

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def allocate(self, long_url: Optional[str]) -> ShortLink:
        """Return the record holding a short id for ``long_url``.

        With deduplication enabled an existing record for the same URL is
        returned unchanged; otherwise exactly one record is created.

        Raises:
            ValidationError: If ``long_url`` is missing or malformed.
            AllocationExhaustedError: If every candidate id collided.
        """
        start_time = time.perf_counter()
        try:
            original_url = validate_long_url(long_url)
        except ValidationError as exc:
            ALLOCATION_REQUESTS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            self._logger.warning(f"Allocation rejected: {exc}")
            raise

        digest = url_digest(original_url) if self._settings.DEDUP_ENABLED else None
        self._logger.info(f"Allocating short id for: {original_url}")

        try:
            if digest is not None:
                existing = await self._find_by_digest(digest)
                if existing is not None:
                    DEDUP_HITS_TOTAL.inc()
                    ALLOCATION_REQUESTS_TOTAL.labels(status=RequestStatus.DEDUPLICATED).inc()
                    self._logger.info(f"Reusing short id {existing.short_id} for {original_url}")
                    return existing

            link, created = await self._insert_with_retry(original_url, digest)

        except AllocationExhaustedError as exc:
            ALLOCATION_REQUESTS_TOTAL.labels(status=RequestStatus.EXHAUSTED).inc()
            self._logger.error(f"Allocation failed for {original_url}: {exc}")
            raise

        except Exception as exc:
            ALLOCATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Allocation error for {original_url}: {exc}")
            raise

        finally:
            ALLOCATION_DURATION.observe(time.perf_counter() - start_time)

        status = RequestStatus.SUCCESS if created else RequestStatus.DEDUPLICATED
        ALLOCATION_REQUESTS_TOTAL.labels(status=status).inc()
        self._logger.info(f"Short id {link.short_id} allocated for {original_url}")
        return link

    async def resolve(self, short_id: str) -> str:
        """Return the long URL for ``short_id`` and record the access.

        A failure to persist the access is logged and does not prevent the
        caller from redirecting.

        Raises:
            NotFoundError: If no record has this short id.
        """
        link = await self._find_by_short_id(short_id) if short_id else None
        if link is None:
            RESOLUTION_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            self._logger.warning(f"Short id not found: {short_id}")
            raise NotFoundError(short_id)

        original_url = link.original_url
        await self._record_access(short_id)

        RESOLUTION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.debug(f"Resolved {short_id} -> {original_url}")
        return original_url

    async def get_stats(self, short_id: str) -> ShortLink:
        """Return the stored record without counting an access.

        Raises:
            NotFoundError: If no record has this short id.
        """
        link = await self._find_by_short_id(short_id) if short_id else None
        if link is None:
            self._logger.warning(f"Stats not found for short id: {short_id}")
            raise NotFoundError(short_id)
        return link

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _insert_with_retry(self, original_url: str, digest: Optional[str]) -> tuple[ShortLink, bool]:
        """Insert a record under a fresh short id.

        Returns the record and whether it was created by this call; ``False``
        means a concurrent allocation for the same URL won the insert.
        """
        max_attempts = self._settings.MAX_ALLOCATION_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            candidate = generate_short_id(self._settings.SHORT_ID_LENGTH)
            if candidate in RESERVED_SHORT_IDS or await self._find_by_short_id(candidate) is not None:
                ALLOCATION_COLLISIONS_TOTAL.inc()
                self._logger.debug(f"Short id {candidate} taken (attempt {attempt}/{max_attempts})")
                continue

            link = ShortLink(
                short_id=candidate,
                original_url=original_url,
                original_url_digest=digest,
                clicks=0,
                last_accessed=None,
                created_at=utcnow(),
            )
            self._db.add(link)
            try:
                await self._db.commit()
            except IntegrityError:
                await self._db.rollback()
                if digest is not None:
                    existing = await self._find_by_digest(digest)
                    if existing is not None:
                        DEDUP_HITS_TOTAL.inc()
                        self._logger.info(f"Concurrent allocation won for {original_url}, reusing {existing.short_id}")
                        return existing, False
                ALLOCATION_COLLISIONS_TOTAL.inc()
                self._logger.warning(f"Insert collided on short id {candidate} (attempt {attempt}/{max_attempts})")
                continue

            DATABASE_WRITES_TOTAL.inc()
            return link, True

        raise AllocationExhaustedError(max_attempts)

    async def _record_access(self, short_id: str) -> None:
        # Single UPDATE so concurrent resolutions do not lose increments.
        try:
            await self._db.execute(
                update(ShortLink)
                .where(ShortLink.short_id == short_id)
                .values(clicks=ShortLink.clicks + 1, last_accessed=utcnow())
            )
            await self._db.commit()
            DATABASE_WRITES_TOTAL.inc()
        except SQLAlchemyError:
            CLICK_UPDATE_FAILURES_TOTAL.inc()
            self._logger.exception(f"Failed to record access for {short_id}")
            try:
                await self._db.rollback()
            except SQLAlchemyError as exc:
                self._logger.error(f"Rollback after failed access update for {short_id} failed: {exc}")

    # populate_existing: counters may have been bumped by other sessions.
    async def _find_by_short_id(self, short_id: str) -> Optional[ShortLink]:
        result = await self._db.execute(
            select(ShortLink).where(ShortLink.short_id == short_id).execution_options(populate_existing=True)
        )
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one_or_none()

    async def _find_by_digest(self, digest: str) -> Optional[ShortLink]:
        result = await self._db.execute(
            select(ShortLink).where(ShortLink.original_url_digest == digest).execution_options(populate_existing=True)
        )
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one_or_none()
