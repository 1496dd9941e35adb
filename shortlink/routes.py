"""FastAPI route definitions for the shortlink REST API.

API Endpoint Overview
=====================
::
    GET  /
        └─ "API Working" (200)

    GET  /health
        └─ HealthResponse (200)

    POST /api/shorten
        ├─ ShortLinkCreate (request body)
        └─ ShortLinkResponse (201) or 422/500

    GET  /api/stats/:short_id
        └─ ShortLinkStats (200) or 404

    GET  /:short_id
        └─ 307 Redirect or 404

Key Behaviours
===============
- Domain errors raised by the service are translated to HTTP responses by the
  exception handlers registered in ``shortlink.main``.
- 307 redirects preserve the HTTP method.
- The catch-all redirect route is registered last so it never shadows the API.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shortlink.dependencies import RequestContext, get_request_context, get_shortlink_service
from shortlink.enums import HealthStatus
from shortlink.schemas import HealthResponse, ShortLinkCreate, ShortLinkResponse, ShortLinkStats
from shortlink.service import ShortLinkService

__all__ = ["router"]

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "API Working"


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.database.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=db_status, database=db_status)


@router.post("/api/shorten", response_model=ShortLinkResponse, status_code=201, tags=["links"])
async def shorten_url(
    payload: ShortLinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: ShortLinkService = Depends(get_shortlink_service),
) -> ShortLinkResponse:
    link = await service.allocate(payload.url)
    ctx.logger.info(
        f"Shorten request served: {link.short_id}",
        extra={"operation": "allocate", "short_id": link.short_id, "duration_ms": ctx.get_duration()},
    )
    return ShortLinkResponse.from_model(link, ctx.settings.short_url_prefix)


@router.get("/api/stats/{short_id}", response_model=ShortLinkStats, tags=["links"])
async def get_stats(
    short_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ShortLinkService = Depends(get_shortlink_service),
) -> ShortLinkStats:
    link = await service.get_stats(short_id)
    return ShortLinkStats.from_model(link, ctx.settings.short_url_prefix)


@router.get("/{short_id}", tags=["redirect"])
async def redirect_to_url(
    short_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ShortLinkService = Depends(get_shortlink_service),
) -> RedirectResponse:
    original_url = await service.resolve(short_id)
    ctx.logger.info(
        f"Redirect {short_id} -> {original_url}",
        extra={
            "operation": "resolve",
            "short_id": short_id,
            "client_ip": ctx.client_ip,
            "duration_ms": ctx.get_duration(),
        },
    )
    return RedirectResponse(url=original_url, status_code=307)
