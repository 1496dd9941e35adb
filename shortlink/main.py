"""FastAPI application entry point for the shortlink service.

This module configures and initializes the FastAPI application with middleware,
lifecycle management, error translation and route registration.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Create      │
    │ FastAPI app │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ CORS, error │
    │ handlers,   │
    │ routes      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ connect DB  │──── fails ──▶ process exits
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ dispose DB  │
    └─────────────┘

How to Use
===========
**Step 1 — Run**::
    python -m shortlink
    # or
    uvicorn shortlink.main:app --host 0.0.0.0 --port 8001 --reload

**Step 2 — Make API calls**::
    curl -X POST http://localhost:8001/api/shorten \\
         -H "Content-Type: application/json" \\
         -d '{"url": "https://example.com/a"}'

    curl -i http://localhost:8001/<short_id>

Error Translation
=================
::
    ValidationError           → 422
    NotFoundError             → 404
    AllocationExhaustedError  → 500
    SQLAlchemyError           → 500 (logged with traceback)
"""

__all__ = ["app", "create_app"]

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError

from shortlink.config import get_settings
from shortlink.dependencies import _service_manager
from shortlink.exceptions import AllocationExhaustedError, NotFoundError, ValidationError
from shortlink.routes import router

settings = get_settings()
logger = logging.getLogger(settings.APP_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup; StoreUnavailableError propagates and aborts the server.
    await _service_manager.initialize()
    yield
    # Shutdown
    await _service_manager.cleanup()


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Short URL not found"})


async def allocation_exhausted_handler(request: Request, exc: AllocationExhaustedError) -> JSONResponse:
    logger.error(f"Allocation exhausted on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Could not allocate a short identifier"})


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Record store error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Short links with click tracking",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(AllocationExhaustedError, allocation_exhausted_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app)

    app.include_router(router)
    return app


app = create_app()
