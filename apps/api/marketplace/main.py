"""FastAPI application for the property marketplace."""
from __future__ import annotations

import base64
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .core.config import settings
from .core.errors import MarketplaceError
from .core.logging import setup_logging
from .routers import applications, availability, documents, offers, profiles, properties

setup_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

app = FastAPI(title="Property Marketplace API", version="0.1.0")

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind.value},
    )


app.include_router(properties.router, prefix="/api", tags=["properties"])
app.include_router(availability.router, prefix="/api", tags=["availability"])
app.include_router(applications.router, prefix="/api", tags=["applications"])
app.include_router(documents.router, prefix="/api", tags=["documents"])
app.include_router(offers.router, prefix="/api", tags=["offers"])
app.include_router(profiles.router, prefix="/api", tags=["profiles"])


FAVICON_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Liveness check."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    return PlainTextResponse("User-agent: *\nDisallow:")


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(content=FAVICON_BYTES, media_type="image/png")
