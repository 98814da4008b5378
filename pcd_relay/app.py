"""
FastAPI application entry point for the relay.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pcd_relay.config import Settings, get_settings
from pcd_relay.errors import RelayError
from pcd_relay.routes import router
from pcd_relay.storage import StorageClient, build_storage_client

logger = logging.getLogger(__name__)


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Erro interno do servidor."})


def create_app(
    settings: Optional[Settings] = None, storage: Optional[StorageClient] = None
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="PCD Eventos Relay", version="0.1.0")
    app.state.settings = settings
    app.state.storage = storage if storage is not None else build_storage_client(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
    app.include_router(router)
    return app
