"""
Dependency wiring for the FastAPI app.

The settings and provider client are built once by ``create_app`` and kept
on ``app.state``; routes reach them through these functions so tests can
swap them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from pcd_relay.config import Settings
from pcd_relay.storage import StorageClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage
