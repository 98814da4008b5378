"""
Pydantic response schemas. Field names follow the client application's API.
"""

from __future__ import annotations

from pydantic import BaseModel


class UploadedFileResponse(BaseModel):
    url: str
    id: str
    tipo: str
    tamanho: int


class UploadResponse(BaseModel):
    message: str
    arquivos: dict[str, UploadedFileResponse]


class BackupResponse(BaseModel):
    message: str
    url: str


class LatestBackupResponse(BaseModel):
    message: str
    public_id: str
    created_at: str
    url: str


class ErrorResponse(BaseModel):
    error: str
