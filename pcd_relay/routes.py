"""
HTTP routes: document upload, JSON backup and latest-backup lookup.
"""

from __future__ import annotations

import json
import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from pcd_relay.backups import backup_public_id, latest_backup, serialize_snapshot
from pcd_relay.config import Settings
from pcd_relay.dependencies import get_app_settings, get_storage_client
from pcd_relay.errors import (
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    ValidationError,
)
from pcd_relay.schemas import (
    BackupResponse,
    ErrorResponse,
    LatestBackupResponse,
    UploadedFileResponse,
    UploadResponse,
)
from pcd_relay.storage import StorageClient
from pcd_relay.uploads import (
    UploadedPart,
    detect_resource_type,
    folder_for_person,
    public_id_for,
)

logger = logging.getLogger(__name__)

router = APIRouter()

PERSON_FIELD = "nomePessoa"
LIVENESS_TEXT = "✅ Servidor PCD Eventos rodando e conectado ao Cloudinary."


async def _read_parts(request: Request) -> tuple[str | None, list[UploadedPart]]:
    try:
        form = await request.form()
    except StarletteHTTPException as exc:
        raise ValidationError(f"Requisição multipart inválida: {exc.detail}")
    person_name = None
    parts: list[UploadedPart] = []
    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                # Empty file inputs arrive without a filename; they carry no file.
                if not value.filename:
                    continue
                parts.append(
                    UploadedPart(
                        field_name=key,
                        filename=value.filename,
                        content_type=value.content_type or "application/octet-stream",
                        data=await value.read(),
                    )
                )
            elif key == PERSON_FIELD:
                person_name = value
    finally:
        await form.close()
    return person_name, parts


@router.get("/", response_class=PlainTextResponse)
def liveness():
    return LIVENESS_TEXT


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_documents(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Forward every file part to the provider under the person's folder.

    The response is built only once all transfers succeed; the first
    provider failure aborts the request.
    """
    person_name, parts = await _read_parts(request)
    if not parts:
        raise ValidationError("Nenhum arquivo recebido.")

    folder = folder_for_person(
        person_name, root=settings.upload_root, default=settings.default_person
    )
    arquivos: dict[str, UploadedFileResponse] = {}
    for part in parts:
        # The provider detects the stored type itself; the local guess only
        # decides whether the extension belongs in the public id.
        resource_type = detect_resource_type(part.content_type, part.filename)
        try:
            stored = await run_in_threadpool(
                storage.upload_file,
                part.data,
                folder=folder,
                public_id=public_id_for(part.filename, resource_type),
                resource_type="auto",
                content_type=part.content_type,
                filename=part.filename,
            )
        except StorageError:
            logger.exception("Upload of %s to %s failed", part.filename, folder)
            raise StorageError("Erro ao enviar documentos.")
        logger.info("Stored %s as %s", part.filename, stored.public_id)
        arquivos[part.field_name] = UploadedFileResponse(
            url=stored.url,
            id=stored.public_id,
            tipo=part.content_type,
            tamanho=part.size,
        )

    return UploadResponse(message="Upload concluído com sucesso!", arquivos=arquivos)


@router.post(
    "/backup-json",
    response_model=BackupResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def backup_json(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    storage: StorageClient = Depends(get_storage_client),
):
    raw = await request.body()
    if len(raw) > settings.max_body_bytes:
        raise PayloadTooLargeError("Corpo da requisição excede o limite permitido.")
    try:
        payload = json.loads(raw) if raw.strip() else {}
    except ValueError:
        raise ValidationError("Corpo JSON inválido.")

    public_id = backup_public_id(int(time.time() * 1000))
    try:
        stored = await run_in_threadpool(
            storage.upload_raw,
            serialize_snapshot(payload),
            folder=settings.backups_folder,
            public_id=public_id,
        )
    except StorageError:
        logger.exception("Backup upload failed for %s", public_id)
        raise StorageError("Falha ao enviar backup.")

    logger.info("Backup stored as %s", stored.public_id)
    return BackupResponse(message="Backup enviado com sucesso!", url=stored.url)


@router.get(
    "/listar-backups",
    response_model=LatestBackupResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def latest_backup_info(
    settings: Settings = Depends(get_app_settings),
    storage: StorageClient = Depends(get_storage_client),
):
    try:
        entries = await run_in_threadpool(
            storage.list_raw,
            f"{settings.backups_folder}/",
            max_results=settings.backup_list_limit,
            direction="desc",
        )
    except StorageError:
        logger.exception("Listing backups failed")
        raise StorageError("Erro ao listar backups.")

    latest = latest_backup(entries)
    if latest is None:
        raise NotFoundError("Nenhum backup encontrado.")
    return LatestBackupResponse(
        message="Backup mais recente encontrado",
        public_id=latest.public_id,
        created_at=latest.created_at,
        url=latest.url,
    )
