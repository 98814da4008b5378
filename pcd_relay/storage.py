"""
Storage abstraction over the media provider (Cloudinary), S3-compatible
buckets, and an in-memory double for tests.
"""

from __future__ import annotations

import io
import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import boto3
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from pcd_relay.config import CloudinaryCredentials, Settings
from pcd_relay.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """Descriptor the provider hands back for one stored object."""

    public_id: str
    url: str
    resource_type: str = "raw"
    created_at: str = ""
    bytes: int = 0


class StorageClient(Protocol):
    """Defines the operations the relay needs from the provider."""

    def upload_file(
        self,
        data: bytes,
        *,
        folder: str,
        public_id: str,
        resource_type: str = "auto",
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> StoredObject:
        ...

    def upload_raw(self, data: bytes, *, folder: str, public_id: str) -> StoredObject:
        ...

    def list_raw(
        self, prefix: str, *, max_results: int = 50, direction: str = "desc"
    ) -> list[StoredObject]:
        ...


def _utc_stamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class InMemoryStorageClient:
    """Test double for provider interactions."""

    base_url: str = "https://example.test/storage"
    objects: dict[str, StoredObject] = field(default_factory=dict)
    payloads: dict[str, bytes] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    fail_with: Optional[Exception] = None

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail_with is not None:
            raise StorageError(str(self.fail_with)) from self.fail_with

    def _store(self, data: bytes, folder: str, public_id: str, resource_type: str):
        full_id = f"{folder}/{public_id}" if folder else public_id
        stored = StoredObject(
            public_id=full_id,
            url=f"{self.base_url}/{resource_type}/upload/{full_id}",
            resource_type=resource_type,
            created_at=_utc_stamp(),
            bytes=len(data),
        )
        self.objects[full_id] = stored
        self.payloads[full_id] = data
        return stored

    def add(self, stored: StoredObject, data: bytes = b"") -> None:
        """Prime the store with an existing object."""
        self.objects[stored.public_id] = stored
        self.payloads[stored.public_id] = data

    def reset(self) -> None:
        self.objects.clear()
        self.payloads.clear()
        self.calls.clear()
        self.fail_with = None

    def upload_file(
        self,
        data: bytes,
        *,
        folder: str,
        public_id: str,
        resource_type: str = "auto",
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> StoredObject:
        self._check("upload_file")
        if resource_type == "auto":
            resource_type = "raw"
        return self._store(data, folder, public_id, resource_type)

    def upload_raw(self, data: bytes, *, folder: str, public_id: str) -> StoredObject:
        self._check("upload_raw")
        return self._store(data, folder, public_id, "raw")

    def list_raw(
        self, prefix: str, *, max_results: int = 50, direction: str = "desc"
    ) -> list[StoredObject]:
        self._check("list_raw")
        found = [
            obj
            for obj in self.objects.values()
            if obj.resource_type == "raw" and obj.public_id.startswith(prefix)
        ]
        found.sort(key=lambda obj: obj.created_at, reverse=direction == "desc")
        return found[:max_results]


@dataclass
class CloudinaryStorageClient:
    """
    Cloudinary client. Credentials travel with each call so nothing depends
    on the SDK's process-wide ``cloudinary.config()``.
    """

    credentials: CloudinaryCredentials

    @staticmethod
    def _to_stored(result: dict) -> StoredObject:
        return StoredObject(
            public_id=result["public_id"],
            url=result.get("secure_url") or result.get("url", ""),
            resource_type=result.get("resource_type", "raw"),
            created_at=result.get("created_at", ""),
            bytes=int(result.get("bytes") or 0),
        )

    def upload_file(
        self,
        data: bytes,
        *,
        folder: str,
        public_id: str,
        resource_type: str = "auto",
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> StoredObject:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=folder,
                public_id=public_id,
                resource_type=resource_type,
                filename=filename or public_id,
                **self.credentials.as_options(),
            )
        except cloudinary.exceptions.Error as exc:
            raise StorageError(str(exc)) from exc
        return self._to_stored(result)

    def upload_raw(self, data: bytes, *, folder: str, public_id: str) -> StoredObject:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=folder,
                public_id=public_id,
                resource_type="raw",
                filename=public_id,
                **self.credentials.as_options(),
            )
        except cloudinary.exceptions.Error as exc:
            raise StorageError(str(exc)) from exc
        return self._to_stored(result)

    def list_raw(
        self, prefix: str, *, max_results: int = 50, direction: str = "desc"
    ) -> list[StoredObject]:
        try:
            result = cloudinary.api.resources(
                type="upload",
                resource_type="raw",
                prefix=prefix,
                max_results=max_results,
                direction=direction,
                **self.credentials.as_options(),
            )
        except cloudinary.exceptions.Error as exc:
            raise StorageError(str(exc)) from exc
        return [self._to_stored(item) for item in result.get("resources") or []]


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client. Objects are addressed as
    ``<folder>/<public_id>`` and served through presigned GET URLs.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    url_expires: int = 3600

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def _presign(self, key: str) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.url_expires,
        )

    def _put(
        self, data: bytes, key: str, content_type: str, resource_type: str
    ) -> StoredObject:
        try:
            self._client.put_object(
                Bucket=self.bucket, Key=key, Body=data, ContentType=content_type
            )
            url = self._presign(key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc
        return StoredObject(
            public_id=key,
            url=url,
            resource_type=resource_type,
            created_at=_utc_stamp(),
            bytes=len(data),
        )

    def upload_file(
        self,
        data: bytes,
        *,
        folder: str,
        public_id: str,
        resource_type: str = "auto",
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> StoredObject:
        if resource_type == "auto":
            resource_type = "raw"
        # S3 keeps no format of its own, so the key carries the extension.
        key = f"{folder}/{public_id}"
        extension = posixpath.splitext(filename or "")[1]
        if extension and not key.endswith(extension):
            key += extension
        return self._put(
            data, key, content_type or "application/octet-stream", resource_type
        )

    def upload_raw(self, data: bytes, *, folder: str, public_id: str) -> StoredObject:
        return self._put(
            data, f"{folder}/{public_id}", "application/octet-stream", "raw"
        )

    def list_raw(
        self, prefix: str, *, max_results: int = 50, direction: str = "desc"
    ) -> list[StoredObject]:
        # S3 lists in ascending key order only, so the whole prefix is read
        # and ordered by LastModified before trimming to max_results.
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            items = [
                item
                for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix)
                for item in page.get("Contents", [])
            ]
            items.sort(
                key=lambda item: (item["LastModified"], item["Key"]),
                reverse=direction == "desc",
            )
            return [
                StoredObject(
                    public_id=item["Key"],
                    url=self._presign(item["Key"]),
                    resource_type="raw",
                    created_at=_utc_stamp(item["LastModified"]),
                    bytes=int(item.get("Size", 0)),
                )
                for item in items[:max_results]
            ]
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc


def build_storage_client(settings: Settings) -> StorageClient:
    """Pick the provider client named by ``settings.storage_backend``."""
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET is required for the s3 storage backend")
        return S3StorageClient(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            url_expires=settings.s3_url_expires,
        )

    if settings.storage_backend == "cloudinary":
        credentials = settings.cloudinary_credentials()
        if not credentials.complete:
            raise ValueError(
                "CLOUD_NAME, CLOUD_KEY and CLOUD_SECRET are required for the "
                "cloudinary storage backend (set STORAGE_BACKEND=memory for "
                "local runs)"
            )
        return CloudinaryStorageClient(credentials)

    logger.warning("Using in-memory storage; objects are lost on restart")
    return InMemoryStorageClient()
