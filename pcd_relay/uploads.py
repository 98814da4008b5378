"""
Helpers for placing uploaded documents on the provider.
"""

from __future__ import annotations

import mimetypes
import posixpath
import re
from dataclasses import dataclass
from typing import Optional

_UNSAFE_SEGMENT = re.compile(r"[\\/]+")
_GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


@dataclass(frozen=True)
class UploadedPart:
    """One file part taken from a multipart request."""

    field_name: str
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def folder_for_person(
    person_name: Optional[str],
    *,
    root: str = "uploads_pcd_eventos",
    default: str = "sem-nome",
) -> str:
    """
    Destination folder for one person's documents: ``<root>/<name>``.

    Blank names fall back to ``default``. Slashes become dashes and dot-only
    names are rejected so the result always stays directly under ``root``.
    """
    name = _UNSAFE_SEGMENT.sub("-", (person_name or "").strip()).strip("-")
    if not name or set(name) == {"."}:
        name = default
    return f"{root.rstrip('/')}/{name}"


def guess_content_type(content_type: Optional[str], filename: str) -> str:
    if content_type and content_type.lower() not in _GENERIC_TYPES:
        return content_type.lower()
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def detect_resource_type(content_type: Optional[str], filename: str) -> str:
    """Map a part's MIME type onto the provider's image/video/raw kinds."""
    mime = guess_content_type(content_type, filename)
    if mime.startswith("image/") or mime == "application/pdf":
        return "image"
    if mime.startswith("video/") or mime.startswith("audio/"):
        return "video"
    return "raw"


def public_id_for(filename: str, resource_type: str) -> str:
    """
    Provider identifier for an uploaded file.

    Images and videos keep their format on the provider, so the extension is
    dropped; raw files carry it in the identifier itself.
    """
    base = posixpath.basename(filename.replace("\\", "/")) or "arquivo"
    if resource_type == "raw":
        return base
    stem, _ = posixpath.splitext(base)
    return stem or base
