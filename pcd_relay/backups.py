"""
Backup naming, serialisation and selection of the most recent backup.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from pcd_relay.storage import StoredObject

BACKUP_PREFIX = "backup-"


def serialize_snapshot(payload: Any) -> bytes:
    """Indented JSON text of the client's snapshot, UTF-8 encoded."""
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def backup_public_id(now_ms: int) -> str:
    """``backup-<ms>``: the ``backup-<ms>.json`` filename without extension."""
    return f"{BACKUP_PREFIX}{now_ms}"


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def latest_backup(entries: Iterable[StoredObject]) -> Optional[StoredObject]:
    """
    Return the entry with the newest ``created_at``, or None when empty.

    The provider is asked for descending order, but the order it returns is
    not relied on.
    """
    ordered = sorted(
        entries, key=lambda entry: _parse_timestamp(entry.created_at), reverse=True
    )
    return ordered[0] if ordered else None
