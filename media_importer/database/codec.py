"""
Versioned binary encoding for catalog values.

Layout: one version byte followed by a UTF-8 JSON object with sorted keys.
"""
import json
from datetime import datetime
from typing import Any, Dict

from .. import config
from ..exceptions import StoreError
from ..models import ChecksumGroup, MediaRecord


def _pack(payload: Dict[str, Any]) -> bytes:
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return bytes([config.CODEC_VERSION]) + body.encode("utf-8")


def _unpack(data: bytes) -> Dict[str, Any]:
    if not data:
        raise StoreError("Empty catalog value")
    version = data[0]
    if version != config.CODEC_VERSION:
        raise StoreError(f"Unsupported catalog value version {version}")
    try:
        payload = json.loads(data[1:].decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise StoreError(f"Corrupt catalog value: {e}") from e
    if not isinstance(payload, dict):
        raise StoreError("Corrupt catalog value: expected an object")
    return payload


def encode_media(record: MediaRecord) -> bytes:
    created = record.creation_date.isoformat() if record.creation_date else None
    return _pack({
        "key": record.key,
        "path": record.path,
        "id": record.id,
        "mime_type": record.mime_type,
        "checksum": record.checksum,
        "creation_date": created,
    })


def decode_media(data: bytes) -> MediaRecord:
    payload = _unpack(data)
    try:
        created = payload.get("creation_date")
        return MediaRecord(
            key=payload["key"],
            path=payload["path"],
            id=int(payload.get("id", 0)),
            mime_type=payload.get("mime_type", ""),
            checksum=payload.get("checksum", ""),
            creation_date=datetime.fromisoformat(created) if created else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Corrupt media record: {e}") from e


def encode_checksum(group: ChecksumGroup) -> bytes:
    return _pack({"key": group.key, "sources": list(group.sources)})


def decode_checksum(data: bytes) -> ChecksumGroup:
    payload = _unpack(data)
    try:
        return ChecksumGroup(key=payload["key"], sources=list(payload["sources"]))
    except (KeyError, TypeError) as e:
        raise StoreError(f"Corrupt checksum group: {e}") from e
