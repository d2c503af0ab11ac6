"""Disk-backed media store for uploaded videos and thumbnails."""

from __future__ import annotations

import logging
import os
import secrets
import time
from pathlib import Path
from typing import Dict, Tuple

from fastapi import UploadFile

from config import settings
from services.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
MEDIA_KINDS: Dict[str, Tuple[set, str]] = {
    "video": ({".mp4", ".mov", ".m4v", ".webm", ".avi", ".mkv"}, "video/"),
    "thumbnail": ({".jpg", ".jpeg", ".png", ".gif", ".webp"}, "image/"),
}


def _sanitize_filename(filename: str) -> str:
    base = os.path.basename(filename or "")
    return "".join(ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in base)


def _unique_name(original: str) -> str:
    suffix = Path(original).suffix.lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"


def upload_root() -> Path:
    root = Path(settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


async def store_upload(upload: UploadFile, kind: str = "video") -> str:
    """Stream an upload to disk and return the URL it is served from."""
    extensions, mime_prefix = MEDIA_KINDS[kind]
    original = _sanitize_filename(upload.filename or "")
    suffix = Path(original).suffix.lower()
    content_type = (upload.content_type or "").lower()

    if suffix not in extensions and not content_type.startswith(mime_prefix):
        raise ValidationError(
            f"Unsupported {kind} file type. Allowed: {', '.join(sorted(extensions))}.",
            field=kind,
        )

    stored_name = _unique_name(original)
    destination = upload_root() / stored_name
    max_bytes = max(int(settings.MAX_UPLOAD_BYTES), 1)

    total_size = 0
    try:
        with destination.open("wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > max_bytes:
                    out.close()
                    destination.unlink(missing_ok=True)
                    raise ValidationError(
                        f"File too large. Max upload size is {max_bytes // (1024 * 1024)}MB.",
                        field=kind,
                    )
                out.write(chunk)
    finally:
        await upload.close()

    logger.info("media_stored kind=%s name=%s bytes=%s", kind, stored_name, total_size)
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{stored_name}"


def discard_upload(url: str) -> None:
    """Remove a stored file by URL when the record it belonged to was rejected."""
    name = os.path.basename(url or "")
    if not name:
        return
    try:
        (Path(settings.UPLOAD_DIR) / name).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove discarded upload %s: %s", name, exc)
