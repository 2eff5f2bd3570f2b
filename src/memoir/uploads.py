"""Image uploads: streamed to ``uploads/<projectId>/`` with size and type checks."""

from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from aiohttp import ClientPayloadError
from PIL import Image, UnidentifiedImageError

from memoir.errors import ValidationError

if TYPE_CHECKING:
    from aiohttp import BodyPartReader

    from memoir.config import UploadConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# Pillow format name → (mime type, file extension)
IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
    "WEBP": ("image/webp", "webp"),
}

UPLOAD_ERRORS = {
    "not_multipart": "Expected a multipart/form-data body",
    "no_file": "No image received (expected form field 'image')",
    "empty": "No file was uploaded",
    "partial": "File only partially uploaded",
    "too_large": "File too large (max {limit})",
    "write_failed": "Failed to write to disk",
}


def _human_size(n: int) -> str:
    return f"{n // (1024 * 1024)}MB" if n % (1024 * 1024) == 0 else f"{n} bytes"


def upload_error(code: str, **kwargs) -> ValidationError:
    return ValidationError(UPLOAD_ERRORS[code].format(**kwargs))


def sniff_image(path: Path) -> tuple[str, str] | None:
    """Return ``(mime, ext)`` from the file's actual content, or None."""
    try:
        with Image.open(path) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    return IMAGE_FORMATS.get(fmt or "")


def _generated_name(ext: str) -> str:
    return f"{uuid.uuid4().hex[:13]}_{int(time.time())}.{ext}"


async def save_image(
    field: BodyPartReader | None,
    project_id: str,
    uploads_dir: Path,
    config: UploadConfig,
) -> str:
    """Store one uploaded image and return its public relative URL."""
    if field is None or field.name != "image":
        raise upload_error("no_file")

    target_dir = uploads_dir / project_id
    target_dir.mkdir(parents=True, exist_ok=True)
    partial = target_dir / f".upload-{uuid.uuid4().hex}"

    total = 0
    try:
        with partial.open("wb") as f:
            while True:
                try:
                    chunk = await field.read_chunk(size=CHUNK_SIZE)
                except (ConnectionError, ClientPayloadError) as e:
                    logger.warning("Upload interrupted for project %s: %s", project_id, e)
                    raise upload_error("partial") from e
                if not chunk:
                    break
                total += len(chunk)
                if total > config.max_bytes:
                    raise upload_error("too_large", limit=_human_size(config.max_bytes))
                f.write(chunk)

        if total == 0:
            raise upload_error("empty")

        sniffed = sniff_image(partial)
        if sniffed is None or sniffed[0] not in config.allowed_types:
            detected = sniffed[0] if sniffed else (field.headers.get("Content-Type") or "unknown")
            raise ValidationError(f"Invalid image type: {detected}. Allowed: jpg, png, gif, webp")
        mime, ext = sniffed

        filename = _generated_name(ext)
        partial.rename(target_dir / filename)
    except OSError as e:
        logger.error("Upload write failed for project %s: %s", project_id, e)
        raise upload_error("write_failed") from e
    finally:
        if partial.exists():
            partial.unlink()

    logger.info("Stored %s upload (%d bytes) for project %s as %s", mime, total, project_id, filename)
    return f"uploads/{project_id}/{filename}"
