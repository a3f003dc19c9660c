from __future__ import annotations

import io
import logging
import mimetypes
from datetime import datetime
from enum import Enum
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from sqlalchemy.orm import Session

from site_tracker.core.config import settings
from site_tracker.models.entities import MainInventory, User
from site_tracker.schemas.media import PhotoDeleteResult, StoredPhoto
from site_tracker.services.site_keys import safe_storage_segment

logger = logging.getLogger(__name__)

ALLOWED_MIME_PREFIXES = ("image/",)
IMAGE_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/webp": ".webp",
}
JPEG_INITIAL_QUALITY = 70
JPEG_MIN_QUALITY = 25
JPEG_QUALITY_STEP = 10
DIMENSION_SHRINK_FACTOR = 0.8
MAX_COMPRESSION_ATTEMPTS = 10


class PhotoKind(str, Enum):
    serial = "serial"
    tag = "tag"

    @property
    def url_field(self) -> str:
        return f"{self.value}_pic_url"


def storage_root() -> Path:
    root = settings.media_storage_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def public_url_for(key: str) -> str:
    return f"{settings.media_public_base_url}/{key}"


def key_from_url(url: str | None) -> str | None:
    """Storage key behind a public URL, or None when the URL is not ours."""
    if not url:
        return None
    base = settings.media_public_base_url
    if url.startswith(f"{base}/"):
        return url[len(base) + 1:] or None
    return None


def resolve_storage_path(key: str) -> Path:
    root = storage_root().resolve()
    candidate = (root / key).resolve()
    try:
        candidate.relative_to(root)
    except ValueError as exc:
        raise ValueError("Invalid storage key") from exc
    return candidate


def validate_image(content: bytes, declared_type: str | None, original_name: str | None) -> str:
    size = len(content)
    if size == 0:
        raise ValueError("File is empty")
    if size > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ValueError(f"File exceeds the {limit_mb} MB limit")
    mime_type = _detect_mime_type(content, declared_type, original_name)
    if not mime_type.startswith(ALLOWED_MIME_PREFIXES):
        raise ValueError("Only image files are allowed")
    return mime_type


def _encode_jpeg(image: Image.Image, max_dimension: int, quality: int) -> bytes:
    resized = image.copy()
    resized.thumbnail((max_dimension, max_dimension))
    buffer = io.BytesIO()
    resized.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def _flatten(image: Image.Image) -> Image.Image:
    image = ImageOps.exif_transpose(image)
    if image.mode in ("RGB", "L"):
        return image
    if image.mode in ("RGBA", "LA", "P"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def compress_image(content: bytes, mime_type: str) -> tuple[bytes, str]:
    """
    Shrink an image to fit ``IMAGE_TARGET_BYTES``.

    Images already under the target are stored untouched. Larger ones are
    re-encoded as JPEG no wider or taller than ``IMAGE_MAX_DIMENSION``,
    lowering quality first and then dimensions until the target is met or
    the attempts run out.
    """
    target = settings.image_target_bytes
    if len(content) <= target:
        return content, mime_type
    try:
        with Image.open(io.BytesIO(content)) as opened:
            opened.load()
            image = _flatten(opened)
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Could not decode image") from exc

    quality = JPEG_INITIAL_QUALITY
    max_dimension = settings.image_max_dimension
    encoded = _encode_jpeg(image, max_dimension, quality)
    attempts = 0
    while len(encoded) > target and attempts < MAX_COMPRESSION_ATTEMPTS:
        attempts += 1
        if quality > JPEG_MIN_QUALITY:
            quality = max(JPEG_MIN_QUALITY, quality - JPEG_QUALITY_STEP)
        else:
            max_dimension = max(int(max_dimension * DIMENSION_SHRINK_FACTOR), 1)
        encoded = _encode_jpeg(image, max_dimension, quality)
    logger.info(
        "Compressed image from %s to %s bytes (quality %s, max dimension %s)",
        len(content),
        len(encoded),
        quality,
        max_dimension,
    )
    return encoded, "image/jpeg"


def _write_object(key: str, content: bytes) -> None:
    path = resolve_storage_path(key)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def _remove_object(key: str) -> bool:
    path = resolve_storage_path(key)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Stored object %s already missing", key)
        return False
    return True


def inventory_photo_key(row: MainInventory, kind: PhotoKind, mime_type: str) -> str:
    safe_site = safe_storage_segment(row.site_id_canonical or row.site_id)
    suffix = IMAGE_SUFFIXES.get(mime_type, ".jpg")
    return f"sites/{safe_site}/{row.id}/{kind.value}{suffix}"


def save_inventory_photo(
    db: Session,
    user: User,
    row: MainInventory,
    kind: PhotoKind,
    *,
    content: bytes,
    original_name: str | None,
    content_type: str | None,
) -> StoredPhoto:
    mime_type = validate_image(content, content_type, original_name)
    content, mime_type = compress_image(content, mime_type)
    key = inventory_photo_key(row, kind, mime_type)
    previous = key_from_url(getattr(row, kind.url_field))
    _write_object(key, content)

    url = public_url_for(key)
    setattr(row, kind.url_field, url)
    row.updated_at = datetime.utcnow()
    row.updated_by_id = user.id
    db.commit()
    # The row no longer points at the old object once the commit lands.
    if previous and previous != key:
        _remove_object(previous)
    logger.info("Stored %s photo for row %s at %s (%s bytes)", kind.value, row.id, key, len(content))
    return StoredPhoto(key=key, public_url=url)


def delete_inventory_photo(db: Session, user: User, row: MainInventory, kind: PhotoKind) -> PhotoDeleteResult:
    current = getattr(row, kind.url_field)
    if not current:
        return PhotoDeleteResult(message="Nothing to delete (URL empty)")
    key = key_from_url(current)
    if key:
        _remove_object(key)
    else:
        logger.warning("Photo URL %s is outside local storage; clearing it only", current)
    setattr(row, kind.url_field, None)
    row.updated_at = datetime.utcnow()
    row.updated_by_id = user.id
    db.commit()
    return PhotoDeleteResult()


def save_suggestion_image(
    suggestion_id: str,
    *,
    content: bytes,
    original_name: str | None,
    content_type: str | None,
) -> str:
    """Store a suggestion image and return its public URL."""
    mime_type = validate_image(content, content_type, original_name)
    content, mime_type = compress_image(content, mime_type)
    key = f"suggestions/{safe_storage_segment(suggestion_id)}/image{IMAGE_SUFFIXES.get(mime_type, '.jpg')}"
    _write_object(key, content)
    return public_url_for(key)


def remove_by_url(url: str | None) -> None:
    key = key_from_url(url)
    if key:
        _remove_object(key)


def guess_media_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def _detect_mime_type(content: bytes, declared_type: str | None, original_name: str | None) -> str:
    """Best-effort content sniffing to avoid trusting the browser-provided type."""
    detected = _detect_image_mime(content)
    if detected:
        return detected
    if declared_type:
        return declared_type.lower()
    if original_name:
        guessed, _ = mimetypes.guess_type(original_name)
        if guessed:
            return guessed.lower()
    return "application/octet-stream"


def _detect_image_mime(content: bytes) -> str | None:
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if content.startswith(b"BM"):
        return "image/bmp"
    if content.startswith(b"RIFF") and content[8:12] == b"WEBP":
        return "image/webp"
    return None
