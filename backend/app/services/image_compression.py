"""Image validation and pre-upload compression."""

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from backend.app.config import settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")

MAX_WIDTH = 1200
MAX_HEIGHT = 800
JPEG_QUALITY = 85


class ImageValidationError(ValueError):
    """Raised when an upload is not an acceptable image."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class PreparedImage:
    content: bytes
    content_type: str
    filename: str
    original_size: int

    @property
    def compressed(self) -> bool:
        return len(self.content) != self.original_size

    @property
    def compression_ratio(self) -> float:
        """Percentage of bytes saved, 0.0 when left untouched."""
        if not self.original_size:
            return 0.0
        return round((self.original_size - len(self.content)) / self.original_size * 100, 1)


def validate_image(content: bytes, content_type: str | None) -> None:
    if not content:
        raise ImageValidationError("No file provided for upload")
    if len(content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ImageValidationError(
            f"File size too large. Maximum size is {limit_mb}MB.", status_code=413
        )
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ImageValidationError(
            "Invalid file type. Only JPEG, PNG, and WebP are allowed.", status_code=415
        )


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Scale (width, height) down to fit the box, keeping aspect ratio. Never upscales."""
    if width <= max_width and height <= max_height:
        return width, height
    ratio = min(max_width / width, max_height / height)
    return max(1, int(width * ratio)), max(1, int(height * ratio))


def compress_image(content: bytes, quality: int = JPEG_QUALITY) -> bytes:
    """Downscale to fit MAX_WIDTH x MAX_HEIGHT and re-encode as JPEG."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            size = fit_within(img.width, img.height, MAX_WIDTH, MAX_HEIGHT)
            if size != (img.width, img.height):
                img = img.resize(size, Image.Resampling.LANCZOS)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality, optimize=True, progressive=True)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageValidationError(f"Could not read image: {exc}") from exc
    return out.getvalue()


def prepare_upload(content: bytes, content_type: str | None, filename: str) -> PreparedImage:
    """Validate an upload and compress it when it is above the size threshold."""
    validate_image(content, content_type)
    prepared = PreparedImage(content, content_type or "", filename, len(content))

    if len(content) > settings.compress_above_bytes:
        compressed = compress_image(content)
        logger.info(
            "Compressed %s: %.1fKB -> %.1fKB",
            filename,
            len(content) / 1024,
            len(compressed) / 1024,
        )
        stem = filename.rsplit(".", 1)[0] if "." in filename else filename
        prepared = PreparedImage(compressed, "image/jpeg", f"{stem}.jpg", len(content))

    return prepared
