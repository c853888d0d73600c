"""Cloudinary image CDN client.

Uploads use an unsigned upload preset, the same way the browser client did.
Deletion needs the API secret, so it only works when
``CITYSENSE_CLOUDINARY_API_SECRET`` is configured; otherwise it is skipped
with a warning.
"""

import hashlib
import logging
import secrets
import string
import time
from dataclasses import dataclass

import httpx

from backend.app.config import settings
from backend.app.services.image_compression import PreparedImage

logger = logging.getLogger(__name__)

UPLOAD_TAGS = "citysense,issue-report,user-upload"
THUMBNAIL_TRANSFORM = "c_fill,w_300,h_200,q_auto,f_auto"

_ALPHABET = string.ascii_lowercase + string.digits


class CloudinaryError(RuntimeError):
    """Upload or delete against the CDN failed."""


@dataclass
class UploadResult:
    url: str
    public_id: str
    thumbnail_url: str
    width: int | None = None
    height: int | None = None
    format: str | None = None
    bytes: int | None = None


def generate_public_id() -> str:
    """``{millis}_{random}``, unique enough per upload."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(13))
    return f"{int(time.time() * 1000)}_{suffix}"


def thumbnail_url(public_id: str) -> str:
    return (
        f"https://res.cloudinary.com/{settings.cloudinary_cloud_name}"
        f"/image/upload/{THUMBNAIL_TRANSFORM}/{public_id}"
    )


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature: sha1 over sorted ``k=v`` pairs + secret."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


class CloudinaryClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        # transport is injectable for tests (httpx.MockTransport)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=settings.upload_timeout_seconds,
            transport=self._transport,
        )

    async def upload(self, image: PreparedImage, folder: str | None = None) -> UploadResult:
        if not settings.cloudinary_cloud_name:
            raise CloudinaryError("Cloudinary is not configured (missing cloud name)")

        data = {
            "upload_preset": settings.cloudinary_upload_preset,
            "folder": folder or settings.cloudinary_folder,
            "public_id": generate_public_id(),
            "tags": UPLOAD_TAGS,
        }
        files = {"file": (image.filename, image.content, image.content_type)}

        started = time.monotonic()
        try:
            async with self._client() as client:
                resp = await client.post(settings.cloudinary_upload_url, data=data, files=files)
        except httpx.TimeoutException as exc:
            raise CloudinaryError(
                f"Upload timeout after {settings.upload_timeout_seconds:g} seconds"
            ) from exc
        except httpx.HTTPError as exc:
            raise CloudinaryError(f"Upload failed: {exc}") from exc

        if resp.status_code >= 400:
            raise CloudinaryError(f"Upload failed: {_error_message(resp)}")

        body = resp.json()
        public_id = body["public_id"]
        logger.info(
            "Uploaded %s to Cloudinary in %dms",
            public_id,
            (time.monotonic() - started) * 1000,
        )
        return UploadResult(
            url=body["secure_url"],
            public_id=public_id,
            thumbnail_url=thumbnail_url(public_id),
            width=body.get("width"),
            height=body.get("height"),
            format=body.get("format"),
            bytes=body.get("bytes"),
        )

    async def delete(self, public_id: str) -> bool:
        """Destroy an uploaded image. Returns False when deletion was skipped."""
        if not (settings.cloudinary_api_key and settings.cloudinary_api_secret):
            logger.warning("Skipping delete of %s: Cloudinary API secret not configured", public_id)
            return False

        params = {"public_id": public_id, "timestamp": str(int(time.time()))}
        payload = {
            **params,
            "api_key": settings.cloudinary_api_key,
            "signature": sign_params(params, settings.cloudinary_api_secret),
        }
        try:
            async with self._client() as client:
                resp = await client.post(settings.cloudinary_destroy_url, data=payload)
        except httpx.HTTPError as exc:
            raise CloudinaryError(f"Delete failed: {exc}") from exc

        if resp.status_code >= 400:
            raise CloudinaryError(f"Delete failed: {_error_message(resp)}")

        result = resp.json().get("result")
        if result not in ("ok", "not found"):
            raise CloudinaryError(f"Delete failed: unexpected result {result!r}")
        logger.info("Deleted %s from Cloudinary (%s)", public_id, result)
        return True


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json().get("error", {}).get("message") or resp.reason_phrase
    except ValueError:
        return resp.reason_phrase


cloudinary_client = CloudinaryClient()


def get_cloudinary() -> CloudinaryClient:
    """FastAPI dependency, overridden in tests."""
    return cloudinary_client
