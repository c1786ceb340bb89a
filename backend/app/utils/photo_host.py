import logging
import time
from typing import Optional
from urllib.parse import quote

import httpx

from app.exceptions import UploadError
from app.models.listing import UploadResult

logger = logging.getLogger(__name__)

USER_AGENT = "eBay-Listing-App/1.0"


class PhotoHostingClient:
    """
    Uploads photos to the external image host so eBay can fetch them by URL.

    upload() never raises; every failure comes back as an UploadResult with
    success=False and an error message.
    """

    def __init__(
        self,
        upload_url: Optional[str],
        public_base_url: str,
        timeout: float = 120.0,
        max_bytes: int = 10 * 1024 * 1024,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.upload_url = upload_url
        self.public_base_url = public_base_url
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "PhotoHostingClient":
        return cls(
            upload_url=settings.photo_host_url,
            public_base_url=settings.photo_public_base,
            timeout=settings.photo_upload_timeout,
            max_bytes=settings.max_photo_bytes,
            http_client=http_client,
        )

    def hosted_url_for(self, filename: str) -> str:
        """URL for a photo when the host only answers with its stored filename."""
        return f"{self.public_base_url.rstrip('/')}/{quote(filename)}"

    async def upload(self, content: bytes, filename: str, mime_type: str = "image/jpeg") -> UploadResult:
        try:
            hosted_url = await self._upload(content, filename, mime_type)
        except UploadError as e:
            logger.error(f"Photo upload failed for {filename}: {e}")
            return UploadResult(success=False, original_filename=filename, error=str(e))

        logger.info(f"Photo hosted at: {hosted_url}")
        return UploadResult(success=True, original_filename=filename, hosted_url=hosted_url)

    async def _upload(self, content: bytes, filename: str, mime_type: str) -> str:
        if not self.upload_url:
            raise UploadError("EXTERNAL_PHOTO_HOST_URL not configured")
        if not content:
            raise UploadError("Photo is empty")
        if len(content) > self.max_bytes:
            raise UploadError(f"Photo is {len(content)} bytes, larger than the {self.max_bytes} byte limit")

        logger.info(f"Uploading {filename} ({len(content)} bytes) to {self.upload_url}")
        files = {"photo": (filename, content, mime_type)}
        headers = {"User-Agent": USER_AGENT}
        started = time.monotonic()

        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    self.upload_url, files=files, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.upload_url, files=files, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise UploadError(f"Upload timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise UploadError(f"Photo host returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UploadError(f"Photo host request failed: {str(e)}") from e
        except ValueError as e:
            raise UploadError("Photo host returned invalid JSON") from e

        logger.debug(f"Upload of {filename} completed in {time.monotonic() - started:.2f}s")

        if not isinstance(data, dict):
            raise UploadError("Photo host returned an unexpected response")

        if data.get("url"):
            return str(data["url"])
        if data.get("filename"):
            return self.hosted_url_for(str(data["filename"]))
        raise UploadError("Photo host response had neither url nor filename")
