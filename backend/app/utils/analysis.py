"""
Runs the vision model and the photo uploads for one item at the same time.

The user waiting on a draft should pay max(model latency, slowest upload),
not their sum. The two halves are independent: a photo that fails to host
shows up as a HostedPhoto with an error and never touches the model output.
Only a failed model call fails the whole analysis.
"""
import asyncio
import logging
import time
from typing import List, Sequence

from app.exceptions import ValidationError
from app.models.listing import AnalysisResult, HostedPhoto, ListingType, Photo
from app.utils.photo_host import PhotoHostingClient
from app.utils.vision import VisionClient

logger = logging.getLogger(__name__)


async def host_photo(photo_host: PhotoHostingClient, index: int, photo: Photo) -> HostedPhoto:
    filename = photo.filename or f"photo_{index}.jpg"
    try:
        result = await photo_host.upload(photo.content, filename, photo.mime_type or "image/jpeg")
    except Exception as e:
        logger.error(f"Photo {index + 1} upload raised: {e}")
        return HostedPhoto(index=index, original_filename=filename, error=str(e) or type(e).__name__)

    if result.success and result.hosted_url:
        return HostedPhoto(index=index, original_filename=filename, url=result.hosted_url)

    logger.warning(f"Photo {index + 1} upload failed: {result.error}")
    return HostedPhoto(index=index, original_filename=filename, error=result.error or "Upload failed")


async def host_photos(photo_host: PhotoHostingClient, photos: Sequence[Photo]) -> List[HostedPhoto]:
    """Upload photos concurrently without a model call, keeping input order."""
    if not photos:
        raise ValidationError("No photos provided")
    hosted = await asyncio.gather(*(host_photo(photo_host, index, photo) for index, photo in enumerate(photos)))
    return sorted(hosted, key=lambda p: p.index)


class AnalysisOrchestrator:
    def __init__(self, vision_client: VisionClient, photo_host: PhotoHostingClient):
        self.vision_client = vision_client
        self.photo_host = photo_host

    async def analyze(
        self,
        photos: Sequence[Photo],
        prompt: str,
        listing_type: ListingType = ListingType.GENERAL_LISTING,
    ) -> AnalysisResult:
        if not photos:
            raise ValidationError("No photos provided")
        if not prompt or not prompt.strip():
            raise ValidationError("No prompt provided")

        logger.info(f"Analyzing {len(photos)} photo(s) for {listing_type.value} listing")
        started = time.monotonic()

        uploads = asyncio.gather(
            *(host_photo(self.photo_host, index, photo) for index, photo in enumerate(photos))
        )
        try:
            raw_response, hosted_photos = await asyncio.gather(
                self.vision_client.describe(prompt, photos),
                uploads,
            )
        except Exception:
            # No draft without model output; stop the uploads still in flight
            uploads.cancel()
            raise

        hosted_photos = sorted(hosted_photos, key=lambda p: p.index)
        hosted_count = sum(1 for photo in hosted_photos if photo.hosted)
        logger.info(
            f"Analysis finished in {time.monotonic() - started:.2f}s, "
            f"hosted {hosted_count}/{len(photos)} photos"
        )

        return AnalysisResult(
            raw_response=raw_response,
            listing_type=listing_type,
            photo_count=len(photos),
            hosted_photos=hosted_photos,
        )
