import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as DraftValidationError

from app.dependencies import get_listing_poster, get_photo_host
from app.exceptions import MissingPhotosError
from app.models.listing import BatchSummary, ListingDraft, ListingType, MarketplaceResult, PostingRequest
from app.routers.listing_ai import read_photos
from app.utils.analysis import host_photos
from app.utils.ebay_categories import validate_book_draft
from app.utils.listing_poster import ListingPoster
from app.utils.photo_host import PhotoHostingClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Listing"])


class BatchPostingRequest(BaseModel):
    listings: List[PostingRequest]


async def _post(poster: ListingPoster, data: PostingRequest, draft: ListingDraft) -> JSONResponse:
    try:
        result = await poster.post_listing(draft, data.hosted_photo_urls, data.listing_id)
    except MissingPhotosError as e:
        raise HTTPException(status_code=400, detail=str(e))

    status_code = 200 if result.success else 502
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.post("/list-to-ebay", response_model=MarketplaceResult)
async def list_to_ebay(
    photos: List[UploadFile] = File(...),
    listing: str = Form(...),
    listing_id: Optional[str] = Form(None),
    photo_host: PhotoHostingClient = Depends(get_photo_host),
    poster: ListingPoster = Depends(get_listing_poster),
):
    """Host the uploaded photos, then post the draft sent as JSON in the listing field."""
    try:
        draft = ListingDraft.model_validate_json(listing)
    except DraftValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid listing: {e}")

    hosted = await host_photos(photo_host, await read_photos(photos))
    data = PostingRequest.from_hosted_photos(draft, hosted, listing_id=listing_id)
    if not data.hosted_photo_urls:
        errors = "; ".join(f"{p.original_filename}: {p.error}" for p in hosted)
        raise HTTPException(status_code=400, detail=f"No photos could be hosted ({errors})")

    return await _post(poster, data, data.draft)


@router.post("/list-to-ebay-with-urls", response_model=MarketplaceResult)
async def list_to_ebay_with_urls(data: PostingRequest, poster: ListingPoster = Depends(get_listing_poster)):
    """Post one edited draft using photos that were already hosted during analysis."""
    return await _post(poster, data, data.draft)


@router.post("/list-book-to-ebay", response_model=MarketplaceResult)
async def list_book_to_ebay(data: PostingRequest, poster: ListingPoster = Depends(get_listing_poster)):
    draft = data.draft
    if not draft.listing_type.is_book:
        draft = draft.model_copy(update={"listing_type": ListingType.BOOK_ITEM})

    errors = validate_book_draft(draft)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))

    return await _post(poster, data, draft)


@router.post("/list-batch", response_model=BatchSummary)
async def list_batch(
    data: BatchPostingRequest,
    chunked: bool = Query(False),
    batch_size: Optional[int] = Query(None, ge=1),
    poster: ListingPoster = Depends(get_listing_poster),
):
    if not data.listings:
        raise HTTPException(status_code=400, detail="No listings provided")

    logger.info(f"Batch posting {len(data.listings)} listings (chunked={chunked})")
    if chunked:
        return await poster.post_in_batches(data.listings, batch_size=batch_size)
    return await poster.post_all(data.listings)
