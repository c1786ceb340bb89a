import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.dependencies import get_orchestrator
from app.exceptions import ParseError, ValidationError, VisionAPIError
from app.models.listing import AnalysisResult, ListingDraft, ListingType, Photo
from app.utils.analysis import AnalysisOrchestrator
from app.utils.response_extractor import extract_listing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["AI Listing Generator"])


class ExtractRequest(BaseModel):
    raw_response: str
    listing_type: Optional[str] = None


async def read_photos(uploads: List[UploadFile]) -> List[Photo]:
    photos = []
    for index, upload in enumerate(uploads):
        photos.append(
            Photo(
                content=await upload.read(),
                filename=upload.filename or f"photo_{index}.jpg",
                mime_type=upload.content_type or "image/jpeg",
            )
        )
    return photos


@router.post("/analyze", response_model=AnalysisResult)
async def analyze_photos(
    photos: List[UploadFile] = File(...),
    prompt: str = Form(...),
    listing_type: str = Form(ListingType.GENERAL_LISTING.value),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    items = await read_photos(photos)

    try:
        return await orchestrator.analyze(items, prompt, ListingType.from_tag(listing_type))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except VisionAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/extract", response_model=ListingDraft)
async def extract_listing_draft(data: ExtractRequest):
    try:
        return extract_listing(data.raw_response, data.listing_type)
    except ParseError as e:
        logger.warning(f"Could not parse model response: {e}")
        return JSONResponse(status_code=422, content={"detail": str(e), "raw_response": e.raw_text})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
