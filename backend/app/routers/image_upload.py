import asyncio
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from app.dependencies import get_photo_host
from app.models.listing import UploadResult
from app.utils.photo_host import PhotoHostingClient

router = APIRouter(prefix="/api/upload", tags=["Image Upload"])


async def _upload_one(photo_host: PhotoHostingClient, file: UploadFile) -> UploadResult:
    content = await file.read()
    return await photo_host.upload(content, file.filename or "photo.jpg", file.content_type or "image/jpeg")


@router.post("", response_model=UploadResult)
async def upload_image(file: UploadFile = File(...), photo_host: PhotoHostingClient = Depends(get_photo_host)):
    return await _upload_one(photo_host, file)


@router.post("/multiple")
async def upload_multiple_images(
    files: List[UploadFile] = File(...),
    photo_host: PhotoHostingClient = Depends(get_photo_host),
):
    results = await asyncio.gather(*(_upload_one(photo_host, file) for file in files))
    return {
        "files": results,
        "successful": sum(1 for result in results if result.success),
        "failed": sum(1 for result in results if not result.success),
    }
