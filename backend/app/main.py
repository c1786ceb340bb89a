from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, get_settings
from app.logging_config import configure_logging
from app.routers import image_upload, listing, listing_ai

configure_logging(get_settings().log_level)

app = FastAPI(title="SnapList backend")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(listing_ai.router)
app.include_router(image_upload.router)
app.include_router(listing.router)


@app.get("/")
def root():
    return {"message": "SnapList backend is live"}


@app.get("/api/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "openai_configured": bool(settings.openai_api_key),
        "photo_host_configured": bool(settings.photo_host_url),
        "ebay_configured": bool(settings.ebay_user_token),
        "ebay_sandbox": settings.ebay_sandbox,
    }
