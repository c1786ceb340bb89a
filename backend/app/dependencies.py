from fastapi import Depends, HTTPException

from app.config import Settings, get_settings
from app.exceptions import ConfigurationError
from app.utils.analysis import AnalysisOrchestrator
from app.utils.listing_poster import ListingPoster
from app.utils.photo_host import PhotoHostingClient
from app.utils.trading_api import TradingAPIClient
from app.utils.trading_xml import AddItemRequestBuilder, ListingDefaults
from app.utils.vision import VisionClient


def get_photo_host(settings: Settings = Depends(get_settings)) -> PhotoHostingClient:
    return PhotoHostingClient.from_settings(settings)


def get_vision_client(settings: Settings = Depends(get_settings)) -> VisionClient:
    try:
        return VisionClient.from_settings(settings)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))


def get_orchestrator(
    vision_client: VisionClient = Depends(get_vision_client),
    photo_host: PhotoHostingClient = Depends(get_photo_host),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(vision_client, photo_host)


def get_request_builder(settings: Settings = Depends(get_settings)) -> AddItemRequestBuilder:
    try:
        settings.validate_for_posting()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return AddItemRequestBuilder(settings.ebay_user_token, ListingDefaults.from_settings(settings))


def get_trading_client(settings: Settings = Depends(get_settings)) -> TradingAPIClient:
    return TradingAPIClient.from_settings(settings)


def get_listing_poster(
    settings: Settings = Depends(get_settings),
    builder: AddItemRequestBuilder = Depends(get_request_builder),
    trading_client: TradingAPIClient = Depends(get_trading_client),
) -> ListingPoster:
    return ListingPoster(
        builder,
        trading_client,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay_seconds,
    )
