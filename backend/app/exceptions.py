class ListingServiceError(Exception):
    """Base exception for the listing backend."""
    pass

class ConfigurationError(ListingServiceError):
    """Raised when a required setting is missing."""
    pass

class ValidationError(ListingServiceError):
    """Raised when required input is missing or unusable. No network work has started."""
    pass

class MissingPhotosError(ValidationError):
    """Raised when a listing has no successfully hosted photo URLs."""
    pass

class ParseError(ListingServiceError):
    """Raised when a model response can not be read as a JSON object."""

    def __init__(self, message: str, raw_text=None):
        super().__init__(message)
        self.raw_text = raw_text

class UploadError(ListingServiceError):
    """Raised when a photo could not be hosted."""
    pass

class VisionAPIError(ListingServiceError):
    """Raised when the vision model call fails."""
    pass

class TransportError(ListingServiceError):
    """Raised on network or timeout failures talking to an upstream service."""
    pass

class MarketplaceError(ListingServiceError):
    """Raised when the Trading API rejects a request."""

    def __init__(self, message: str, raw_response=None):
        super().__init__(message)
        self.raw_response = raw_response
