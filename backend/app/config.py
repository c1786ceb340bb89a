"""
Runtime configuration for the listing backend.

Values come from the environment (and a local .env file). The settings object
is built once and treated as read-only afterwards.
"""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from app.exceptions import ConfigurationError

load_dotenv()

TRADING_API_URL = "https://api.ebay.com/ws/api.dll"
SANDBOX_TRADING_API_URL = "https://api.sandbox.ebay.com/ws/api.dll"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Listing backend configuration"""

    def __init__(self):
        # OpenAI vision
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.openai_model = os.getenv("OPENAI_MODEL", "gpt-4o")
        self.openai_max_tokens = int(os.getenv("OPENAI_MAX_TOKENS", "2000"))
        self.openai_temperature = float(os.getenv("OPENAI_TEMPERATURE", "0.1"))
        self.openai_timeout = float(os.getenv("OPENAI_TIMEOUT", "120"))

        # External photo host
        self.photo_host_url: Optional[str] = os.getenv("EXTERNAL_PHOTO_HOST_URL")
        self.photo_public_base = os.getenv("EXTERNAL_PHOTO_PUBLIC_BASE", "https://gamesighter.com/uploads")
        self.photo_upload_timeout = float(os.getenv("PHOTO_UPLOAD_TIMEOUT", "120"))
        self.max_photo_bytes = int(os.getenv("MAX_PHOTO_BYTES", str(10 * 1024 * 1024)))

        # eBay Trading API (static user token, no refresh)
        self.ebay_user_token: Optional[str] = os.getenv("EBAY_USER_TOKEN")
        self.ebay_dev_id = os.getenv("EBAY_DEV_ID", "")
        self.ebay_app_id = os.getenv("EBAY_APP_ID", "")
        self.ebay_cert_id = os.getenv("EBAY_CERT_ID", "")
        self.ebay_sandbox = _env_bool("EBAY_SANDBOX")
        self.ebay_site_id = os.getenv("EBAY_SITE_ID", "0")
        self.ebay_compatibility_level = os.getenv("EBAY_COMPATIBILITY_LEVEL", "967")
        self.ebay_api_timeout = float(os.getenv("EBAY_API_TIMEOUT", "30"))

        # Listing defaults
        self.postal_code = os.getenv("EBAY_POSTAL_CODE", "10001")
        self.payment_profile = os.getenv("EBAY_PAYMENT_PROFILE", "")
        self.shipping_profile = os.getenv("EBAY_SHIPPING_PROFILE", "")
        self.return_profile_id = os.getenv("EBAY_RETURN_PROFILE_ID", "")

        # Batch posting
        self.batch_size = int(os.getenv("BATCH_SIZE", "5"))
        self.batch_delay_seconds = float(os.getenv("BATCH_DELAY_SECONDS", "2"))

        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    @property
    def trading_api_url(self) -> str:
        return SANDBOX_TRADING_API_URL if self.ebay_sandbox else TRADING_API_URL

    def validate_for_posting(self):
        """Validate the settings needed to call the Trading API"""
        if not self.ebay_user_token:
            raise ConfigurationError("EBAY_USER_TOKEN not set")

    def validate_for_analysis(self):
        """Validate the settings needed to call the vision model"""
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY not set")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
