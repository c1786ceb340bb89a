import logging
from typing import Dict, Optional

import httpx

from app.exceptions import MarketplaceError, TransportError

logger = logging.getLogger(__name__)


class TradingAPIClient:
    """Posts XML calls to the eBay Trading API with the seller's static credentials."""

    def __init__(
        self,
        endpoint: str,
        dev_id: str = "",
        app_id: str = "",
        cert_id: str = "",
        site_id: str = "0",
        compatibility_level: str = "967",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.dev_id = dev_id
        self.app_id = app_id
        self.cert_id = cert_id
        self.site_id = site_id
        self.compatibility_level = compatibility_level
        self.timeout = timeout
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "TradingAPIClient":
        return cls(
            endpoint=settings.trading_api_url,
            dev_id=settings.ebay_dev_id,
            app_id=settings.ebay_app_id,
            cert_id=settings.ebay_cert_id,
            site_id=settings.ebay_site_id,
            compatibility_level=settings.ebay_compatibility_level,
            timeout=settings.ebay_api_timeout,
            http_client=http_client,
        )

    def _headers(self, call_name: str) -> Dict[str, str]:
        return {
            'X-EBAY-API-COMPATIBILITY-LEVEL': self.compatibility_level,
            'X-EBAY-API-DEV-NAME': self.dev_id,
            'X-EBAY-API-APP-NAME': self.app_id,
            'X-EBAY-API-CERT-NAME': self.cert_id,
            'X-EBAY-API-CALL-NAME': call_name,
            'X-EBAY-API-SITEID': self.site_id,
            'Content-Type': 'text/xml',
        }

    async def call(self, call_name: str, xml_request: str) -> str:
        """
        Send one Trading API call and return the response body.

        Raises TransportError on network failures and timeouts, and
        MarketplaceError (with the body attached) on a non-200 status.
        """
        headers = self._headers(call_name)
        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    self.endpoint, content=xml_request.encode("utf-8"), headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.endpoint, content=xml_request.encode("utf-8"), headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"eBay {call_name} call timed out after {self.timeout}s")
            raise TransportError(f"eBay {call_name} call timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"Network error calling eBay {call_name}: {str(e)}")
            raise TransportError(f"Network error calling eBay {call_name}: {str(e)}") from e

        if response.status_code != 200:
            logger.error(f"eBay {call_name} returned HTTP {response.status_code}: {response.text}")
            raise MarketplaceError(f"eBay {call_name} returned HTTP {response.status_code}", raw_response=response.text)

        return response.text

    async def add_item(self, xml_request: str) -> str:
        return await self.call('AddItem', xml_request)
