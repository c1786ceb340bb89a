import asyncio
import logging
from typing import List, Optional, Sequence

from app.exceptions import MarketplaceError, MissingPhotosError, TransportError
from app.models.listing import BatchSummary, ListingDraft, MarketplaceResult, PostingRequest
from app.utils.trading_api import TradingAPIClient
from app.utils.trading_xml import AddItemRequestBuilder, parse_add_item_response

logger = logging.getLogger(__name__)


class ListingPoster:
    """Turns drafts with hosted photo URLs into eBay listings, one at a time or in bulk."""

    def __init__(
        self,
        builder: AddItemRequestBuilder,
        trading_client: TradingAPIClient,
        batch_size: int = 5,
        batch_delay: float = 2.0,
    ):
        self.builder = builder
        self.trading_client = trading_client
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def post_listing(
        self,
        draft: ListingDraft,
        photo_urls: Sequence[str],
        listing_id: Optional[str] = None,
    ) -> MarketplaceResult:
        urls = [url.strip() for url in photo_urls or [] if url and url.strip()]
        if not urls:
            raise MissingPhotosError(f"No hosted photos for listing '{draft.title}'")

        xml_request = self.builder.build(draft, urls)
        logger.info(f"Posting '{draft.title}' ({draft.listing_type.value}) with {len(urls)} photo(s)")

        try:
            response_text = await self.trading_client.add_item(xml_request)
        except MarketplaceError as e:
            result = MarketplaceResult(success=False, error=str(e), raw_response=e.raw_response)
        except TransportError as e:
            result = MarketplaceResult(success=False, error=str(e))
        else:
            result = parse_add_item_response(response_text)

        if result.success:
            logger.info(f"Listed '{draft.title}' as item {result.item_id}")
        else:
            logger.warning(f"eBay rejected '{draft.title}': {result.error}")

        return result.model_copy(update={"listing_id": listing_id, "hosted_photo_urls": urls})

    async def post_all(self, requests: Sequence[PostingRequest]) -> BatchSummary:
        """
        Post every request concurrently and report each outcome in input order.

        A listing that fails, including one rejected before any network call
        for having no photos, is reported as a failed result and never stops
        the others.
        """
        outcomes = await asyncio.gather(
            *(self.post_listing(r.draft, r.hosted_photo_urls, r.listing_id) for r in requests),
            return_exceptions=True,
        )

        results: List[MarketplaceResult] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, MarketplaceResult):
                results.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            logger.error(f"Listing '{request.draft.title}' failed: {outcome}")
            results.append(
                MarketplaceResult(
                    success=False,
                    error=str(outcome) or type(outcome).__name__,
                    listing_id=request.listing_id,
                    hosted_photo_urls=request.usable_photo_urls,
                )
            )

        successful = sum(1 for result in results if result.success)
        logger.info(f"Batch complete: {successful}/{len(results)} listed")
        return BatchSummary(
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=results,
        )

    async def post_in_batches(
        self,
        requests: Sequence[PostingRequest],
        batch_size: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> BatchSummary:
        """Like post_all, but in chunks of batch_size with a pause between chunks."""
        batch_size = batch_size or self.batch_size
        delay = self.batch_delay if delay is None else delay
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        results: List[MarketplaceResult] = []
        for start in range(0, len(requests), batch_size):
            if start:
                await asyncio.sleep(delay)
            chunk = requests[start:start + batch_size]
            logger.info(f"Posting batch {start // batch_size + 1} ({len(chunk)} listings)")
            summary = await self.post_all(chunk)
            results.extend(summary.results)

        successful = sum(1 for result in results if result.success)
        return BatchSummary(
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=results,
        )
