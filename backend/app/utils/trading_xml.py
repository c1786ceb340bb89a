"""
AddItem request builder and response parser for the eBay Trading API.

Requests are plain f-string templates; every interpolated value goes through
escape_xml. Output is deterministic: the same draft and photo URLs always
produce the same bytes.

Responses are read with targeted regular expressions instead of a full XML
parse, so a truncated or malformed body still yields Ack/ItemID/errors when
they are present.
"""
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence
from xml.sax.saxutils import escape, unescape

from app.models.listing import ListingDraft, ListingType, MarketplaceResult
from app.utils.ebay_categories import (
    BOOK_SPECIFIC_DEFAULTS,
    OPTIONAL_BOOK_SPECIFICS,
    REQUIRED_BOOK_SPECIFICS,
    ListingFieldNormalizer,
    field_normalizer,
    lookup_specific,
    normalize_isbn,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 80
PARSE_FAILURE = "parse failure"
ITEM_URL = "https://www.ebay.com/itm/{item_id}"

XML_ENTITIES = {'"': "&quot;", "'": "&#39;"}
XML_UNENTITIES = {"&quot;": '"', "&#39;": "'", "&apos;": "'"}

SHIPPING_SERVICES = {
    "usps media mail": "USPSMedia",
    "media mail": "USPSMedia",
    "usps priority mail": "USPSPriority",
    "priority mail": "USPSPriority",
    "usps ground advantage": "USPSGroundAdvantage",
    "ground advantage": "USPSGroundAdvantage",
    "usps first class": "USPSFirstClass",
}


def escape_xml(value) -> str:
    """Escape & < > " ' for element text and attribute values."""
    if value is None:
        return ""
    return escape(str(value), XML_ENTITIES)


def shipping_service_code(shipping: Optional[str], default: str) -> str:
    key = (shipping or "").strip().lower()
    if key in SHIPPING_SERVICES:
        return SHIPPING_SERVICES[key]
    if key in (code.lower() for code in SHIPPING_SERVICES.values()):
        return next(code for code in SHIPPING_SERVICES.values() if code.lower() == key)
    return default


@dataclass(frozen=True)
class ListingDefaults:
    """Seller-level values that do not come from the draft."""
    country: str = "US"
    currency: str = "USD"
    site: str = "US"
    location: str = "United States"
    postal_code: str = "10001"
    dispatch_time_max: int = 3
    listing_duration: str = "GTC"
    payment_profile: str = ""
    shipping_profile: str = ""
    return_profile_id: str = ""

    @classmethod
    def from_settings(cls, settings) -> "ListingDefaults":
        return cls(
            postal_code=settings.postal_code,
            payment_profile=settings.payment_profile,
            shipping_profile=settings.shipping_profile,
            return_profile_id=settings.return_profile_id,
        )

    @property
    def has_seller_profiles(self) -> bool:
        return bool(self.payment_profile and self.shipping_profile and self.return_profile_id)


class AddItemRequestBuilder:
    def __init__(
        self,
        credential: str,
        defaults: ListingDefaults = ListingDefaults(),
        normalizer: ListingFieldNormalizer = field_normalizer,
    ):
        self.credential = credential or ""
        self.defaults = defaults
        self.normalizer = normalizer

    def build(self, draft: ListingDraft, photo_urls: Sequence[str]) -> str:
        if draft.listing_type.is_book:
            return self.build_book(draft, photo_urls)
        return self.build_general(draft, photo_urls)

    def build_general(self, draft: ListingDraft, photo_urls: Sequence[str]) -> str:
        condition_id = self.normalizer.condition_id(draft.condition, draft.listing_type)
        category_id = self.normalizer.category_id(draft.category, draft.listing_type)

        specifics = dict(draft.item_specifics)
        if self.normalizer.is_book_category(category_id):
            # General listing that landed in a book category still needs the book specifics
            specifics = self.normalizer.book_item_specifics(draft.title, specifics)
            if not lookup_specific(specifics, "Book Series"):
                specifics["Book Series"] = "N/A"

        d = self.defaults
        return f"""<?xml version="1.0" encoding="utf-8"?>
<AddItemRequest xmlns="urn:ebay:apis:eBLBaseComponents">
  <RequesterCredentials>
    <eBayAuthToken>{escape_xml(self.credential)}</eBayAuthToken>
  </RequesterCredentials>
  <Item>
    <Title>{escape_xml(_listing_title(draft.title))}</Title>
    <Description>{escape_xml(draft.description or 'No description provided')}</Description>
    <PrimaryCategory>
      <CategoryID>{category_id}</CategoryID>
    </PrimaryCategory>
    <StartPrice>{_price(draft.price)}</StartPrice>
    <CategoryMappingAllowed>true</CategoryMappingAllowed>
    <Country>{escape_xml(d.country)}</Country>
    <Currency>{escape_xml(d.currency)}</Currency>
    <DispatchTimeMax>{d.dispatch_time_max}</DispatchTimeMax>
    <ListingDuration>{escape_xml(d.listing_duration)}</ListingDuration>
    <ListingType>FixedPriceItem</ListingType>
    <PostalCode>{escape_xml(d.postal_code)}</PostalCode>
    <Quantity>{draft.quantity}</Quantity>
{self._shipping_xml(draft.shipping, "USPSGroundAdvantage", free=True)}
    <Site>{escape_xml(d.site)}</Site>
    <ConditionID>{condition_id}</ConditionID>
{_picture_details_xml(photo_urls)}{_item_specifics_xml(specifics)}  </Item>
  <WarningLevel>High</WarningLevel>
</AddItemRequest>"""

    def build_book(self, draft: ListingDraft, photo_urls: Sequence[str]) -> str:
        listing_type = draft.listing_type if draft.listing_type.is_book else ListingType.BOOK_ITEM
        condition_id = self.normalizer.condition_id(draft.condition, listing_type)
        category_id = self.normalizer.category_id(draft.category, listing_type)

        specifics = book_specifics(self.normalizer, draft)
        description = draft.description or (
            f"{specifics['Book Title']} by {specifics['Author']}. From a smoke-free home. Fast shipping with tracking."
        )

        d = self.defaults
        return f"""<?xml version="1.0" encoding="utf-8"?>
<AddItemRequest xmlns="urn:ebay:apis:eBLBaseComponents">
  <RequesterCredentials>
    <eBayAuthToken>{escape_xml(self.credential)}</eBayAuthToken>
  </RequesterCredentials>
  <Item>
    <Title>{escape_xml(_listing_title(draft.title))}</Title>
    <Description>{escape_xml(description)}</Description>
    <PrimaryCategory>
      <CategoryID>{category_id}</CategoryID>
    </PrimaryCategory>
    <ConditionID>{condition_id}</ConditionID>
    <StartPrice>{_price(draft.price)}</StartPrice>
    <CategoryMappingAllowed>true</CategoryMappingAllowed>
    <Currency>{escape_xml(d.currency)}</Currency>
    <Country>{escape_xml(d.country)}</Country>
    <Location>{escape_xml(d.location)}</Location>
    <PostalCode>{escape_xml(d.postal_code)}</PostalCode>
    <DispatchTimeMax>{d.dispatch_time_max}</DispatchTimeMax>
    <ListingType>FixedPriceItem</ListingType>
    <ListingDuration>{escape_xml(d.listing_duration)}</ListingDuration>
    <Quantity>{draft.quantity}</Quantity>
{_picture_details_xml(photo_urls)}{_item_specifics_xml(specifics)}{self._book_shipping_xml(draft.shipping)}
    <ReturnPolicy>
      <ReturnsAcceptedOption>ReturnsAccepted</ReturnsAcceptedOption>
      <RefundOption>MoneyBack</RefundOption>
      <ReturnsWithinOption>Days_30</ReturnsWithinOption>
      <ShippingCostPaidByOption>Buyer</ShippingCostPaidByOption>
    </ReturnPolicy>
  </Item>
  <WarningLevel>High</WarningLevel>
</AddItemRequest>"""

    def _shipping_xml(self, shipping: Optional[str], default_service: str, free: bool) -> str:
        d = self.defaults
        if d.has_seller_profiles:
            return f"""    <SellerProfiles>
      <SellerPaymentProfile>
        <PaymentProfileName>{escape_xml(d.payment_profile)}</PaymentProfileName>
      </SellerPaymentProfile>
      <SellerShippingProfile>
        <ShippingProfileName>{escape_xml(d.shipping_profile)}</ShippingProfileName>
      </SellerShippingProfile>
      <SellerReturnProfile>
        <ReturnProfileID>{escape_xml(d.return_profile_id)}</ReturnProfileID>
      </SellerReturnProfile>
    </SellerProfiles>"""

        service = shipping_service_code(shipping, default_service)
        free_xml = "\n        <FreeShipping>true</FreeShipping>" if free else ""
        return f"""    <ShippingDetails>
      <ShippingType>Flat</ShippingType>
      <ShippingServiceOptions>
        <ShippingServicePriority>1</ShippingServicePriority>
        <ShippingService>{service}</ShippingService>
        <ShippingServiceCost>0.00</ShippingServiceCost>{free_xml}
      </ShippingServiceOptions>
    </ShippingDetails>"""

    def _book_shipping_xml(self, shipping: Optional[str]) -> str:
        # Media Mail first, Priority Mail as the paid upgrade
        service = shipping_service_code(shipping, "USPSMedia")
        upgrade = ""
        if service != "USPSPriority":
            upgrade = """
      <ShippingServiceOptions>
        <ShippingServicePriority>2</ShippingServicePriority>
        <ShippingService>USPSPriority</ShippingService>
        <ShippingServiceCost>8.99</ShippingServiceCost>
      </ShippingServiceOptions>"""
        return f"""    <ShippingDetails>
      <ShippingType>Flat</ShippingType>
      <ShippingServiceOptions>
        <ShippingServicePriority>1</ShippingServicePriority>
        <ShippingService>{service}</ShippingService>
        <ShippingServiceCost>0.00</ShippingServiceCost>
        <FreeShipping>true</FreeShipping>
      </ShippingServiceOptions>{upgrade}
    </ShippingDetails>"""


def book_specifics(normalizer: ListingFieldNormalizer, draft: ListingDraft) -> Dict[str, str]:
    """
    Item specifics for a book request, in a fixed key order.

    The required and optional book keys come first under their canonical
    names, then any other specifics the draft carries. Empty values stay in
    the dict and are dropped when the XML is rendered.
    """
    filled = normalizer.book_item_specifics(draft.title, draft.item_specifics)

    specifics = {}
    for name in REQUIRED_BOOK_SPECIFICS + OPTIONAL_BOOK_SPECIFICS:
        specifics[name] = lookup_specific(filled, name) or BOOK_SPECIFIC_DEFAULTS.get(name, "")

    if specifics["ISBN"]:
        specifics["ISBN"] = normalize_isbn(specifics["ISBN"]) or specifics["ISBN"]

    known = {name.lower() for name in specifics}
    for key, value in filled.items():
        if key.strip().lower() not in known:
            specifics[key] = value
    return specifics


def _listing_title(title: str) -> str:
    return title.strip()[:MAX_TITLE_LENGTH].rstrip()


def _price(price: Decimal) -> str:
    return f"{price:.2f}"


def _picture_details_xml(photo_urls: Sequence[str]) -> str:
    urls = [url for url in photo_urls or [] if url and url.strip()]
    if not urls:
        return ""
    pictures = "".join(f"      <PictureURL>{escape_xml(url.strip())}</PictureURL>\n" for url in urls)
    return f"""    <PictureDetails>
{pictures}      <GalleryType>Gallery</GalleryType>
    </PictureDetails>
"""


def _item_specifics_xml(specifics: Dict[str, str]) -> str:
    entries = [
        (name, str(value).strip())
        for name, value in specifics.items()
        if name and name.strip() and value is not None and str(value).strip()
    ]
    if not entries:
        return ""
    pairs = "".join(
        f"""      <NameValueList>
        <Name>{escape_xml(name.strip())}</Name>
        <Value>{escape_xml(value)}</Value>
      </NameValueList>
"""
        for name, value in entries
    )
    return f"""    <ItemSpecifics>
{pairs}    </ItemSpecifics>
"""


ACK_PATTERN = re.compile(r"<Ack>\s*(.*?)\s*</Ack>", re.DOTALL)
ITEM_ID_PATTERN = re.compile(r"<ItemID>\s*(.*?)\s*</ItemID>", re.DOTALL)
INSERTION_FEE_PATTERNS = (
    re.compile(r'<InsertionFee\s+currencyID="([^"]*)"\s*>\s*([^<]*?)\s*</InsertionFee>'),
    re.compile(
        r'<Name>\s*InsertionFee\s*</Name>\s*<Fee\s+currencyID="([^"]*)"\s*>\s*([^<]*?)\s*</Fee>',
        re.DOTALL,
    ),
)
ERRORS_PATTERN = re.compile(r"<Errors>(.*?)</Errors>", re.DOTALL)
LONG_MESSAGE_PATTERN = re.compile(r"<LongMessage>(.*?)</LongMessage>", re.DOTALL)
SHORT_MESSAGE_PATTERN = re.compile(r"<ShortMessage>(.*?)</ShortMessage>", re.DOTALL)
SEVERITY_PATTERN = re.compile(r"<SeverityCode>\s*(.*?)\s*</SeverityCode>", re.DOTALL)


def parse_add_item_response(xml_text) -> MarketplaceResult:
    """
    Read Ack, ItemID, insertion fee and errors out of an AddItem response.

    Never raises: anything unreadable comes back as a failed result with
    error "parse failure". The raw text is always kept on the result.
    """
    try:
        if isinstance(xml_text, bytes):
            xml_text = xml_text.decode("utf-8")
        if not isinstance(xml_text, str):
            raise TypeError(f"expected XML text, got {type(xml_text).__name__}")
        return _parse(xml_text)
    except Exception as e:
        logger.error(f"Failed to parse eBay response: {e}")
        raw = xml_text if isinstance(xml_text, str) else repr(xml_text)
        return MarketplaceResult(success=False, error=PARSE_FAILURE, raw_response=raw)


def _parse(xml_text: str) -> MarketplaceResult:
    ack_match = ACK_PATTERN.search(xml_text)
    ack = ack_match.group(1) if ack_match else "Unknown"

    if ack not in ("Success", "Warning"):
        return MarketplaceResult(
            success=False,
            ack=ack,
            error=_first_error_message(xml_text) or "Unknown eBay error",
            raw_response=xml_text,
        )

    item_match = ITEM_ID_PATTERN.search(xml_text)
    item_id = item_match.group(1) if item_match and item_match.group(1) else None
    fee, currency = _insertion_fee(xml_text)

    return MarketplaceResult(
        success=True,
        ack=ack,
        item_id=item_id,
        listing_url=ITEM_URL.format(item_id=item_id) if item_id else None,
        insertion_fee=fee,
        currency=currency,
        warnings=_warning_messages(xml_text) if ack == "Warning" else [],
        raw_response=xml_text,
    )


def _insertion_fee(xml_text: str):
    for pattern in INSERTION_FEE_PATTERNS:
        match = pattern.search(xml_text)
        if match:
            try:
                return Decimal(match.group(2)), match.group(1) or None
            except InvalidOperation:
                logger.warning(f"Unreadable insertion fee '{match.group(2)}'")
                return None, None
    return None, None


def _message(block: str) -> Optional[str]:
    match = LONG_MESSAGE_PATTERN.search(block) or SHORT_MESSAGE_PATTERN.search(block)
    if not match:
        return None
    return unescape(match.group(1).strip(), XML_UNENTITIES) or None


def _first_error_message(xml_text: str) -> Optional[str]:
    for block in ERRORS_PATTERN.findall(xml_text):
        severity = SEVERITY_PATTERN.search(block)
        if severity and severity.group(1) == "Warning":
            continue
        message = _message(block)
        if message:
            return message
    # Fall back to whatever the first block says, warning or not
    for block in ERRORS_PATTERN.findall(xml_text):
        message = _message(block)
        if message:
            return message
    return None


def _warning_messages(xml_text: str) -> List[str]:
    warnings = []
    for block in ERRORS_PATTERN.findall(xml_text):
        message = _message(block)
        if message:
            warnings.append(message)
    return warnings
