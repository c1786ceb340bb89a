from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


class ListingType(str, Enum):
    GENERAL_LISTING = "GENERAL_LISTING"
    BOOK_ITEM = "BOOK_ITEM"
    BOOK_LOTS = "BOOK_LOTS"
    CD_MUSIC = "CD_MUSIC"
    DVD_MOVIE = "DVD_MOVIE"
    VHS_LISTING = "VHS_LISTING"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "ListingType":
        """Resolve a client-supplied tag, falling back to a general listing."""
        if isinstance(tag, cls):
            return tag
        try:
            return cls((tag or "").strip().upper())
        except ValueError:
            return cls.GENERAL_LISTING

    @property
    def is_book(self) -> bool:
        return self in (ListingType.BOOK_ITEM, ListingType.BOOK_LOTS)


class Photo(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    filename: str
    mime_type: str = "image/jpeg"


class UploadResult(BaseModel):
    success: bool
    original_filename: str
    hosted_url: Optional[str] = None
    error: Optional[str] = None


class HostedPhoto(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    original_filename: str
    url: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _url_or_error(self):
        if (self.url is None) == (self.error is None):
            raise ValueError("exactly one of url or error must be set")
        return self

    @property
    def hosted(self) -> bool:
        return self.url is not None


class AnalysisResult(BaseModel):
    raw_response: str
    listing_type: ListingType = ListingType.GENERAL_LISTING
    photo_count: int
    hosted_photos: List[HostedPhoto]

    @computed_field
    @property
    def hosted_urls(self) -> List[str]:
        """Successfully hosted URLs in photo order, ready to post with."""
        return [photo.url for photo in sorted(self.hosted_photos, key=lambda p: p.index) if photo.hosted]


def _specific_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item is not None)
    return str(value)


class ListingDraft(BaseModel):
    """
    Normalized listing generated by the model and edited by the user.

    Edits go through model_copy(update=...). item_specifics is always a new
    dict owned by the draft, never the caller's, so changing the source dict
    after validation does not change the draft. Do not mutate it in place;
    the request XML is built from it before the AddItem call is sent.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    price: Decimal = Field(gt=0)
    condition: Optional[str] = None
    category: Optional[str] = None
    description: str = ""
    item_specifics: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("item_specifics", "itemSpecifics"),
    )
    shipping: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    listing_type: ListingType = Field(
        default=ListingType.GENERAL_LISTING,
        validation_alias=AliasChoices("listing_type", "listingType"),
    )

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("price", mode="before")
    @classmethod
    def _price_from_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lstrip("$").replace(",", "")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("item_specifics", mode="before")
    @classmethod
    def _specifics_as_strings(cls, value: Any) -> Dict[str, str]:
        # Models return numbers for fields like Publication Year and lists for Features
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("item_specifics must be an object")
        return {str(k): _specific_text(v) for k, v in value.items() if v is not None}

    @field_validator("listing_type", mode="before")
    @classmethod
    def _known_listing_type(cls, value: Any) -> ListingType:
        return ListingType.from_tag(value)


class PostingRequest(BaseModel):
    listing_id: Optional[str] = None
    draft: ListingDraft
    hosted_photo_urls: List[str] = Field(default_factory=list)

    @classmethod
    def from_hosted_photos(cls, draft: ListingDraft, hosted_photos: List[HostedPhoto], listing_id: str = None):
        """Keep only successfully hosted photos, in original photo order."""
        ordered = sorted(hosted_photos, key=lambda p: p.index)
        return cls(
            listing_id=listing_id,
            draft=draft,
            hosted_photo_urls=[photo.url for photo in ordered if photo.hosted],
        )

    @property
    def usable_photo_urls(self) -> List[str]:
        return [url.strip() for url in self.hosted_photo_urls if url and url.strip()]


class MarketplaceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    ack: Optional[str] = None
    item_id: Optional[str] = None
    listing_url: Optional[str] = None
    insertion_fee: Optional[Decimal] = None
    currency: Optional[str] = None
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    raw_response: Optional[str] = None
    listing_id: Optional[str] = None
    hosted_photo_urls: List[str] = Field(default_factory=list)


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int
    results: List[MarketplaceResult]
