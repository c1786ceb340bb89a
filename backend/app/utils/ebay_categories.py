"""
Condition and category mapping for the eBay Trading API.

Turns the free-text condition and category the model (or the user) wrote into
eBay ConditionID and CategoryID codes, and fills in the item specifics eBay
requires for books.

The category mapping is a keyword heuristic. It picks a sensible leaf
category most of the time; it is not a guarantee that eBay will accept it
(CategoryMappingAllowed lets eBay remap retired IDs). The tables are tied to
eBay's taxonomy at the time they were written, so they live in a versioned
MappingTables object that can be swapped without touching the lookup code.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from app.models.listing import ListingDraft, ListingType

logger = logging.getLogger(__name__)

BOOK_FICTION = "377"
BOOK_NONFICTION = "29792"
BOOK_TEXTBOOKS = "172562"
BOOK_CHILDRENS = "11450"
MUSIC_CDS = "176985"
DVDS_BLU_RAY = "617"
VHS_TAPES = "309"

BOOK_CATEGORY_IDS = frozenset([BOOK_FICTION, BOOK_NONFICTION, BOOK_TEXTBOOKS, BOOK_CHILDRENS])

REQUIRED_BOOK_SPECIFICS = (
    "Book Title", "Author", "Format", "Language", "Topic", "Publisher", "Publication Year", "ISBN",
)
OPTIONAL_BOOK_SPECIFICS = ("Edition", "Series", "Reading Level", "Number of Pages", "Special Features")

BOOK_SPECIFIC_DEFAULTS = {
    "Author": "Unknown",
    "Format": "Paperback",
    "Language": "English",
    "Topic": "General",
    "Reading Level": "Adult",
}


@dataclass(frozen=True)
class MappingTables:
    version: str
    book_conditions: Dict[str, str]
    general_conditions: Dict[str, str]
    condition_aliases: Dict[str, str]
    default_condition_id: str
    # (category id, keywords) pairs checked in order
    book_categories: List[Tuple[str, Tuple[str, ...]]]
    default_book_category_id: str
    media_by_type: Dict[ListingType, str]
    media_keywords: List[Tuple[str, Tuple[str, ...]]]
    general_categories: List[Tuple[str, Tuple[str, ...]]]
    default_category_id: str
    book_keywords: Tuple[str, ...] = field(default=("book",))


DEFAULT_MAPPING_TABLES = MappingTables(
    version="trading-967",
    book_conditions={
        "very good": "4000",
        "good": "5000",
        "acceptable": "6000",
    },
    general_conditions={
        "new": "1000",
        "brand new": "1000",
        "new other": "1500",
        "open box": "1500",
        "used": "3000",
        "very good": "4000",
        "good": "5000",
        "acceptable": "6000",
        "for parts or not working": "7000",
    },
    condition_aliases={
        "like new": "very good",
        "excellent": "very good",
        "fair": "acceptable",
    },
    default_condition_id="5000",
    # Nonfiction goes first: "non-fiction" contains "fiction"
    book_categories=[
        (BOOK_NONFICTION, ("non-fiction", "nonfiction", "biography", "history", "memoir")),
        (BOOK_TEXTBOOKS, ("textbook", "education")),
        (BOOK_CHILDRENS, ("children", "kids")),
        (BOOK_FICTION, ("fiction", "literature", "novel")),
    ],
    default_book_category_id=BOOK_FICTION,
    media_by_type={
        ListingType.CD_MUSIC: MUSIC_CDS,
        ListingType.DVD_MOVIE: DVDS_BLU_RAY,
        ListingType.VHS_LISTING: VHS_TAPES,
    },
    media_keywords=[
        (MUSIC_CDS, ("music", "cd")),
        (DVDS_BLU_RAY, ("dvd", "movie", "blu-ray")),
        (VHS_TAPES, ("vhs",)),
    ],
    general_categories=[
        ("58058", ("electronic", "computer", "phone")),
        ("1", ("collectible", "vintage")),
        ("220", ("toy", "game", "hobby")),
        ("281", ("jewelry", "watch", "necklace", "ring")),
        ("888", ("sport", "fitness", "exercise")),
        ("550", ("art", "painting", "sculpture")),
    ],
    default_category_id="88433",
)

TRAILING_SUBTITLE = re.compile(r"\s*:\s*.*$")
TRAILING_BY_AUTHOR = re.compile(r"\s+by\s+.*$", re.IGNORECASE)
TRAILING_DESCRIPTION = re.compile(r"\s+-\s+.*$")
AUTHOR_IN_TITLE = re.compile(r"\bby\s+([^-:]+)", re.IGNORECASE)


class ListingFieldNormalizer:
    def __init__(self, tables: MappingTables = DEFAULT_MAPPING_TABLES):
        self.tables = tables

    def condition_id(self, condition: Optional[str], listing_type: ListingType = ListingType.GENERAL_LISTING) -> str:
        """Map a human-readable condition to an eBay ConditionID."""
        key = (condition or "").strip().lower()
        key = self.tables.condition_aliases.get(key, key)

        table = self.tables.book_conditions if listing_type.is_book else self.tables.general_conditions
        if key in table:
            return table[key]

        if key:
            logger.info(f"Unmapped condition '{condition}', using default {self.tables.default_condition_id}")
        return self.tables.default_condition_id

    def category_id(self, category: Optional[str], listing_type: ListingType = ListingType.GENERAL_LISTING) -> str:
        """
        Pick an eBay category ID from the listing type and the category text.

        Books first (by listing type or "book" in the text), then CD/DVD/VHS,
        then general keyword matches, then the default category.
        """
        text = (category or "").lower()

        if listing_type.is_book or any(keyword in text for keyword in self.tables.book_keywords):
            return self._match(text, self.tables.book_categories, self.tables.default_book_category_id)

        if listing_type in self.tables.media_by_type:
            return self.tables.media_by_type[listing_type]

        return self._match(
            text,
            self.tables.media_keywords + self.tables.general_categories,
            self.tables.default_category_id,
        )

    @staticmethod
    def _match(text: str, table: List[Tuple[str, Tuple[str, ...]]], default: str) -> str:
        for category_id, keywords in table:
            for keyword in keywords:
                if keyword in text:
                    return category_id
        return default

    def is_book_category(self, category_id: str) -> bool:
        return category_id in BOOK_CATEGORY_IDS

    def book_item_specifics(self, title: str, specifics: Dict[str, str]) -> Dict[str, str]:
        """
        Fill in the item specifics eBay requires for books.

        Missing Book Title and Author are guessed from the listing title
        ("Title: Subtitle by Author - notes"). This is a best-effort fallback:
        a title with "by" inside a proper name will produce a wrong author.
        Values the caller supplied always win.
        """
        result = dict(specifics)

        if not lookup_specific(result, "Book Title"):
            result["Book Title"] = book_title_from_listing_title(title)

        if not lookup_specific(result, "Author"):
            result["Author"] = author_from_listing_title(title) or BOOK_SPECIFIC_DEFAULTS["Author"]

        for name in ("Format", "Language"):
            if not lookup_specific(result, name):
                result[name] = BOOK_SPECIFIC_DEFAULTS[name]

        return result


def lookup_specific(specifics: Dict[str, str], name: str) -> str:
    """Case-insensitive item specifics lookup; returns '' when absent or blank."""
    wanted = name.lower()
    for key, value in specifics.items():
        if key.strip().lower() == wanted and value is not None and str(value).strip():
            return str(value).strip()
    return ""


def book_title_from_listing_title(title: str) -> str:
    book_title = (title or "").strip()
    book_title = TRAILING_SUBTITLE.sub("", book_title).strip()
    book_title = TRAILING_BY_AUTHOR.sub("", book_title).strip()
    book_title = TRAILING_DESCRIPTION.sub("", book_title).strip()
    return book_title or (title or "").strip()


def author_from_listing_title(title: str) -> Optional[str]:
    match = AUTHOR_IN_TITLE.search(title or "")
    if not match:
        return None
    author = match.group(1).strip()
    return author or None


def normalize_isbn(isbn: Optional[str]) -> Optional[str]:
    """Strip hyphens and spaces; return None unless it is a 10 or 13 character ISBN."""
    if not isbn:
        return None
    cleaned = re.sub(r"[-\s]", "", isbn).upper()
    if re.fullmatch(r"\d{9}[\dX]", cleaned) or re.fullmatch(r"\d{13}", cleaned):
        return cleaned
    return None


def validate_book_draft(draft: ListingDraft) -> List[str]:
    """Return the problems that make a book draft unpostable (empty when it is fine)."""
    errors = []
    if not draft.title.strip():
        errors.append("Title is required")
    if draft.price <= 0:
        errors.append("Valid price is required")
    isbn = lookup_specific(draft.item_specifics, "ISBN")
    if isbn and normalize_isbn(isbn) is None:
        errors.append("Invalid ISBN format")
    return errors


# Global instance
field_normalizer = ListingFieldNormalizer()
