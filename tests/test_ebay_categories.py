import pytest
from decimal import Decimal

from app.models.listing import ListingDraft, ListingType
from app.utils.ebay_categories import (
    BOOK_CHILDRENS,
    BOOK_FICTION,
    BOOK_NONFICTION,
    BOOK_TEXTBOOKS,
    DEFAULT_MAPPING_TABLES,
    DVDS_BLU_RAY,
    MUSIC_CDS,
    VHS_TAPES,
    ListingFieldNormalizer,
    MappingTables,
    author_from_listing_title,
    book_title_from_listing_title,
    lookup_specific,
    normalize_isbn,
    validate_book_draft,
)

normalizer = ListingFieldNormalizer()

"""
Condition mapping
"""

@pytest.mark.parametrize("condition", list(DEFAULT_MAPPING_TABLES.book_conditions))
def test_every_book_condition_has_a_code(condition):
    assert normalizer.condition_id(condition, ListingType.BOOK_ITEM)


@pytest.mark.parametrize("condition", list(DEFAULT_MAPPING_TABLES.general_conditions))
def test_every_general_condition_has_a_code(condition):
    assert normalizer.condition_id(condition, ListingType.GENERAL_LISTING)


@pytest.mark.parametrize("listing_type", [ListingType.BOOK_ITEM, ListingType.GENERAL_LISTING])
def test_like_new_maps_to_very_good(listing_type):
    assert normalizer.condition_id("Like New", listing_type) == normalizer.condition_id("Very Good", listing_type)


def test_condition_lookup_ignores_case_and_whitespace():
    assert normalizer.condition_id("  GOOD ", ListingType.BOOK_ITEM) == "5000"


@pytest.mark.parametrize("condition", [None, "", "Pristine-ish"])
def test_unknown_condition_falls_back_to_mid_tier(condition):
    assert normalizer.condition_id(condition) == DEFAULT_MAPPING_TABLES.default_condition_id


def test_new_is_not_a_book_condition():
    # Book table only knows the used grades
    assert normalizer.condition_id("New", ListingType.BOOK_ITEM) == "5000"
    assert normalizer.condition_id("New", ListingType.GENERAL_LISTING) == "1000"


"""
Category mapping
"""

@pytest.mark.parametrize("category,expected", [
    ("Books > Non-Fiction > History", BOOK_NONFICTION),
    ("Biography", BOOK_NONFICTION),
    ("College Textbook", BOOK_TEXTBOOKS),
    ("Children's Books", BOOK_CHILDRENS),
    ("Literary Fiction", BOOK_FICTION),
    ("", BOOK_FICTION),
    (None, BOOK_FICTION),
])
def test_book_categories(category, expected):
    assert normalizer.category_id(category, ListingType.BOOK_ITEM) == expected


def test_book_keyword_routes_general_listing_to_books():
    assert normalizer.category_id("Books > Cookbooks", ListingType.GENERAL_LISTING) == BOOK_FICTION


@pytest.mark.parametrize("listing_type,expected", [
    (ListingType.CD_MUSIC, MUSIC_CDS),
    (ListingType.DVD_MOVIE, DVDS_BLU_RAY),
    (ListingType.VHS_LISTING, VHS_TAPES),
])
def test_media_types_use_fixed_categories(listing_type, expected):
    assert normalizer.category_id("Whatever", listing_type) == expected


def test_general_keywords_and_default():
    assert normalizer.category_id("Consumer Electronics > Phones") == "58058"
    assert normalizer.category_id("Blu-ray box set") == DVDS_BLU_RAY
    assert normalizer.category_id("Garden > Planters") == DEFAULT_MAPPING_TABLES.default_category_id


def test_mapping_tables_can_be_swapped():
    tables = MappingTables(
        version="test-1",
        book_conditions={"good": "5000"},
        general_conditions={"mint": "1000"},
        condition_aliases={},
        default_condition_id="3000",
        book_categories=[],
        default_book_category_id="267",
        media_by_type={},
        media_keywords=[],
        general_categories=[("999", ("widget",))],
        default_category_id="1",
    )
    custom = ListingFieldNormalizer(tables)

    assert custom.condition_id("Mint") == "1000"
    assert custom.condition_id("Used") == "3000"
    assert custom.category_id("Blue widget") == "999"
    assert custom.category_id("anything", ListingType.BOOK_ITEM) == "267"


"""
Book metadata fallback
"""

def test_book_title_strips_subtitle_author_and_notes():
    assert book_title_from_listing_title("The Hobbit: There and Back Again by Tolkien") == "The Hobbit"
    assert book_title_from_listing_title("Dune by Frank Herbert - 1st Printing") == "Dune"
    assert book_title_from_listing_title("Cosmos - Hardcover") == "Cosmos"


def test_author_from_title():
    assert author_from_listing_title("Dune by Frank Herbert - 1st Printing") == "Frank Herbert"
    assert author_from_listing_title("Dune") is None
    # "by" inside a word is not an author marker
    assert author_from_listing_title("Ruby Programming Guide") is None


def test_book_item_specifics_fills_missing_fields():
    specifics = normalizer.book_item_specifics("Dune by Frank Herbert", {})
    assert specifics == {
        "Book Title": "Dune",
        "Author": "Frank Herbert",
        "Format": "Paperback",
        "Language": "English",
    }


def test_book_item_specifics_keeps_supplied_values():
    supplied = {"author": "F. Herbert", "Format": "Hardcover", "Language": " "}
    specifics = normalizer.book_item_specifics("Dune by Frank Herbert", supplied)

    assert specifics["author"] == "F. Herbert"
    assert "Author" not in specifics
    assert specifics["Format"] == "Hardcover"
    assert specifics["Language"] == "English"
    assert supplied == {"author": "F. Herbert", "Format": "Hardcover", "Language": " "}


def test_book_item_specifics_is_deterministic():
    first = normalizer.book_item_specifics("Emma by Jane Austen", {"ISBN": "x"})
    second = normalizer.book_item_specifics("Emma by Jane Austen", {"ISBN": "x"})
    assert first == second


def test_lookup_specific_is_case_insensitive():
    assert lookup_specific({" isbn ": " 123 "}, "ISBN") == "123"
    assert lookup_specific({"ISBN": ""}, "ISBN") == ""


@pytest.mark.parametrize("isbn,expected", [
    ("978-0-547-92822-7", "9780547928227"),
    ("0 306 40615 2", "0306406152"),
    ("080442957x", "080442957X"),
    ("12345", None),
    ("", None),
    (None, None),
])
def test_normalize_isbn(isbn, expected):
    assert normalize_isbn(isbn) == expected


def test_validate_book_draft():
    good = ListingDraft(title="Dune", price=Decimal("5"), item_specifics={"ISBN": "0441013597"})
    bad = ListingDraft(title="Dune", price=Decimal("5"), item_specifics={"ISBN": "not-an-isbn"})

    assert validate_book_draft(good) == []
    assert validate_book_draft(bad) == ["Invalid ISBN format"]
