# tests/conftest.py
from decimal import Decimal

import pytest

from app.config import Settings
from app.models.listing import ListingDraft, ListingType, Photo

SUCCESS_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<AddItemResponse xmlns="urn:ebay:apis:eBLBaseComponents">
  <Timestamp>2024-05-01T12:00:00.000Z</Timestamp>
  <Ack>Success</Ack>
  <Version>967</Version>
  <ItemID>110553837012</ItemID>
  <Fees>
    <Fee>
      <Name>InsertionFee</Name>
      <Fee currencyID="USD">0.35</Fee>
    </Fee>
  </Fees>
</AddItemResponse>"""

FAILURE_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<AddItemResponse xmlns="urn:ebay:apis:eBLBaseComponents">
  <Ack>Failure</Ack>
  <Errors>
    <ShortMessage>Invalid category.</ShortMessage>
    <LongMessage>The category selected is not a leaf category.</LongMessage>
    <ErrorCode>87</ErrorCode>
    <SeverityCode>Error</SeverityCode>
  </Errors>
</AddItemResponse>"""


@pytest.fixture
def settings(monkeypatch):
    """Settings built from a controlled environment"""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EXTERNAL_PHOTO_HOST_URL", "https://photos.example.com/upload.php")
    monkeypatch.setenv("EXTERNAL_PHOTO_PUBLIC_BASE", "https://photos.example.com/uploads")
    monkeypatch.setenv("EBAY_USER_TOKEN", "v^1.1#i^1#token")
    monkeypatch.setenv("EBAY_DEV_ID", "dev")
    monkeypatch.setenv("EBAY_APP_ID", "app")
    monkeypatch.setenv("EBAY_CERT_ID", "cert")
    monkeypatch.setenv("EBAY_SANDBOX", "true")
    monkeypatch.setenv("BATCH_DELAY_SECONDS", "0")
    return Settings()


@pytest.fixture
def photos():
    return [
        Photo(content=f"jpeg-bytes-{i}".encode(), filename=f"item_{i}.jpg", mime_type="image/jpeg")
        for i in range(3)
    ]


@pytest.fixture
def general_draft():
    return ListingDraft(
        title="Vintage Pyrex Mixing Bowl Set",
        price=Decimal("34.99"),
        condition="Used",
        category="Collectibles > Kitchen",
        description="Four nesting bowls, light wear.",
        item_specifics={"Brand": "Pyrex", "Color": "Primary"},
        shipping="USPS Ground Advantage",
    )


@pytest.fixture
def book_draft():
    return ListingDraft(
        title="The Hobbit: There and Back Again by J.R.R. Tolkien",
        price=Decimal("12.50"),
        condition="Like New",
        category="Books > Fiction",
        item_specifics={"ISBN": "978-0-547-92822-7", "Publisher": "Houghton Mifflin"},
        listing_type=ListingType.BOOK_ITEM,
    )


@pytest.fixture
def success_response():
    return SUCCESS_RESPONSE


@pytest.fixture
def failure_response():
    return FAILURE_RESPONSE
