import pytest
import requests

from mrlister.errors import MarketplaceConnectionError, UnsupportedTargetError
from mrlister.publisher import MarketplacePublisher
from mrlister.schema import ListingStatus

from conftest import make_record


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.body


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.response


@pytest.fixture(autouse=True)
def stubbed_marketplaces(monkeypatch):
    monkeypatch.delenv("EBAY_API_URL", raising=False)
    monkeypatch.delenv("ETSY_API_URL", raising=False)


def test_connect_issues_tokens(store):
    publisher = MarketplacePublisher(store)
    connection = publisher.connect(1, "Etsy", "code-123")

    assert connection.marketplace == "etsy"
    assert connection.access_token.startswith("mock-etsy-access-token-")
    assert publisher.get_connection(1, "etsy") is connection
    assert publisher.get_connection(2, "etsy") is None


def test_reconnect_replaces_tokens(store):
    publisher = MarketplacePublisher(store)
    first = publisher.connect(1, "ebay", "a")
    first.is_connected = False

    second = publisher.connect(1, "ebay", "b")
    assert second is first
    assert second.is_connected


def test_connect_errors(store):
    publisher = MarketplacePublisher(store)
    with pytest.raises(UnsupportedTargetError):
        publisher.connect(1, "myspace", "code")
    with pytest.raises(MarketplaceConnectionError):
        publisher.connect(1, "ebay", "")


def test_publish_without_connection_fails(store):
    result = MarketplacePublisher(store).publish(1, "ebay", store.get_record(1))
    assert not result.success
    assert "not connected" in result.error


def test_publish_invalid_record_fails(store):
    publisher = MarketplacePublisher(store)
    publisher.connect(1, "ebay", "code")

    result = publisher.publish(1, "ebay", make_record(title=""))
    assert not result.success
    assert result.error


def test_stubbed_publish_marks_record_listed(store):
    publisher = MarketplacePublisher(store)
    publisher.connect(1, "ebay", "code")
    record = store.get_record(1)

    result = publisher.publish(1, "ebay", record)

    assert result.success
    assert result.listing_url == f"https://ebay.example.com/{result.listing_id}"
    assert result.metadata["row"]["Title"] == "Brass desk lamp"
    assert store.get_record(1).status is ListingStatus.LISTED
    assert store.get_record(1).marketplace_data["ebay"]["status"] == "active"
    assert publisher.get_connection(1, "ebay").active_listings == 1


def test_live_publish_posts_mapped_row(store, monkeypatch):
    monkeypatch.setenv("EBAY_API_URL", "https://api.test/ebay/listings")
    session = FakeSession(FakeResponse({"id": 555, "url": "https://ebay.test/555"}))
    publisher = MarketplacePublisher(store, session=session, timeout=5)
    connection = publisher.connect(1, "ebay", "code")

    result = publisher.publish(1, "ebay", store.get_record(1))

    assert result.success
    assert result.listing_id == "555"
    assert result.listing_url == "https://ebay.test/555"

    call = session.calls[0]
    assert call["url"] == "https://api.test/ebay/listings"
    assert call["headers"]["Authorization"] == f"Bearer {connection.access_token}"
    assert call["json"]["CustomLabel"] == "VTG-LAMP-01"
    assert call["timeout"] == 5


def test_live_publish_http_error_leaves_record_untouched(store, monkeypatch):
    monkeypatch.setenv("EBAY_API_URL", "https://api.test/ebay/listings")
    publisher = MarketplacePublisher(store, session=FakeSession(FakeResponse({}, status_code=502)))
    publisher.connect(1, "ebay", "code")

    result = publisher.publish(1, "ebay", store.get_record(1))

    assert not result.success
    assert "502" in result.error
    assert store.get_record(1).status is ListingStatus.DRAFT
    assert "ebay" not in store.get_record(1).marketplace_data


def test_live_publish_without_listing_id(store, monkeypatch):
    monkeypatch.setenv("EBAY_API_URL", "https://api.test/ebay/listings")
    publisher = MarketplacePublisher(store, session=FakeSession(FakeResponse({"ok": True})))
    publisher.connect(1, "ebay", "code")

    result = publisher.publish(1, "ebay", store.get_record(1))
    assert not result.success
    assert "listing id" in result.error


def test_get_listings_requires_connection(store):
    result = MarketplacePublisher(store).get_listings(1, "ebay")
    assert not result.success
    assert result.to_dict()["listings"] == []


def test_get_listings_unknown_marketplace(store):
    with pytest.raises(UnsupportedTargetError):
        MarketplacePublisher(store).get_listings(1, "myspace")


def test_get_listings_returns_published_items(store):
    publisher = MarketplacePublisher(store)
    publisher.connect(1, "ebay", "code")
    published = publisher.publish(1, "ebay", store.get_record(1))

    result = publisher.get_listings(1, "eBay")

    assert result.success
    assert result.listings == [{
        "id": published.listing_id,
        "inventoryId": 1,
        "title": "Brass desk lamp",
        "price": "24.5",
        "status": "active",
        "url": published.listing_url,
    }]
    assert result.to_dict()["activeListings"] == 1
    assert publisher.get_listings(1, "etsy").success is False


def test_sync_all_with_nothing_connected(store):
    assert MarketplacePublisher(store).sync_all(1) == []


def test_sync_all_recounts_and_stamps_each_connection(store):
    publisher = MarketplacePublisher(store)
    publisher.connect(1, "ebay", "code")
    publisher.connect(1, "etsy", "code")
    publisher.connect(2, "ebay", "code")
    publisher.publish(1, "ebay", store.get_record(1))
    publisher.publish(1, "ebay", store.get_record(2))
    store.get_record(2).marketplace_data["ebay"]["status"] = "sold"
    publisher.get_connection(1, "etsy").active_listings = 7

    results = {r.platform: r for r in publisher.sync_all(1)}

    assert set(results) == {"ebay", "etsy"}
    assert results["ebay"].active_listings == 1
    assert results["etsy"].active_listings == 0
    assert publisher.get_connection(1, "etsy").active_listings == 0
    assert publisher.get_connection(1, "ebay").last_synced_at == results["ebay"].synced_at
    assert publisher.get_connection(2, "ebay").last_synced_at is None
    assert results["ebay"].to_dict()["status"] == "success"


def test_sync_all_reports_failures_per_marketplace(store, monkeypatch):
    publisher = MarketplacePublisher(store)
    publisher.connect(1, "ebay", "code")

    def broken(user_id=None):
        raise ConnectionError("db went away")

    monkeypatch.setattr(store, "list_records", broken)
    [result] = publisher.sync_all(1)

    assert not result.success
    assert result.to_dict() == {"marketplace": "ebay", "status": "error", "message": "Failed to sync with ebay"}
    assert publisher.get_connection(1, "ebay").last_synced_at is None
