import csv
import io
from datetime import date

import pytest
from fastapi.testclient import TestClient

from conftest import make_record
from mrlister.schema import ListingStatus
from mrlister.sync.channel import SyncHub
from mrlister.web_app import create_app


@pytest.fixture
def api(store, tmp_path, monkeypatch):
    for name in ("SHOPIFY", "EBAY", "ETSY", "AMAZON", "GENERIC"):
        monkeypatch.delenv(f"{name}_API_URL", raising=False)
    app = create_app(store=store, hub=SyncHub(), export_dir=tmp_path)
    with TestClient(app) as client:
        yield client


def test_health_check(api):
    response = api.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_supported_marketplaces(api):
    response = api.get("/api/marketplaces/supported")
    assert response.json()["marketplaces"] == ["shopify", "ebay", "etsy", "amazon", "generic"]


def test_export_csv_download(api, tmp_path):
    response = api.post("/api/inventory/export-csv", json={"marketplaceName": "eBay", "inventoryIds": [1, 2]})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")

    filename = f"ebay_listings_{date.today():%Y%m%d}.csv"
    assert response.headers["content-disposition"] == f'attachment; filename="{filename}"'
    assert (tmp_path / filename).exists()

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["CustomLabel"] for row in rows] == ["VTG-LAMP-01", "CAM-2"]


def test_export_csv_defaults_to_callers_inventory(api):
    response = api.post("/api/inventory/export-csv", json={"marketplaceName": "generic"}, headers={"X-User-Id": "2"})

    assert response.status_code == 200
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert len(rows) == 1
    assert "OTHER-3" in response.text


def test_export_csv_unsupported_marketplace(api):
    response = api.post("/api/inventory/export-csv", json={"marketplaceName": "craigslist", "inventoryIds": [1]})
    assert response.status_code == 400
    assert "craigslist" in response.json()["detail"]


def test_export_csv_with_no_matching_items(api):
    response = api.post("/api/inventory/export-csv", json={"marketplaceName": "ebay", "inventoryIds": [999]})
    assert response.status_code == 404


def test_export_csv_rejects_bad_body(api):
    response = api.post("/api/inventory/export-csv", json={"inventoryIds": [1]})
    assert response.status_code == 422


def test_marketplace_listing_preview(api):
    response = api.get("/api/inventory/1/marketplace-listings")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"shopify", "ebay", "etsy", "amazon", "generic"}
    assert body["ebay"]["Title"] == "Brass desk lamp"


def test_marketplace_listing_preview_access(api):
    assert api.get("/api/inventory/999/marketplace-listings").status_code == 404
    assert api.get("/api/inventory/3/marketplace-listings").status_code == 403


def test_connect_marketplace(api):
    response = api.post("/api/marketplaces/connect", json={"marketplaceName": "etsy", "authCode": "abc"})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "etsy"
    assert body["isConnected"] is True
    assert "accessToken" not in body


def test_connect_rejects_unknown_marketplace_and_empty_code(api):
    assert api.post("/api/marketplaces/connect", json={"marketplaceName": "myspace", "authCode": "abc"}).status_code == 400
    assert api.post("/api/marketplaces/connect", json={"marketplaceName": "etsy", "authCode": ""}).status_code == 400


def test_publish_requires_connection(api):
    response = api.post("/api/marketplaces/ebay/listings", json={"inventoryId": 1})
    assert response.status_code == 200
    assert response.json()["success"] is False


def test_publish_marks_item_listed_and_notifies_sync_clients(api, store):
    api.post("/api/marketplaces/connect", json={"marketplaceName": "ebay", "authCode": "abc"})

    with api.websocket_connect("/ws") as ws:
        assert ws.receive_json()["type"] == "connection"

        response = api.post("/api/marketplaces/ebay/listings", json={"inventoryId": 1})
        body = response.json()
        assert body["success"] is True
        assert body["listingId"].startswith("ebay-listing-")

        message = ws.receive_json()
        assert message["type"] == "inventory_update"
        assert message["payload"]["action"] == "update"
        assert message["payload"]["itemId"] == 1
        assert message["payload"]["data"] == {"status": "listed", "marketplace": "ebay"}

    record = store.get_record(1)
    assert record.status is ListingStatus.LISTED
    assert record.marketplace_data["ebay"]["listingId"] == body["listingId"]


def test_publish_checks_item_and_marketplace(api):
    assert api.post("/api/marketplaces/myspace/listings", json={"inventoryId": 1}).status_code == 400
    assert api.post("/api/marketplaces/ebay/listings", json={"inventoryId": 999}).status_code == 404
    assert api.post("/api/marketplaces/ebay/listings", json={"inventoryId": 3}).status_code == 403


def test_unowned_item_previews_and_exports_alike(api, store):
    store.save_record(make_record(id=10, user_id=None, sku="SHARED-10"))
    headers = {"X-User-Id": "1"}

    assert api.get("/api/inventory/10/marketplace-listings", headers=headers).status_code == 200

    response = api.post(
        "/api/inventory/export-csv", json={"marketplaceName": "generic", "inventoryIds": [10]}, headers=headers,
    )
    assert response.status_code == 200
    assert "SHARED-10" in response.text


def test_marketplace_listings_and_sync(api):
    assert api.post("/api/marketplaces/sync").json() == {
        "syncedMarketplaces": 0,
        "results": [],
        "message": "No connected marketplaces found",
    }

    api.post("/api/marketplaces/connect", json={"marketplaceName": "etsy", "authCode": "abc"})
    api.post("/api/marketplaces/etsy/listings", json={"inventoryId": 2})

    listings = api.get("/api/marketplaces/etsy/listings").json()
    assert listings["success"] is True
    assert [item["inventoryId"] for item in listings["listings"]] == [2]

    synced = api.post("/api/marketplaces/sync").json()
    assert synced["syncedMarketplaces"] == 1
    assert synced["results"][0]["marketplace"] == "etsy"
    assert synced["results"][0]["activeListings"] == 1

    assert api.get("/api/marketplaces/myspace/listings").status_code == 400
