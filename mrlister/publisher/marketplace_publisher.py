"""
Marketplace Publisher
=====================
Pushes single inventory items to a marketplace as live listings.

This is separate from CSV export: it reuses each target's row mapping (and so
its condition/category vocabulary) but talks to the marketplace instead of
writing a file.

Marketplace OAuth is stubbed: connect() hands out mock tokens. When
{MARKETPLACE}_API_URL is set, publish() POSTs the mapped row there with the
token; otherwise the listing is simulated.

Published listings are recorded on the item (marketplace_data), which is
what get_listings() and sync_all() read back.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Tuple

import requests

from ..adapters.field_mapper import format_number
from ..adapters.platform_configs import get_target
from ..config import Config
from ..errors import MarketplaceConnectionError
from ..schema.inventory_record import InventoryRecord, ListingStatus
from ..storage.inventory_store import InventoryStore

logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(hours=24)


@dataclass
class MarketplaceConnection:
    """Stored credentials for one user/marketplace pair"""

    user_id: int
    marketplace: str
    access_token: str
    refresh_token: str
    token_expiry: datetime
    is_connected: bool = True
    active_listings: int = 0
    last_synced_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "name": self.marketplace,
            "isConnected": self.is_connected,
            "tokenExpiry": self.token_expiry.isoformat(),
            "activeListings": self.active_listings,
            "lastSyncedAt": self.last_synced_at.isoformat() if self.last_synced_at else None,
        }


@dataclass
class PublishResult:
    """Result of publishing to a platform"""

    platform: str
    success: bool
    listing_id: Optional[str] = None
    listing_url: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "marketplace": self.platform,
            "success": self.success,
            "listingId": self.listing_id,
            "url": self.listing_url,
            "error": self.error,
        }


@dataclass
class ListingsResult:
    """Live listings on one marketplace"""

    platform: str
    success: bool
    listings: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "marketplace": self.platform,
            "success": self.success,
            "listings": list(self.listings),
            "activeListings": len(self.listings),
            "error": self.error,
        }


@dataclass
class SyncResult:
    """Outcome of re-syncing one connected marketplace"""

    platform: str
    success: bool
    active_listings: int = 0
    synced_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"marketplace": self.platform, "status": "error", "message": self.error}
        return {
            "marketplace": self.platform,
            "status": "success",
            "activeListings": self.active_listings,
            "lastSyncedAt": self.synced_at.isoformat() if self.synced_at else None,
        }


class MarketplacePublisher:
    """
    Connects accounts to marketplaces and publishes inventory items.

    Args:
        store: Inventory store; published items are marked listed
        session: requests session used for live publishing
        timeout: HTTP timeout in seconds
    """

    def __init__(self, store: InventoryStore, session: Optional[requests.Session] = None, timeout: float = 30):
        self.store = store
        self.session = session or requests.Session()
        self.timeout = timeout
        self.connections: Dict[Tuple[int, str], MarketplaceConnection] = {}
        self.lock = threading.Lock()

    def connect(self, user_id: int, marketplace_name: str, auth_code: str) -> MarketplaceConnection:
        """
        Connect (or reconnect) a marketplace account.

        Raises:
            UnsupportedTargetError: Unknown marketplace
            MarketplaceConnectionError: Empty authorization code
        """
        target = get_target(marketplace_name)
        if not auth_code:
            raise MarketplaceConnectionError(f"Authorization code required to connect {target.name}")

        stamp = int(time.time() * 1000)
        key = (user_id, target.name)

        with self.lock:
            connection = self.connections.get(key)
            access_token = f"mock-{target.name}-access-token-{stamp}"
            refresh_token = f"mock-{target.name}-refresh-token-{stamp}"
            expiry = datetime.now() + TOKEN_TTL

            if connection:
                connection.access_token = access_token
                connection.refresh_token = refresh_token
                connection.token_expiry = expiry
                connection.is_connected = True
            else:
                connection = MarketplaceConnection(
                    user_id=user_id,
                    marketplace=target.name,
                    access_token=access_token,
                    refresh_token=refresh_token,
                    token_expiry=expiry,
                )
                self.connections[key] = connection

        logger.info("User %s connected to %s", user_id, target.name)
        return connection

    def get_connection(self, user_id: int, marketplace_name: str) -> Optional[MarketplaceConnection]:
        with self.lock:
            return self.connections.get((user_id, marketplace_name.lower()))

    def publish(self, user_id: int, marketplace_name: str, record: InventoryRecord) -> PublishResult:
        """
        Publish one record as a live listing.

        Raises:
            UnsupportedTargetError: Unknown marketplace
        """
        target = get_target(marketplace_name)
        connection = self.get_connection(user_id, target.name)
        if not connection or not connection.is_connected:
            return PublishResult(
                platform=target.name,
                success=False,
                error=f"{target.display_name or target.name} is not connected",
            )

        is_valid, errors = record.validate()
        if not is_valid:
            return PublishResult(platform=target.name, success=False, error="; ".join(errors))

        listing = target.map_record_to_row(record)
        api_url = Config.marketplace_api_url(target.name)

        if api_url:
            try:
                listing_id, listing_url = self._post_listing(api_url, connection, listing)
            except (requests.RequestException, ValueError) as e:
                logger.error("Publishing item %s to %s failed: %s", record.id, target.name, e)
                return PublishResult(platform=target.name, success=False, error=str(e))
        else:
            listing_id = f"{target.name}-listing-{int(time.time() * 1000)}"
            listing_url = f"https://{target.name}.example.com/{listing_id}"

        now = datetime.now()
        with self.lock:
            connection.active_listings += 1
            connection.last_synced_at = now

        record.marketplace_data[target.name] = {
            "listingId": listing_id,
            "url": listing_url,
            "status": "active",
            "createdAt": now.isoformat(),
        }
        record.status = ListingStatus.LISTED
        self.store.save_record(record)

        logger.info("Published item %s to %s as %s", record.id, target.name, listing_id)
        return PublishResult(
            platform=target.name,
            success=True,
            listing_id=listing_id,
            listing_url=listing_url,
            metadata={"row": listing},
        )

    def get_listings(self, user_id: int, marketplace_name: str) -> ListingsResult:
        """
        Listings this account has published to one marketplace.

        Raises:
            UnsupportedTargetError: Unknown marketplace
        """
        target = get_target(marketplace_name)
        connection = self.get_connection(user_id, target.name)
        if not connection or not connection.is_connected:
            return ListingsResult(
                platform=target.name,
                success=False,
                error=f"{target.display_name or target.name} is not connected",
            )

        return ListingsResult(platform=target.name, success=True, listings=self._listings_for(user_id, target.name))

    def sync_all(self, user_id: int) -> List[SyncResult]:
        """
        Re-count active listings on every connected marketplace and stamp the sync time.

        One marketplace failing does not stop the others; it gets an error result.
        """
        with self.lock:
            connections = [
                conn for (owner, _), conn in self.connections.items()
                if owner == user_id and conn.is_connected
            ]

        results = []
        for connection in connections:
            try:
                listings = self._listings_for(user_id, connection.marketplace)
            except Exception as e:
                logger.error("Syncing %s for user %s failed: %s", connection.marketplace, user_id, e)
                results.append(SyncResult(
                    platform=connection.marketplace,
                    success=False,
                    error=f"Failed to sync with {connection.marketplace}",
                ))
                continue

            active = sum(1 for listing in listings if listing["status"] == "active")
            now = datetime.now()
            with self.lock:
                connection.active_listings = active
                connection.last_synced_at = now
            results.append(SyncResult(platform=connection.marketplace, success=True, active_listings=active, synced_at=now))

        logger.info("Synced %d marketplace(s) for user %s", len(results), user_id)
        return results

    def _listings_for(self, user_id: int, marketplace: str) -> List[Dict[str, Any]]:
        listings = []
        for record in self.store.list_records(user_id):
            entry = record.marketplace_data.get(marketplace)
            if not entry:
                continue
            listings.append({
                "id": entry.get("listingId"),
                "inventoryId": record.id,
                "title": record.title,
                "price": format_number(record.price),
                "status": entry.get("status", "active"),
                "url": entry.get("url"),
            })
        return listings

    def _post_listing(self, api_url: str, connection: MarketplaceConnection, listing: Dict[str, Any]):
        response = self.session.post(
            api_url,
            json=listing,
            headers={"Authorization": f"Bearer {connection.access_token}"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()
        listing_id = body.get("listingId") or body.get("id")
        if not listing_id:
            raise ValueError("Marketplace response did not include a listing id")
        return str(listing_id), body.get("url")
