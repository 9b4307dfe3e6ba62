"""
MrLister Export & Sync API
==========================
FastAPI application exposing marketplace CSV export, listing previews,
stubbed marketplace publishing and the real-time inventory sync socket.

Features:
- CSV export in each marketplace's bulk-import format
- Per-marketplace preview rows for one item
- Marketplace connect/publish (mock OAuth), published listings and re-sync
- WebSocket fan-out of inventory mutations between open clients

Authentication and persistence belong to the main web app; this service reads
the caller's user id from a header and the inventory from an InventoryStore.
"""

from pathlib import Path
from typing import List, Optional, Union

from fastapi import FastAPI, Depends, Header, HTTPException, WebSocket, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from .adapters.platform_configs import get_target, preview_record, supported_targets
from .config import Config
from .errors import NoRecordsError, UnsupportedTargetError, MarketplaceConnectionError
from .import_export.exporter import MarketplaceExporter
from .publisher.marketplace_publisher import MarketplacePublisher
from .storage.inventory_store import InventoryStore, get_store
from .sync.channel import SyncHub
from .sync.protocol import InventoryAction

DEMO_USER_ID = 1


# ============================================================================
# DATA MODELS (Request/Response)
# ============================================================================

class ExportRequest(BaseModel):
    marketplaceName: str
    inventoryIds: Optional[List[int]] = None


class ConnectRequest(BaseModel):
    marketplaceName: str
    authCode: str


class PublishRequest(BaseModel):
    inventoryId: int


# ============================================================================
# AUTHENTICATION (handled upstream)
# ============================================================================

def get_current_user(x_user_id: Optional[int] = Header(None)) -> dict:
    """Caller identity as forwarded by the main web app"""
    return {"id": x_user_id or DEMO_USER_ID}


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    store: Optional[InventoryStore] = None,
    hub: Optional[SyncHub] = None,
    export_dir: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """Build the API around an inventory store and a sync hub"""
    store = store or get_store()
    hub = hub or SyncHub()
    exporter = MarketplaceExporter(store, export_dir=export_dir)
    publisher = MarketplacePublisher(store)

    app = FastAPI(
        title="MrLister Export & Sync API",
        description="Marketplace CSV export and real-time inventory sync",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.hub = hub
    app.state.exporter = exporter
    app.state.publisher = publisher

    @app.get("/")
    def root():
        """API health check"""
        return {
            "status": "online",
            "app": "MrLister Export & Sync API",
            "syncClients": len(hub.open_connections()),
        }

    @app.get("/api/marketplaces/supported")
    def list_supported_marketplaces():
        return {"marketplaces": supported_targets()}

    @app.post("/api/inventory/export-csv")
    def export_csv(request: ExportRequest, current_user: dict = Depends(get_current_user)):
        """
        Export inventory as a marketplace CSV download.

        inventoryIds omitted → every item owned by the caller, plus unowned ones.
        """
        try:
            result = exporter.export_for_target(
                request.marketplaceName,
                record_ids=request.inventoryIds,
                user_id=current_user["id"],
            )
        except UnsupportedTargetError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except NoRecordsError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

        exporter.save_export(result)

        return Response(
            content=result.content.encode("utf-8"),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )

    @app.get("/api/inventory/{item_id}/marketplace-listings")
    def marketplace_listings(item_id: int, current_user: dict = Depends(get_current_user)):
        """Rows this item would produce on every supported marketplace"""
        record = store.get_record(item_id)
        if not record:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
        if record.user_id is not None and record.user_id != current_user["id"]:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return preview_record(record)

    @app.post("/api/marketplaces/connect")
    def connect_marketplace(request: ConnectRequest, current_user: dict = Depends(get_current_user)):
        try:
            connection = publisher.connect(current_user["id"], request.marketplaceName, request.authCode)
        except UnsupportedTargetError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except MarketplaceConnectionError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return connection.to_dict()

    @app.post("/api/marketplaces/sync")
    def sync_marketplaces(current_user: dict = Depends(get_current_user)):
        """Refresh listing counts on every connected marketplace"""
        results = publisher.sync_all(current_user["id"])
        body = {
            "syncedMarketplaces": len(results),
            "results": [result.to_dict() for result in results],
        }
        if not results:
            body["message"] = "No connected marketplaces found"
        return body

    @app.get("/api/marketplaces/{marketplace_name}/listings")
    def marketplace_listings_for(marketplace_name: str, current_user: dict = Depends(get_current_user)):
        try:
            result = publisher.get_listings(current_user["id"], marketplace_name)
        except UnsupportedTargetError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return result.to_dict()

    @app.post("/api/marketplaces/{marketplace_name}/listings")
    async def publish_listing(
        marketplace_name: str,
        request: PublishRequest,
        current_user: dict = Depends(get_current_user),
    ):
        """Publish one item live, then tell other clients it changed"""
        try:
            target = get_target(marketplace_name)
        except UnsupportedTargetError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        record = store.get_record(request.inventoryId)
        if not record:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
        if record.user_id is not None and record.user_id != current_user["id"]:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

        result = await run_in_threadpool(publisher.publish, current_user["id"], target.name, record)
        if result.success:
            hub.announce(InventoryAction.UPDATE, record.id, {"status": record.status.value, "marketplace": target.name})
        return result.to_dict()

    @app.websocket(Config.SYNC_PATH)
    async def sync_socket(websocket: WebSocket):
        await hub.serve(websocket)

    return app


app = create_app()


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    from .logger import setup_logger

    logger = setup_logger()
    logger.info("MrLister Export & Sync API starting on http://0.0.0.0:8000 (sync socket at %s)", Config.SYNC_PATH)

    uvicorn.run(app, host="0.0.0.0", port=8000)
