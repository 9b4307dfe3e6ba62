import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    EXPORT_DIR = os.getenv("EXPORT_DIR", "temp")
    EXPORT_LOOKUP_WORKERS = int(os.getenv("EXPORT_LOOKUP_WORKERS", "8"))

    SYNC_PATH = os.getenv("SYNC_PATH", "/ws")
    SYNC_URL = os.getenv("SYNC_URL", "ws://localhost:8000/ws")
    SYNC_RECONNECT_BASE_DELAY = float(os.getenv("SYNC_RECONNECT_BASE_DELAY", "0.5"))
    SYNC_RECONNECT_MAX_DELAY = float(os.getenv("SYNC_RECONNECT_MAX_DELAY", "30"))
    SYNC_OUTBOUND_QUEUE_SIZE = int(os.getenv("SYNC_OUTBOUND_QUEUE_SIZE", "100"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    @staticmethod
    def marketplace_api_url(marketplace: str):
        """Live listing endpoint for a marketplace, e.g. EBAY_API_URL. None means stubbed."""
        return os.getenv(f"{marketplace.upper()}_API_URL")
