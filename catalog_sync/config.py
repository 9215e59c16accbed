import os

API_VERSION = os.getenv("API_VERSION", "2024-01")
WEBFLOW_API = os.getenv("WEBFLOW_API", "https://api.webflow.com/v2")

SHOPIFY = {
    "domain": os.getenv("SHOPIFY_STORE_DOMAIN"),
    "token": os.getenv("SHOPIFY_ACCESS_TOKEN"),
    "secret": os.getenv("SHOPIFY_API_SECRET"),
    "name": "SHOPIFY",
}

WEBFLOW = {
    "token": os.getenv("WEBFLOW_TOKEN"),
    "site_id": os.getenv("WEBFLOW_SITE_ID"),
    "collections": {
        "luxury": os.getenv("WEBFLOW_LUXURY_COLLECTION_ID"),
        "furniture": os.getenv("WEBFLOW_FURNITURE_COLLECTION_ID"),
    },
    "name": "WEBFLOW",
}

DEFAULT_VERTICAL = os.getenv("DEFAULT_VERTICAL", "furniture")
USE_WEBFLOW_ASSETS = os.getenv("USE_WEBFLOW_ASSETS", "true").lower() in ("1", "true", "yes")
GALLERY_SLOTS = int(os.getenv("GALLERY_SLOTS", "3"))

DATA_DIR = os.getenv("DATA_DIR", "./data")
SYNC_CACHE_FILE = "syncCache.json"
ASSET_CACHE_FILE = "assetHashCache.json"

# optional bearer for /sync/full
SYNC_TOKEN = os.getenv("SYNC_TOKEN")
