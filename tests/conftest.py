"""Shared fakes for the Shopify and Webflow APIs."""
import copy
import itertools

import pytest
import requests

from catalog_sync.clients import shopify, webflow
from catalog_sync.services import assets as assets_mod
from catalog_sync.services.assets import AssetDeduplicator
from catalog_sync.services.sync import CatalogSync
from catalog_sync.store.asset_cache import AssetCache
from catalog_sync.store.identity_cache import IdentityCache

SOURCE = {"domain": "lf.myshopify.com", "token": "shp-token", "secret": "s3cret", "name": "SHOPIFY"}
DESTINATION = {
    "token": "wf-token",
    "site_id": "site-1",
    "collections": {"luxury": "col-lux", "furniture": "col-furn"},
    "name": "WEBFLOW",
}

WRITE_CALLS = ("create_item", "update_item")


class FakeWebflow:
    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {"col-lux": {}, "col-furn": {}}
        self.assets: dict[str, list[dict]] = {}
        self.uploads: list[tuple] = []
        self.calls: list[tuple] = []
        self.fail: set[str] = set()
        self._ids = itertools.count(1)
        self._asset_ids = itertools.count(1)

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise webflow.WebflowError("POST", f"https://fake/{name}", 500, "boom")

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in WRITE_CALLS]

    def add_item(self, collection_id: str, item_id: str, field_data: dict) -> dict:
        item = {"id": item_id, "fieldData": dict(field_data)}
        self.collections[collection_id][item_id] = item
        return item

    # collection items
    def create_item(self, token, collection_id, field_data):
        self._record("create_item", collection_id, field_data)
        item_id = f"D{next(self._ids)}"
        return copy.deepcopy(self.add_item(collection_id, item_id, field_data))

    def update_item(self, token, collection_id, item_id, field_data):
        self._record("update_item", collection_id, item_id, field_data)
        item = self.collections[collection_id].get(item_id)
        if item is None:
            raise webflow.WebflowError("PATCH", item_id, 404, "not found")
        item["fieldData"].update(field_data)
        return copy.deepcopy(item)

    def get_item(self, token, collection_id, item_id):
        self._record("get_item", collection_id, item_id)
        item = self.collections.get(collection_id, {}).get(item_id)
        return copy.deepcopy(item) if item else None

    def iter_items(self, token, collection_id):
        self._record("iter_items", collection_id)
        for item in list(self.collections.get(collection_id, {}).values()):
            yield copy.deepcopy(item)

    # assets
    def create_asset(self, token, site_id, file_name, file_hash):
        self._record("create_asset", site_id, file_name, file_hash)
        asset_id = f"A{next(self._asset_ids)}"
        self._pending = {"id": asset_id, "fileHash": file_hash,
                         "hostedUrl": f"https://cdn.webflow.test/{asset_id}/{file_name}"}
        return {
            "id": asset_id,
            "uploadUrl": "https://s3.test/upload",
            "uploadDetails": {"key": f"{site_id}/{asset_id}", "policy": "p"},
            "hostedUrl": self._pending["hostedUrl"],
            "contentType": "image/jpeg",
        }

    def upload_asset(self, upload_url, upload_details, file_name, content, content_type=None):
        self._record("upload_asset", upload_url, file_name)
        self.uploads.append((upload_details["key"], content))
        site_id = upload_details["key"].split("/")[0]
        self.assets.setdefault(site_id, []).append(self._pending)

    def iter_assets(self, token, site_id):
        self._record("iter_assets", site_id)
        yield from list(self.assets.get(site_id, []))


class FakeShopify:
    def __init__(self):
        self.products: dict[str, dict] = {}
        self.metafields: list[tuple] = []
        self.updates: list[tuple] = []
        self.fail_metafields = False
        self.fail_listing = False

    def list_products(self, domain, token):
        if self.fail_listing:
            raise requests.ConnectionError("shopify down")
        return [copy.deepcopy(p) for p in self.products.values()]

    def get_product(self, domain, token, pid):
        p = self.products.get(str(pid))
        return copy.deepcopy(p) if p else None

    def set_metafield(self, domain, token, pid, ns, key, type_, value):
        if self.fail_metafields:
            raise requests.HTTPError("422 Unprocessable Entity")
        self.metafields.append((str(pid), ns, key, value))

    def update_product(self, domain, token, pid, fields):
        if self.fail_metafields:
            raise requests.HTTPError("422 Unprocessable Entity")
        self.updates.append((str(pid), fields))
        return {"id": int(pid), **fields}


@pytest.fixture
def fake_webflow(monkeypatch):
    fake = FakeWebflow()
    for name in ("create_item", "update_item", "get_item", "iter_items",
                 "create_asset", "upload_asset", "iter_assets"):
        monkeypatch.setattr(webflow, name, getattr(fake, name))
    return fake


@pytest.fixture
def fake_shopify(monkeypatch):
    fake = FakeShopify()
    for name in ("list_products", "get_product", "update_product", "set_metafield"):
        monkeypatch.setattr(shopify, name, getattr(fake, name))
    return fake


@pytest.fixture
def blobs(monkeypatch):
    """url -> bytes served by the patched downloader; unknown urls fail."""
    store: dict[str, bytes] = {}

    def download(ref):
        if ref not in store:
            raise requests.ConnectionError(f"cannot fetch {ref}")
        return store[ref]

    monkeypatch.setattr(assets_mod, "download", download)
    return store


@pytest.fixture
def product():
    def make(pid="100", qty=3, images=None, title="Walnut Console", vendor="Maitland-Smith",
             price="1200.00", handle=None, tags=""):
        images = ["https://cdn.shopify.test/a.jpg"] if images is None else images
        return {
            "id": int(pid),
            "title": title,
            "vendor": vendor,
            "body_html": "<p>Solid walnut.</p>",
            "handle": handle or f"item-{pid}",
            "tags": tags,
            "variants": [{"id": 1, "price": price, "inventory_quantity": qty}],
            "images": [{"src": u} for u in images],
        }
    return make


@pytest.fixture
def engine(tmp_path, fake_webflow, fake_shopify, blobs):
    cache = IdentityCache(tmp_path / "syncCache.json").load()
    dedup = AssetDeduplicator(AssetCache(tmp_path / "assetHashCache.json"))
    return CatalogSync(cache, dedup, source=SOURCE, destination=DESTINATION,
                       classify=lambda p: "furniture", use_assets=True, gallery_slots=3)
