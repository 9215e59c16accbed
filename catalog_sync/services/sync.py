# catalog_sync/services/sync.py
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import requests

from ..clients import shopify, webflow
from ..config import (SHOPIFY, WEBFLOW, DATA_DIR, SYNC_CACHE_FILE, ASSET_CACHE_FILE,
                      USE_WEBFLOW_ASSETS, GALLERY_SLOTS)
from ..store.asset_cache import AssetCache
from ..store.identity_cache import CacheEntry, IdentityCache
from ..utils.hash import image_refs, product_fingerprint, total_quantity
from ..utils.logger import debug, info, warn, error, describe
from .assets import AssetDeduplicator, ImageField
from .fields import (Classifier, VendorPolicy, VERTICALS, create_fields, product_fields,
                     sold_fields, tag_vertical, vendor_from_title)
from .locator import DestinationLocator, Located

# =========================================================
# Operations & results
# =========================================================

CREATE = "create"
UPDATE = "update"
SOLD = "sold"
SKIP = "skip"
SKIP_MISSING = "skip-missing"
VANISHED = "vanished"
ERROR = "error"

OPERATIONS = (CREATE, UPDATE, SOLD, SKIP, SKIP_MISSING, VANISHED, ERROR)

# one pass at a time per process; the cache has a single writer
PASS_LOCK = threading.Lock()


@dataclass
class WriteBack:
    """Outcome of the best-effort Shopify metafield write."""
    status: str  # "ok" | "skipped" | "failed"
    error: Optional[str] = None


@dataclass
class SyncOutcome:
    source_id: str
    operation: str
    item_id: Optional[str] = None
    error: Optional[str] = None
    degraded_images: int = 0
    write_back: Optional[WriteBack] = None

    def as_dict(self) -> dict:
        out = {"id": self.source_id, "operation": self.operation, "itemId": self.item_id}
        if self.error:
            out["error"] = self.error
        if self.degraded_images:
            out["degradedImages"] = self.degraded_images
        if self.write_back and self.write_back.status != "ok":
            out["writeBack"] = self.write_back.status
        return out


@dataclass
class SyncSummary:
    counts: dict = field(default_factory=lambda: {op: 0 for op in OPERATIONS})
    errors: list = field(default_factory=list)

    def add(self, outcome: SyncOutcome):
        self.counts[outcome.operation] += 1
        if outcome.error:
            self.errors.append({"id": outcome.source_id, "error": outcome.error})

    def fail(self, source_id: str, message: str):
        self.add(SyncOutcome(source_id, ERROR, error=message))

    def as_dict(self) -> dict:
        return {**self.counts, "errors": self.errors}


# =========================================================
# Engine
# =========================================================

class CatalogSync:
    """
    Mirrors Shopify products into the Webflow collections.

    The identity cache is owned by the caller and threaded through every
    decision; nothing here keeps state between passes except the caches.
    """

    def __init__(self, cache: IdentityCache, assets: AssetDeduplicator,
                 source: dict = SHOPIFY, destination: dict = WEBFLOW,
                 classify: Classifier = tag_vertical, vendor: VendorPolicy = vendor_from_title,
                 use_assets: bool = USE_WEBFLOW_ASSETS, gallery_slots: int = GALLERY_SLOTS):
        self.cache = cache
        self.assets = assets
        self.source = source
        self.destination = destination
        self.classify = classify
        self.vendor = vendor
        self.use_assets = use_assets
        self.gallery_slots = gallery_slots
        self.locator = DestinationLocator(destination["token"], destination["collections"])

    # ---------------- helpers ----------------

    def _collection(self, vertical: str) -> str:
        cid = self.destination["collections"].get(vertical)
        if not cid:
            raise ValueError(f"no Webflow collection configured for vertical '{vertical}'")
        return cid

    def _images(self, prod: dict) -> list[ImageField]:
        # only the slots we can fill are worth a download
        refs = image_refs(prod)[: 1 + self.gallery_slots]
        if not self.use_assets:
            return [ImageField(url=r) for r in refs]
        return self.assets.resolve_images(self.destination.get("site_id"),
                                          self.destination["token"], refs)

    def _write_back(self, prod: dict, item_id: str, vertical: str) -> WriteBack:
        pid = str(prod["id"])
        domain, token = self.source.get("domain"), self.source.get("token")
        if not (domain and token):
            return WriteBack("skipped")
        try:
            shopify.set_metafield(domain, token, pid, "webflow", "item_id",
                                  "single_line_text_field", item_id)
            shopify.set_metafield(domain, token, pid, "webflow", "vertical",
                                  "single_line_text_field", vertical)
            vendor = self.vendor(prod)
            if vendor and vendor != prod.get("vendor"):
                shopify.update_product(domain, token, pid, {"vendor": vendor})
                info(f"[write-back] PID {pid} vendor set to '{vendor}'")
        except requests.RequestException as e:
            warn(f"[write-back] PID {pid}: {describe(e)}")
            return WriteBack("failed", describe(e))
        return WriteBack("ok")

    def _mark_sold(self, located: Located):
        webflow.update_item(self.destination["token"], self._collection(located.vertical),
                            located.item_id, sold_fields(located.vertical))

    # ---------------- per record ----------------

    def reconcile(self, prod: dict) -> SyncOutcome:
        """
        Decide and apply exactly one operation for a product.
        Webflow failures propagate; the pass loop isolates them.
        """
        pid = str(prod["id"])
        entry = self.cache.get(pid)
        vertical = self.classify(prod)
        located = self.locator.locate(
            pid,
            entry.destination_id if entry else None,
            [entry.vertical if entry else None, vertical, *VERTICALS],
        )
        fp = product_fingerprint(prod)
        qty = total_quantity(prod)

        # synced before but the item is gone: never recreate behind a manual delete
        if entry and not located:
            warn(f"[sync] PID {pid}: cached item {entry.destination_id} missing on Webflow, skip")
            self.cache.put(pid, CacheEntry(fp, entry.destination_id, qty, entry.vertical))
            return SyncOutcome(pid, SKIP_MISSING, entry.destination_id)

        prev = entry.last_quantity if entry else None
        just_sold = qty <= 0 and (prev is None or prev > 0)

        if just_sold and located:
            info(f"[sync] PID {pid} sold out (qty {prev} -> {qty}), marking {located.item_id} sold")
            self._mark_sold(located)
            self.cache.put(pid, CacheEntry(fp, located.item_id, qty, located.vertical))
            return SyncOutcome(pid, SOLD, located.item_id)

        if not located:
            images = self._images(prod)
            data = create_fields(prod, images, self.source.get("domain"), self.gallery_slots)
            created = webflow.create_item(self.destination["token"], self._collection(vertical), data)
            item_id = str(created["id"])
            self.cache.put(pid, CacheEntry(fp, item_id, qty, vertical))
            info(f"[sync] PID {pid} created {vertical} item {item_id}")
            return SyncOutcome(pid, CREATE, item_id,
                               degraded_images=sum(1 for i in images if i.degraded),
                               write_back=self._write_back(prod, item_id, vertical))

        if entry and entry.fingerprint == fp:
            debug(f"[sync] PID {pid} unchanged (hash match), skip")
            self.cache.put(pid, CacheEntry(fp, located.item_id, qty, located.vertical))
            return SyncOutcome(pid, SKIP, located.item_id)

        images = self._images(prod)
        data = product_fields(prod, images, self.source.get("domain"), self.gallery_slots)
        webflow.update_item(self.destination["token"], self._collection(located.vertical),
                            located.item_id, data)
        self.cache.put(pid, CacheEntry(fp, located.item_id, qty, located.vertical))
        info(f"[sync] PID {pid} updated item {located.item_id}")
        return SyncOutcome(pid, UPDATE, located.item_id,
                           degraded_images=sum(1 for i in images if i.degraded),
                           write_back=self._write_back(prod, located.item_id, located.vertical))

    def reconcile_safely(self, prod: dict) -> SyncOutcome:
        try:
            return self.reconcile(prod)
        except Exception as e:
            error(f"[sync] PID {prod.get('id')}: {describe(e)}")
            return SyncOutcome(str(prod.get("id")), ERROR, error=describe(e))

    # ---------------- disappearance ----------------

    def sweep(self, current_ids: Iterable[str | int]) -> list[SyncOutcome]:
        """Mark products gone from Shopify as sold and forget them."""
        current = {str(i) for i in current_ids}
        outcomes = []
        for sid in sorted(self.cache.all_keys() - current):
            entry = self.cache.get(sid)
            try:
                located = self.locator.locate(sid, entry.destination_id, [entry.vertical, *VERTICALS])
                if located:
                    self._mark_sold(located)
                    info(f"[sweep] PID {sid} gone from Shopify, marked {located.item_id} sold")
                else:
                    info(f"[sweep] PID {sid} gone from Shopify, no Webflow item found")
            except Exception as e:
                # an entry is dropped only once its item is marked sold (or is gone);
                # keeping it lets the next pass retry
                error(f"[sweep] PID {sid}: {describe(e)}")
                outcomes.append(SyncOutcome(sid, ERROR, entry.destination_id, error=describe(e)))
                continue
            self.cache.remove(sid)
            outcomes.append(SyncOutcome(sid, VANISHED, located.item_id if located else None))
        return outcomes

    # ---------------- passes ----------------

    def run_full(self) -> SyncSummary:
        summary = SyncSummary()
        try:
            products = shopify.list_products(self.source["domain"], self.source["token"])
        except requests.RequestException as e:
            # no listing means no sweep: an empty id set would retire every item
            error(f"[sync] listing Shopify products failed: {describe(e)}")
            summary.fail("*", describe(e))
            return summary

        info(f"[sync] full pass over {len(products)} products")
        try:
            for outcome in self.sweep(p["id"] for p in products):
                summary.add(outcome)
            for prod in products:
                summary.add(self.reconcile_safely(prod))
        finally:
            self.cache.save()
        info(f"[sync] pass done {summary.counts}")
        return summary

    def sync_product(self, pid: str | int) -> Optional[SyncOutcome]:
        """Reconcile one product by id; None when Shopify does not know it."""
        prod = shopify.get_product(self.source["domain"], self.source["token"], pid)
        if not prod:
            return None
        outcome = self.reconcile_safely(prod)
        self.cache.save()
        return outcome


def build_engine(data_dir: Optional[str] = None) -> CatalogSync:
    base = Path(data_dir or DATA_DIR)
    cache = IdentityCache(base / SYNC_CACHE_FILE).load()
    assets = AssetDeduplicator(AssetCache(base / ASSET_CACHE_FILE))
    return CatalogSync(cache, assets)
