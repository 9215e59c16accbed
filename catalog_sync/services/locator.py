# catalog_sync/services/locator.py
from dataclasses import dataclass
from typing import Iterable, Optional

from ..clients import webflow
from ..utils.logger import debug

SOURCE_ID_FIELD = "shopify-product-id"


@dataclass
class Located:
    item: dict
    vertical: str

    @property
    def item_id(self) -> str:
        return str(self.item["id"])


class DestinationLocator:
    """Find the Webflow item mirroring a Shopify product."""

    def __init__(self, token: str, collections: dict[str, str]):
        self.token = token
        self.collections = collections

    def find_by_id(self, vertical: str, item_id: str) -> Optional[dict]:
        collection_id = self.collections.get(vertical)
        if not (collection_id and item_id):
            return None
        return webflow.get_item(self.token, collection_id, item_id)

    def find_by_source_id(self, vertical: str, source_id: str | int) -> Optional[dict]:
        collection_id = self.collections.get(vertical)
        if not collection_id:
            return None
        wanted = str(source_id)
        for item in webflow.iter_items(self.token, collection_id):
            if str((item.get("fieldData") or {}).get(SOURCE_ID_FIELD) or "") == wanted:
                return item
        return None

    def locate(self, source_id: str | int, item_id: Optional[str],
               verticals: Iterable[Optional[str]]) -> Optional[Located]:
        """
        Cached item id first (direct GET in each candidate collection), then a
        scan of each candidate collection by the back-reference field.
        """
        order = []
        for v in verticals:
            if v and v not in order:
                order.append(v)

        if item_id:
            for v in order:
                item = self.find_by_id(v, item_id)
                if item:
                    return Located(item, v)
            debug(f"[locate] cached item {item_id} for {source_id} not found, scanning")

        for v in order:
            item = self.find_by_source_id(v, source_id)
            if item:
                return Located(item, v)
        return None
