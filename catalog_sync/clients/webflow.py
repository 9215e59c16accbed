import mimetypes
from typing import Iterator, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from ..config import WEBFLOW_API

PAGE_SIZE = 100

class WebflowError(RuntimeError):
    def __init__(self, method: str, url: str, status: int, body: str):
        super().__init__(f"{method} {url} failed {status}: {body[:300]}")
        self.status = status

class RateLimited(Exception): pass

# everything a Webflow call can raise once retries are spent
ERRORS = (requests.RequestException, WebflowError, RateLimited)

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

# =========================================================
# Transport (429 is the only status retried)
# =========================================================

@retry(
    reraise=True,
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
    retry=retry_if_exception_type(RateLimited),
)
def _call(method: str, token: str, path: str, allow_404: bool = False, **kwargs) -> Optional[dict]:
    url = f"{WEBFLOW_API}{path}"
    r = requests.request(method, url, headers=auth_headers(token), timeout=30, **kwargs)
    if r.status_code == 429:
        raise RateLimited(r.text)
    if allow_404 and r.status_code == 404:
        return None
    if r.status_code not in (200, 201, 202, 204):
        raise WebflowError(method, url, r.status_code, r.text)
    return r.json() if r.content else {}

# =========================================================
# Collection items
# =========================================================

def create_item(token: str, collection_id: str, field_data: dict) -> dict:
    body = {"isArchived": False, "isDraft": False, "fieldData": field_data}
    return _call("POST", token, f"/collections/{collection_id}/items", json=body)

def update_item(token: str, collection_id: str, item_id: str, field_data: dict) -> dict:
    """PATCH overlay: fields missing from field_data keep their current value."""
    return _call("PATCH", token, f"/collections/{collection_id}/items/{item_id}",
                 json={"fieldData": field_data})

def get_item(token: str, collection_id: str, item_id: str) -> Optional[dict]:
    return _call("GET", token, f"/collections/{collection_id}/items/{item_id}", allow_404=True)

def iter_items(token: str, collection_id: str) -> Iterator[dict]:
    offset = 0
    while True:
        data = _call("GET", token, f"/collections/{collection_id}/items",
                     params={"limit": PAGE_SIZE, "offset": offset}) or {}
        items = data.get("items") or []
        yield from items
        total = (data.get("pagination") or {}).get("total")
        offset += len(items)
        if len(items) < PAGE_SIZE or (total is not None and offset >= total):
            return

# =========================================================
# Assets
# =========================================================

def create_asset(token: str, site_id: str, file_name: str, file_hash: str) -> dict:
    return _call("POST", token, f"/sites/{site_id}/assets",
                 json={"fileName": file_name, "fileHash": file_hash})

def iter_assets(token: str, site_id: str) -> Iterator[dict]:
    offset = 0
    while True:
        data = _call("GET", token, f"/sites/{site_id}/assets",
                     params={"limit": PAGE_SIZE, "offset": offset}) or {}
        assets = data.get("assets") or []
        yield from assets
        total = (data.get("pagination") or {}).get("total")
        offset += len(assets)
        if not data.get("pagination") or len(assets) < PAGE_SIZE:
            return
        if total is not None and offset >= total:
            return

def upload_asset(upload_url: str, upload_details: dict, file_name: str, content: bytes,
                 content_type: Optional[str] = None):
    """POST the bytes to the one-time upload target returned by create_asset."""
    ctype = content_type or mimetypes.guess_type(file_name)[0] or "image/jpeg"
    r = requests.post(upload_url, data=upload_details,
                      files={"file": (file_name, content, ctype)}, timeout=90)
    if r.status_code not in (200, 201, 204):
        raise WebflowError("POST", upload_url, r.status_code, r.text)
