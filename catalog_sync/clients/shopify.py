from typing import Iterator, Optional

import requests
from ..config import API_VERSION

PAGE_SIZE = 250

def admin_base(domain: str) -> str:
    return f"https://{domain}/admin/api/{API_VERSION}"

def rest_headers(token: str) -> dict:
    return {"Content-Type": "application/json", "X-Shopify-Access-Token": token}

def iter_products(domain: str, token: str, page_size: int = PAGE_SIZE) -> Iterator[dict]:
    """Walk every product, paging by last seen id (since_id)."""
    since_id = 0
    while True:
        r = requests.get(f"{admin_base(domain)}/products.json",
                         headers=rest_headers(token),
                         params={"limit": page_size, "since_id": since_id},
                         timeout=30)
        r.raise_for_status()
        page = r.json().get("products", []) or []
        yield from page
        if len(page) < page_size:
            return
        since_id = page[-1]["id"]

def list_products(domain: str, token: str) -> list[dict]:
    return list(iter_products(domain, token))

def get_product(domain: str, token: str, pid: int | str) -> Optional[dict]:
    r = requests.get(f"{admin_base(domain)}/products/{pid}.json",
                     headers=rest_headers(token), timeout=25)
    if r.status_code == 404:
        return None
    r.raise_for_status()
    return r.json().get("product")

def update_product(domain: str, token: str, pid: int | str, fields: dict) -> dict:
    """Partial update; Shopify leaves fields absent from the payload untouched."""
    payload = {"product": {"id": int(pid), **fields}}
    r = requests.put(f"{admin_base(domain)}/products/{pid}.json",
                     headers=rest_headers(token), json=payload, timeout=25)
    r.raise_for_status()
    return r.json().get("product") or {}

def set_metafield(domain: str, token: str, pid: int | str, ns: str, key: str, type_: str, value: str):
    payload = {"metafield": {
        "namespace": ns, "key": key, "type": type_,
        "value": value, "owner_resource": "product", "owner_id": pid
    }}
    r = requests.post(f"{admin_base(domain)}/products/{pid}/metafields.json",
                      headers=rest_headers(token), json=payload, timeout=25)
    r.raise_for_status()
