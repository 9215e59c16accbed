import json, hashlib
from typing import List, Optional


def image_refs(prod: dict) -> List[str]:
    """Ordered image URLs of a Shopify product (featured first when Shopify marks one)."""
    srcs = [img.get("src") for img in (prod.get("images") or []) if img.get("src")]
    featured = (prod.get("image") or {}).get("src")
    if featured and featured in srcs:
        srcs.remove(featured)
        srcs.insert(0, featured)
    elif featured:
        srcs.insert(0, featured)
    return srcs

def first_price(prod: dict) -> Optional[str]:
    variants = prod.get("variants") or []
    if not variants:
        return None
    price = variants[0].get("price")
    return str(price) if price is not None else None

def total_quantity(prod: dict) -> int:
    return sum(int(v.get("inventory_quantity") or 0) for v in (prod.get("variants") or []))

def product_fingerprint(prod: dict) -> str:
    fields = {
        "name": prod.get("title") or "",
        "vendor": prod.get("vendor") or "",
        "description": prod.get("body_html") or "",
        "price": first_price(prod),
        "quantity": total_quantity(prod),
        # a list, not a joined string: ["a,b"] and ["a", "b"] must differ
        "images": image_refs(prod),
        "slug": prod.get("handle") or "",
    }
    return hashlib.sha256(json.dumps(fields, sort_keys=True).encode()).hexdigest()

def sha1_bytes(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()
