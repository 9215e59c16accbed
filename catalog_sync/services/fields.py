# catalog_sync/services/fields.py
# Shopify product -> Webflow fieldData. Keys are the collection field slugs.
import re
from typing import Callable, Optional

from ..config import DEFAULT_VERTICAL, GALLERY_SLOTS
from ..utils.hash import first_price
from .assets import ImageField
from .locator import SOURCE_ID_FIELD

VERTICALS = ("luxury", "furniture")

Classifier = Callable[[dict], str]
VendorPolicy = Callable[[dict], Optional[str]]

_BY_NAME = re.compile(r"\bby\s+([^-]+?)(?:\s*-\s*|$)", re.I)
_DIMENSIONS = re.compile(r"^[\d\sXx\"']+$")


def tag_vertical(prod: dict) -> str:
    """
    Default routing policy: an explicit "vertical:luxury" / "vertical:furniture"
    tag wins, everything else goes to DEFAULT_VERTICAL.
    """
    tags = prod.get("tags") or ""
    if isinstance(tags, str):
        tags = tags.split(",")
    for t in tags:
        t = t.strip().lower()
        if t.startswith("vertical:") and t[len("vertical:"):] in VERTICALS:
            return t[len("vertical:"):]
    return DEFAULT_VERTICAL


def vendor_from_title(prod: dict) -> Optional[str]:
    """
    Fill a blank vendor from a "... by Maker Name - 80X20" title.
    Products that already carry a vendor are left alone.
    """
    if (prod.get("vendor") or "").strip():
        return None
    m = _BY_NAME.search(prod.get("title") or "")
    if not m:
        return None
    name = " ".join(m.group(1).split())
    if not 2 <= len(name) <= 60 or _DIMENSIONS.match(name):
        return None
    return name


def shopify_url(domain: Optional[str], handle: Optional[str]) -> Optional[str]:
    if not (domain and handle):
        return None
    return f"https://{domain}/products/{handle}"


def image_slots(images: list[ImageField], gallery_slots: int = GALLERY_SLOTS) -> dict:
    """featured-image + image-1..image-N, filled positionally. Extras are dropped."""
    out = {"featured-image": images[0].as_field() if images else None}
    gallery = images[1:]
    for i in range(gallery_slots):
        out[f"image-{i + 1}"] = gallery[i].as_field() if i < len(gallery) else None
    return out


def product_fields(prod: dict, images: list[ImageField], domain: Optional[str] = None,
                   gallery_slots: int = GALLERY_SLOTS) -> dict:
    """Fields shared by create and update. No slug: Webflow owns it after creation."""
    fields = {
        "name": prod.get("title"),
        "brand": prod.get("vendor"),
        "price": first_price(prod),
        "description": prod.get("body_html") or "",
        SOURCE_ID_FIELD: str(prod.get("id")),
        "shopify-url": shopify_url(domain, prod.get("handle")),
    }
    fields.update(image_slots(images, gallery_slots))
    return fields


def create_fields(prod: dict, images: list[ImageField], domain: Optional[str] = None,
                  gallery_slots: int = GALLERY_SLOTS) -> dict:
    fields = product_fields(prod, images, domain, gallery_slots)
    fields["slug"] = prod.get("handle")
    fields["show-on-webflow"] = True
    fields["featured-item-on-homepage"] = False
    return fields


def sold_fields(vertical: str) -> dict:
    # luxury hides the item under the Sold category; furniture keeps it visible with a flag
    if vertical == "luxury":
        return {"show-on-webflow": False, "category": "Sold"}
    return {"sold": True}
