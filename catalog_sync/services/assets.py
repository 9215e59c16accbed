# catalog_sync/services/assets.py
"""
Content-addressed Webflow assets.

    download -> SHA1 -> local cache -> remote listing (fileHash) -> create + upload

SHA1 of the bytes is the asset identity. A hash is created on a site at most
once: the local cache and the full remote listing are both consulted before
any create call, so a fresh environment with an empty cache still reuses what
the site already holds.
"""
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests

from ..clients import webflow
from ..store.asset_cache import AssetCache
from ..utils.hash import sha1_bytes
from ..utils.logger import debug, info, warn, describe


@dataclass(frozen=True)
class AssetRef:
    asset_id: str
    hosted_url: str


@dataclass(frozen=True)
class ImageField:
    """One image slot value. degraded=True means the raw source URL is used."""
    url: str
    file_id: Optional[str] = None
    degraded: bool = False

    def as_field(self) -> dict:
        if self.file_id:
            return {"fileId": self.file_id, "url": self.url}
        return {"url": self.url}


def download(ref: str) -> bytes:
    if ref.startswith(("http://", "https://")):
        r = requests.get(ref, timeout=30)
        r.raise_for_status()
        return r.content
    with open(ref, "rb") as fh:
        return fh.read()

def file_name_for(ref: str) -> str:
    path = urlparse(ref).path if "://" in ref else ref
    name = os.path.basename(path) or "image"
    if not os.path.splitext(name)[1]:
        name += ".jpg"
    return name


class AssetDeduplicator:
    def __init__(self, cache: AssetCache):
        self.cache = cache
        # site_id -> {sha1: AssetRef}, filled once per site per process
        self._remote: dict[str, dict[str, AssetRef]] = {}

    def _remote_index(self, site_id: str, token: str) -> dict[str, AssetRef]:
        if site_id not in self._remote:
            index = {}
            for a in webflow.iter_assets(token, site_id):
                h = a.get("fileHash") or a.get("filehash")
                url = a.get("hostedUrl") or a.get("assetUrl")
                if h and a.get("id") and url:
                    index[h] = AssetRef(a["id"], url)
            debug(f"[assets] site {site_id}: {len(index)} hashed assets listed")
            self._remote[site_id] = index
        return self._remote[site_id]

    def resolve(self, site_id: str, token: str, image_ref: str) -> Optional[AssetRef]:
        if not (site_id and token and image_ref):
            return None

        try:
            content = download(image_ref)
        except (requests.RequestException, OSError) as e:
            warn(f"[assets] download failed {image_ref}: {describe(e)}")
            return None

        sha1 = sha1_bytes(content)
        hit = self.cache.get(site_id, sha1)
        if hit:
            return AssetRef(hit["id"], hit["hostedUrl"])

        try:
            remote = self._remote_index(site_id, token)
        except webflow.ERRORS as e:
            # without the listing an upload could duplicate an existing asset
            warn(f"[assets] asset listing failed for site {site_id}, not uploading: {describe(e)}")
            return None
        if sha1 in remote:
            ref = remote[sha1]
            self.cache.put(site_id, sha1, ref.asset_id, ref.hosted_url)
            self.cache.save()
            return ref

        name = file_name_for(image_ref)
        try:
            created = webflow.create_asset(token, site_id, name, sha1) or {}
        except webflow.ERRORS as e:
            warn(f"[assets] create asset failed for {name}: {describe(e)}")
            return None

        asset_id = created.get("id")
        upload_url = created.get("uploadUrl")
        details = created.get("uploadDetails")
        hosted_url = created.get("hostedUrl") or created.get("assetUrl")
        if not (asset_id and upload_url and isinstance(details, dict) and hosted_url):
            warn(f"[assets] create asset response incomplete for {name}")
            return None

        try:
            webflow.upload_asset(upload_url, details, name, content, created.get("contentType"))
        except webflow.ERRORS as e:
            warn(f"[assets] upload failed for {name}: {describe(e)}")
            return None

        ref = AssetRef(asset_id, hosted_url)
        self.cache.put(site_id, sha1, asset_id, hosted_url)
        self.cache.save()
        self._remote.setdefault(site_id, {})[sha1] = ref
        info(f"[assets] uploaded {name} ({sha1[:10]}) -> {asset_id}")
        return ref

    def resolve_images(self, site_id: Optional[str], token: Optional[str], refs: list[str]) -> list[ImageField]:
        """Resolve in order; a failed ref keeps its original URL."""
        out = []
        for ref in refs:
            if not ref:
                continue
            asset = self.resolve(site_id, token, ref) if (site_id and token) else None
            if asset:
                out.append(ImageField(url=asset.hosted_url, file_id=asset.asset_id))
            else:
                out.append(ImageField(url=ref, degraded=True))
        return out
