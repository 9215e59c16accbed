from pathlib import Path
from typing import Optional

from .json_file import read_json, write_json


class AssetCache:
    """{site_id: {sha1: {"id", "hostedUrl"}}} on disk."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._sites: dict[str, dict[str, dict]] = {}
        self._loaded = False

    def _ensure(self):
        if not self._loaded:
            raw = read_json(self.path)
            self._sites = {k: dict(v) for k, v in raw.items() if isinstance(v, dict)}
            self._loaded = True

    def get(self, site_id: str, sha1: str) -> Optional[dict]:
        self._ensure()
        hit = self._sites.get(site_id, {}).get(sha1)
        if isinstance(hit, dict) and hit.get("id") and hit.get("hostedUrl"):
            return hit
        return None

    def put(self, site_id: str, sha1: str, asset_id: str, hosted_url: str):
        self._ensure()
        self._sites.setdefault(site_id, {})[sha1] = {"id": asset_id, "hostedUrl": hosted_url}

    def save(self) -> bool:
        self._ensure()
        return write_json(self.path, self._sites)
