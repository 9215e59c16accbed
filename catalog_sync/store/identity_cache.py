# catalog_sync/store/identity_cache.py
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from .json_file import read_json, write_json
from ..utils.logger import debug, warn


@dataclass
class CacheEntry:
    fingerprint: str
    destination_id: Optional[str] = None
    last_quantity: Optional[int] = None
    vertical: Optional[str] = None


def _first(d: dict, *keys):
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return None

def normalize_entry(raw) -> Optional[CacheEntry]:
    """
    Upgrade any stored shape to CacheEntry:
      - "abc123"                                   (legacy: fingerprint only)
      - {"hash", "webflowItemId", "lastQuantity"}  (older camelCase builds)
      - {"fingerprint", "destination_id", ...}     (current)
    """
    if isinstance(raw, str):
        return CacheEntry(fingerprint=raw) if raw else None
    if not isinstance(raw, dict):
        return None
    fp = _first(raw, "fingerprint", "hash")
    if not fp:
        return None
    dest = _first(raw, "destination_id", "destinationId", "webflowItemId")
    qty = _first(raw, "last_quantity", "lastQuantity")
    try:
        qty = int(qty) if qty is not None else None
    except (TypeError, ValueError):
        qty = None
    return CacheEntry(
        fingerprint=str(fp),
        destination_id=str(dest) if dest is not None else None,
        last_quantity=qty,
        vertical=_first(raw, "vertical"),
    )


class IdentityCache:
    """source product id -> CacheEntry, persisted as one JSON object."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._entries: dict[str, CacheEntry] = {}

    def load(self) -> "IdentityCache":
        self._entries = {}
        skipped = 0
        for key, raw in read_json(self.path).items():
            entry = normalize_entry(raw)
            if entry is None:
                skipped += 1
                continue
            self._entries[str(key)] = entry
        if skipped:
            warn(f"[cache] dropped {skipped} malformed entries from {self.path}")
        debug(f"[cache] loaded {len(self._entries)} entries from {self.path}")
        return self

    def save(self) -> bool:
        return write_json(self.path, {k: asdict(v) for k, v in self._entries.items()})

    def get(self, source_id: str | int) -> Optional[CacheEntry]:
        return self._entries.get(str(source_id))

    def put(self, source_id: str | int, entry: CacheEntry):
        key = str(source_id)
        prev = self._entries.get(key)
        # a known destination id is only dropped through remove()
        if entry.destination_id is None and prev and prev.destination_id:
            entry.destination_id = prev.destination_id
        self._entries[key] = entry

    def remove(self, source_id: str | int):
        self._entries.pop(str(source_id), None)

    def all_keys(self) -> set[str]:
        return set(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, source_id) -> bool:
        return str(source_id) in self._entries
