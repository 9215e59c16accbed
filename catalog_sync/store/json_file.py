import json
from pathlib import Path

from ..utils.logger import warn, error, describe


def read_json(path: Path) -> dict:
    """Return the document at path, or {} when missing or unreadable."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        warn(f"[store] could not read {path}, starting empty: {describe(e)}")
        return {}
    if not isinstance(data, dict):
        warn(f"[store] {path} is not a JSON object, starting empty")
        return {}
    return data


def write_json(path: Path, data: dict) -> bool:
    """Atomic replace. Failures are logged, never raised."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(path)
        return True
    except OSError as e:
        error(f"[store] could not write {path}: {describe(e)}")
        return False
