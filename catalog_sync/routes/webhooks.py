# catalog_sync/routes/webhooks.py
import json
import threading
import time
from flask import Blueprint, request

from ..config import SHOPIFY
from ..utils.security import verify_webhook_hmac
from ..utils.logger import info, error, describe
from ..services.sync import PASS_LOCK, build_engine

bp = Blueprint("webhooks", __name__)

# In-memory idempotency (best-effort)
_SEEN_IDS: dict[str, float] = {}
_SEEN_TTL = 60 * 10  # 10 minutes

def _seen(webhook_id: str) -> bool:
    now = time.time()
    for k, ts in list(_SEEN_IDS.items()):
        if now - ts > _SEEN_TTL:
            _SEEN_IDS.pop(k, None)
    if not webhook_id:
        return False
    if webhook_id in _SEEN_IDS:
        return True
    _SEEN_IDS[webhook_id] = now
    return False

def _sync_in_background(pid):
    def worker():
        try:
            with PASS_LOCK:
                outcome = build_engine().sync_product(pid)
            info(f"[webhook] PID={pid} -> {outcome.operation if outcome else 'not found'}")
        except Exception as e:
            error(f"[webhook] products worker PID={pid}: {describe(e)}")

    t = threading.Thread(target=worker, daemon=True)
    t.start()
    return t


@bp.post("/products")
def products():
    raw = verify_webhook_hmac(SHOPIFY["secret"])
    if _seen(request.headers.get("X-Shopify-Webhook-Id", "")):
        return "OK", 200

    payload = json.loads(raw.decode("utf-8")) if raw else {}
    pid = payload.get("id")
    info(f"[webhook] /products received. PID={pid}")
    if not pid:
        return "OK", 200

    _sync_in_background(pid)
    return "Accepted", 202
