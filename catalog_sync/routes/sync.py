# catalog_sync/routes/sync.py
import requests
from flask import Blueprint, request, jsonify

from ..config import SYNC_TOKEN
from ..utils.security import check_bearer
from ..utils.logger import info, error, describe
from ..services.sync import PASS_LOCK, build_engine

bp = Blueprint("sync", __name__)


@bp.post("/webflow-sync")
def sync_one():
    body = request.get_json(silent=True) or {}
    pid = body.get("shopifyProductId")
    if not pid:
        return jsonify({"error": "Missing shopifyProductId"}), 400

    info(f"[sync] single product requested PID={pid}")
    try:
        with PASS_LOCK:
            outcome = build_engine().sync_product(pid)
    except requests.RequestException as e:
        error(f"[sync] fetching Shopify product {pid} failed: {describe(e)}")
        return jsonify({"error": describe(e)}), 502
    if outcome is None:
        return jsonify({"error": f"Shopify product {pid} not found"}), 404

    status = "error" if outcome.error else "ok"
    return jsonify({"status": status, **outcome.as_dict()}), (502 if outcome.error else 200)


@bp.post("/sync/full")
def sync_full():
    check_bearer(SYNC_TOKEN)
    if not PASS_LOCK.acquire(blocking=False):
        return jsonify({"error": "sync already running"}), 409
    try:
        summary = build_engine().run_full()
    finally:
        PASS_LOCK.release()
    return jsonify(summary.as_dict()), 200
