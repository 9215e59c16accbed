import base64, hashlib, hmac
from typing import Optional
from flask import request, abort

def verify_webhook_hmac(secret: Optional[str]) -> bytes:
    """Abort with 401 unless the Shopify HMAC header matches the raw body."""
    if not secret:
        abort(500, "webhook secret not configured")
    raw = request.get_data()
    their_hmac = request.headers.get("X-Shopify-Hmac-Sha256", "")
    digest = hmac.new(secret.encode(), raw, hashlib.sha256).digest()
    if not hmac.compare_digest(base64.b64encode(digest).decode(), their_hmac):
        abort(401)
    return raw

def check_bearer(expected: Optional[str]):
    """No-op when no token is configured."""
    if not expected:
        return
    given = request.headers.get("Authorization", "")
    if not hmac.compare_digest(given, f"Bearer {expected}"):
        abort(401)
