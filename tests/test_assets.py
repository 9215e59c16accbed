"""Tests for hash-based asset deduplication."""
import json

from catalog_sync.services.assets import AssetDeduplicator, AssetRef, ImageField, file_name_for
from catalog_sync.store.asset_cache import AssetCache
from catalog_sync.utils.hash import sha1_bytes

SITE = "site-1"
TOKEN = "wf-token"


def _dedup(tmp_path):
    return AssetDeduplicator(AssetCache(tmp_path / "assetHashCache.json"))


def test_same_bytes_under_two_urls_upload_once(tmp_path, fake_webflow, blobs):
    blobs["https://cdn.shopify.test/a.jpg"] = b"JPEGDATA"
    blobs["https://cdn.shopify.test/a.jpg?v=2"] = b"JPEGDATA"
    dedup = _dedup(tmp_path)

    first = dedup.resolve(SITE, TOKEN, "https://cdn.shopify.test/a.jpg")
    second = dedup.resolve(SITE, TOKEN, "https://cdn.shopify.test/a.jpg?v=2")

    assert first == second
    assert isinstance(first, AssetRef)
    assert fake_webflow.names().count("create_asset") == 1
    assert fake_webflow.names().count("upload_asset") == 1


def test_local_cache_hit_makes_no_calls(tmp_path, fake_webflow, blobs):
    blobs["https://x/a.jpg"] = b"abc"
    _dedup(tmp_path).resolve(SITE, TOKEN, "https://x/a.jpg")
    fake_webflow.calls.clear()

    ref = _dedup(tmp_path).resolve(SITE, TOKEN, "https://x/a.jpg")

    assert ref is not None
    assert fake_webflow.calls == []
    saved = json.loads((tmp_path / "assetHashCache.json").read_text())
    assert saved[SITE][sha1_bytes(b"abc")]["id"] == ref.asset_id


def test_remote_listing_prevents_reupload(tmp_path, fake_webflow, blobs):
    blobs["https://x/a.jpg"] = b"abc"
    fake_webflow.assets[SITE] = [
        {"id": "A-old", "fileHash": sha1_bytes(b"abc"), "hostedUrl": "https://cdn.webflow.test/old.jpg"},
    ]

    ref = _dedup(tmp_path).resolve(SITE, TOKEN, "https://x/a.jpg")

    assert ref == AssetRef("A-old", "https://cdn.webflow.test/old.jpg")
    assert "create_asset" not in fake_webflow.names()
    saved = json.loads((tmp_path / "assetHashCache.json").read_text())
    assert saved[SITE][sha1_bytes(b"abc")]["id"] == "A-old"


def test_download_failure_returns_none(tmp_path, fake_webflow, blobs):
    assert _dedup(tmp_path).resolve(SITE, TOKEN, "https://x/missing.jpg") is None
    assert fake_webflow.calls == []


def test_upload_failure_writes_no_cache_entry(tmp_path, fake_webflow, blobs):
    blobs["https://x/a.jpg"] = b"abc"
    fake_webflow.fail.add("upload_asset")

    assert _dedup(tmp_path).resolve(SITE, TOKEN, "https://x/a.jpg") is None
    assert not (tmp_path / "assetHashCache.json").exists()


def test_listing_failure_skips_upload(tmp_path, fake_webflow, blobs):
    blobs["https://x/a.jpg"] = b"abc"
    fake_webflow.fail.add("iter_assets")

    assert _dedup(tmp_path).resolve(SITE, TOKEN, "https://x/a.jpg") is None
    assert "create_asset" not in fake_webflow.names()


def test_resolve_images_falls_back_to_source_url(tmp_path, fake_webflow, blobs):
    blobs["https://x/ok.jpg"] = b"ok"
    fields = _dedup(tmp_path).resolve_images(SITE, TOKEN, ["https://x/ok.jpg", "https://x/gone.jpg", ""])

    assert len(fields) == 2
    assert fields[0].file_id and not fields[0].degraded
    assert fields[1] == ImageField(url="https://x/gone.jpg", degraded=True)
    assert fields[1].as_field() == {"url": "https://x/gone.jpg"}


def test_local_path_is_read_from_disk(tmp_path, fake_webflow):
    img = tmp_path / "photo.png"
    img.write_bytes(b"\x89PNG")

    ref = _dedup(tmp_path).resolve(SITE, TOKEN, str(img))

    assert ref is not None
    assert fake_webflow.calls[-2][:3] == ("create_asset", SITE, "photo.png")


def test_file_name_for():
    assert file_name_for("https://cdn.shopify.com/files/bag.jpg?v=123") == "bag.jpg"
    assert file_name_for("https://cdn.shopify.com/files/bag") == "bag.jpg"
