"""Tests for the dashboard read helpers."""
from core import checkpoint, sink, storage
from core.models import RemoteItem


def test_recent_wishlists_newest_first(db, monkeypatch):
    stamps = iter(["2026-01-01T00:00:00+00:00", "2026-01-03T00:00:00+00:00", "2026-01-02T00:00:00+00:00"])
    monkeypatch.setattr(storage, "now_utc_iso", lambda: next(stamps))
    for wid in ("a", "b", "c"):
        sink.upsert_wishlist(sink.parse_wishlist({"id": wid, "note": wid}))

    recent = storage.get_recent_wishlists()
    assert [w["id"] for w in recent] == ["b", "c", "a"]
    assert recent[0]["raw"] == {"id": "b", "note": "b"}
    assert [w["id"] for w in storage.get_recent_wishlists(limit=1)] == ["b"]


def test_items_for_wishlist(db):
    sink.upsert_item("w1", RemoteItem("w1", "p2", "v1", 1))
    sink.upsert_item("w1", RemoteItem("w1", "p1", "v1", 3))
    sink.upsert_item("w2", RemoteItem("w2", "p1", "v1", 1))

    items = storage.get_items_for_wishlist("w1")
    assert [(i["product_id"], i["quantity"]) for i in items] == [("p1", 3), ("p2", 1)]


def test_sync_status_reflects_checkpoint(db):
    status = storage.get_sync_status()
    assert status == {
        "cursor": "",
        "updated_at": None,
        "in_progress": False,
        "wishlist_count": 0,
        "item_count": 0,
    }

    sink.upsert_wishlist(sink.parse_wishlist({"id": "w1"}))
    checkpoint.write_checkpoint("abc", "2026-02-01T00:00:00+00:00")
    status = storage.get_sync_status()
    assert status["in_progress"] is True
    assert status["cursor"] == "abc"
    assert status["wishlist_count"] == 1

    checkpoint.write_checkpoint("")
    assert storage.get_sync_status()["in_progress"] is False
