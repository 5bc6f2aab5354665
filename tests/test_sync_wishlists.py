"""Tests for the run-sync entry point."""
import json

import sync_wishlists
from core.engine import SyncEngine
from fetchers import giftreggie
from tests.fakes import BASE_URL, FakeApi


def test_run_sync_success(db, two_page_api, sleeps):
    engine = SyncEngine(BASE_URL, get=two_page_api, sleep=sleeps.append)
    assert sync_wishlists.run_sync(engine) == {
        "success": True,
        "wishlists_persisted": 3,
        "items_persisted": 1,
    }


def test_run_sync_failure_is_structured(db, sleeps):
    engine = SyncEngine(BASE_URL, get=FakeApi(probes={}, pages={}), sleep=sleeps.append)
    result = sync_wishlists.run_sync(engine)
    assert result["success"] is False
    assert result["error_type"] == "DetectionError"
    assert result["wishlists_persisted"] == 0
    assert result["items_persisted"] == 0


def test_missing_credentials(db, monkeypatch):
    monkeypatch.setattr(giftreggie, "STORE_ID", "")
    result = sync_wishlists.run_sync()
    assert result["success"] is False
    assert result["error_type"] == "ConfigError"

    monkeypatch.setattr(giftreggie, "STORE_ID", "store-1")
    monkeypatch.setattr(giftreggie, "TOKEN", "")
    assert sync_wishlists.run_sync()["error_type"] == "ConfigError"


def test_run_once_exit_codes(db, monkeypatch, capsys):
    monkeypatch.setattr(
        sync_wishlists, "run_sync",
        lambda: {"success": True, "wishlists_persisted": 1, "items_persisted": 0},
    )
    assert sync_wishlists.run_once() == 0
    assert json.loads(capsys.readouterr().out)["wishlists_persisted"] == 1

    monkeypatch.setattr(
        sync_wishlists, "run_sync",
        lambda: {"success": False, "error": "x", "error_type": "FatalFetchError",
                 "wishlists_persisted": 0, "items_persisted": 0},
    )
    assert sync_wishlists.run_once() == 1


def test_storage_failure_is_structured(db, two_page_api, sleeps, monkeypatch):
    from core import storage

    def broken():
        raise OSError("read-only file system")

    monkeypatch.setattr(storage, "ensure_db", broken)
    engine = SyncEngine(BASE_URL, get=two_page_api, sleep=sleeps.append)
    result = sync_wishlists.run_sync(engine)
    assert result == {
        "success": False,
        "error": "read-only file system",
        "error_type": "OSError",
        "wishlists_persisted": 0,
        "items_persisted": 0,
    }
    assert two_page_api.calls == []


def test_unexpected_error_keeps_partial_counts(db, two_page_api, sleeps, monkeypatch):
    from core import checkpoint

    def broken(value, ts=None):
        raise RuntimeError("disk gone")

    monkeypatch.setattr(checkpoint, "write_checkpoint", broken)
    engine = SyncEngine(BASE_URL, get=two_page_api, sleep=sleeps.append)
    result = sync_wishlists.run_sync(engine)
    assert result["success"] is False
    assert result["error_type"] == "RuntimeError"
    assert result["wishlists_persisted"] == 2
    assert result["items_persisted"] == 1
