"""Shared pytest fixtures."""
from __future__ import annotations

import os

os.environ.setdefault("LOG_TO_FILE", "false")

from pathlib import Path
from typing import List

import pytest

from core import storage
from tests.fakes import PAGE_ONE, PAGE_TWO, FakeApi, ok


@pytest.fixture
def db(tmp_path: Path, monkeypatch) -> Path:
    """Point storage at a fresh SQLite file with the schema created."""
    path = tmp_path / "sync.sqlite3"
    monkeypatch.setattr(storage, "DB_PATH", str(path))
    storage.ensure_db()
    return path


@pytest.fixture
def two_page_api() -> FakeApi:
    """Page one: two wishlists (one item) and cursor "abc". Page two: one wishlist, no cursor."""
    return FakeApi(
        probes={"wishlists": ok({"wishlists": [], "next_cursor": "probe"})},
        pages={"": ok(PAGE_ONE), "abc": ok(PAGE_TWO)},
    )


@pytest.fixture
def sleeps() -> List[float]:
    return []
