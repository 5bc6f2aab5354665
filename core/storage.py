# core/storage.py
import os
import sqlite3
import datetime
import json
import pytz
from typing import Any, Dict, List

from .logger import get_logger

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/wishlist_sync.sqlite3")

CHECKPOINT_KEY = "last_cursor"


def _connect():
    parent = os.path.dirname(DB_PATH)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return sqlite3.connect(DB_PATH)


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


def ensure_db():
    with _connect() as con:
        cur = con.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS wishlists (
                id TEXT PRIMARY KEY,
                owner_customer_id TEXT,
                owner_email TEXT,
                public_url TEXT,
                raw TEXT,
                last_synced_at TEXT
            )
        """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS wishlist_items (
                item_key TEXT PRIMARY KEY,   -- wishlist_id:product_id:variant_id
                wishlist_id TEXT NOT NULL,
                product_id TEXT,
                variant_id TEXT,
                quantity INTEGER,
                raw TEXT,
                last_synced_at TEXT
            )
        """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS ix_wishlist_items_wishlist ON wishlist_items (wishlist_id)"
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS sync_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL DEFAULT '',
                updated_at TEXT
            )
        """
        )
        con.commit()


def get_recent_wishlists(limit: int = 50) -> List[Dict[str, Any]]:
    """
    Most recently synced wishlists, newest first. This is what the dashboard
    lists; `raw` is decoded back into a dict.
    """
    with _connect() as con:
        cur = con.cursor()
        cur.execute(
            """
            SELECT id, owner_customer_id, owner_email, public_url, raw, last_synced_at
            FROM wishlists
            ORDER BY last_synced_at DESC
            LIMIT ?
        """,
            (limit,),
        )
        rows = cur.fetchall()

    out: List[Dict[str, Any]] = []
    for row in rows:
        wishlist_id, customer_id, email, public_url, raw, last_synced_at = row
        try:
            payload = json.loads(raw) if raw else {}
        except ValueError:
            logger.warning("Stored payload for wishlist %s is not valid JSON.", wishlist_id)
            payload = {}
        out.append(
            {
                "id": wishlist_id,
                "owner_customer_id": customer_id,
                "owner_email": email,
                "public_url": public_url,
                "raw": payload,
                "last_synced_at": last_synced_at,
            }
        )
    return out


def get_items_for_wishlist(wishlist_id: str) -> List[Dict[str, Any]]:
    with _connect() as con:
        cur = con.cursor()
        cur.execute(
            """
            SELECT item_key, product_id, variant_id, quantity, last_synced_at
            FROM wishlist_items
            WHERE wishlist_id=?
            ORDER BY item_key
        """,
            (wishlist_id,),
        )
        rows = cur.fetchall()
    return [
        {
            "item_key": item_key,
            "product_id": product_id,
            "variant_id": variant_id,
            "quantity": quantity,
            "last_synced_at": last_synced_at,
        }
        for item_key, product_id, variant_id, quantity, last_synced_at in rows
    ]


def count_rows(table: str) -> int:
    if table not in ("wishlists", "wishlist_items"):
        raise ValueError(f"Unknown table: {table}")
    with _connect() as con:
        cur = con.cursor()
        cur.execute(f"SELECT COUNT(*) FROM {table}")
        row = cur.fetchone()
    return row[0] if row and row[0] is not None else 0


def get_sync_status() -> Dict[str, Any]:
    """
    Checkpoint plus row counts. A non-empty cursor means a cycle is part-way
    through; empty means the last cycle reached the end of the list.
    """
    with _connect() as con:
        cur = con.cursor()
        cur.execute(
            "SELECT value, updated_at FROM sync_state WHERE key=?",
            (CHECKPOINT_KEY,),
        )
        row = cur.fetchone()

    cursor, updated_at = (row[0] or "", row[1]) if row else ("", None)
    return {
        "cursor": cursor,
        "updated_at": updated_at,
        "in_progress": bool(cursor),
        "wishlist_count": count_rows("wishlists"),
        "item_count": count_rows("wishlist_items"),
    }
