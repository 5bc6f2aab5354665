# core/sink.py
import json
import sqlite3
from typing import Any, Dict, Optional

from . import storage
from .errors import SinkError
from .logger import get_logger
from .models import RemoteItem, RemoteWishlist, SinkResult

logger = get_logger(__name__)

# SQLite INTEGER is a signed 64-bit value
MAX_QUANTITY = 2 ** 63 - 1


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _quantity(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        q = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if isinstance(value, float) and q != value:
        return None
    return q if 0 <= q <= MAX_QUANTITY else None


def parse_item(wishlist_id: str, payload: Dict[str, Any]) -> RemoteItem:
    qty = _quantity(payload.get("quantity"))
    item = RemoteItem(
        wishlist_id=wishlist_id,
        product_id=_opt_str(payload.get("product_id")),
        variant_id=_opt_str(payload.get("variant_id")),
        quantity=qty if qty is not None else 0,
        raw=payload,
    )
    if qty is None:
        logger.warning(
            "Item %s has invalid quantity %r; storing 0.", item.key, payload.get("quantity")
        )
    return item


def parse_wishlist(payload: Dict[str, Any]) -> RemoteWishlist:
    """
    Build a RemoteWishlist from one entry of the API's list field. A missing
    id yields an empty `wishlist_id`; upsert_wishlist rejects it.
    """
    wishlist_id = _opt_str(payload.get("id")) or ""
    items = []
    raw_items = payload.get("items")
    if isinstance(raw_items, list):
        for entry in raw_items:
            if not isinstance(entry, dict):
                logger.warning("Skipping non-object item on wishlist %s: %r", wishlist_id, entry)
                continue
            items.append(parse_item(wishlist_id, entry))

    return RemoteWishlist(
        wishlist_id=wishlist_id,
        customer_id=_opt_str(payload.get("customer_id")),
        email=_opt_str(payload.get("email")),
        public_url=_opt_str(payload.get("public_url")),
        items=items,
        raw=payload,
    )


def upsert_wishlist(record: RemoteWishlist) -> SinkResult:
    """
    Insert or fully replace the row for `record.wishlist_id`.
    Failures come back as SinkResult(ok=False); nothing is raised.
    """
    if not record.wishlist_id:
        err = SinkError("Wishlist has no id; rejected.")
        return SinkResult(key="", ok=False, error=err)

    ts = storage.now_utc_iso()
    try:
        with storage._connect() as con:
            con.execute(
                """
                INSERT INTO wishlists (
                    id, owner_customer_id, owner_email, public_url, raw, last_synced_at
                )
                VALUES (?,?,?,?,?,?)
                ON CONFLICT(id) DO UPDATE SET
                    owner_customer_id=excluded.owner_customer_id,
                    owner_email=excluded.owner_email,
                    public_url=excluded.public_url,
                    raw=excluded.raw,
                    last_synced_at=excluded.last_synced_at
            """,
                (
                    record.wishlist_id,
                    record.customer_id,
                    record.email,
                    record.public_url,
                    json.dumps(record.raw, sort_keys=True, default=str),
                    ts,
                ),
            )
            con.commit()
    except (sqlite3.Error, OSError, TypeError, ValueError, OverflowError) as e:
        err = SinkError(f"Failed to upsert wishlist {record.wishlist_id}: {e}", record.wishlist_id)
        return SinkResult(key=record.wishlist_id, ok=False, error=err)

    return SinkResult(key=record.wishlist_id)


def upsert_item(wishlist_id: str, record: RemoteItem) -> SinkResult:
    """
    Insert or replace one line item. The key is wishlist:product:variant, so
    re-syncing the same triple overwrites instead of adding a row.
    """
    if not wishlist_id:
        err = SinkError("Item has no parent wishlist id; rejected.")
        return SinkResult(key="", ok=False, error=err)

    record.wishlist_id = wishlist_id
    key = record.key
    if not record.complete:
        logger.warning(
            "Incomplete item on wishlist %s (product_id=%s, variant_id=%s); storing anyway.",
            wishlist_id, record.product_id, record.variant_id,
        )

    ts = storage.now_utc_iso()
    try:
        with storage._connect() as con:
            con.execute(
                """
                INSERT INTO wishlist_items (
                    item_key, wishlist_id, product_id, variant_id, quantity, raw, last_synced_at
                )
                VALUES (?,?,?,?,?,?,?)
                ON CONFLICT(item_key) DO UPDATE SET
                    wishlist_id=excluded.wishlist_id,
                    product_id=excluded.product_id,
                    variant_id=excluded.variant_id,
                    quantity=excluded.quantity,
                    raw=excluded.raw,
                    last_synced_at=excluded.last_synced_at
            """,
                (
                    key,
                    wishlist_id,
                    record.product_id,
                    record.variant_id,
                    record.quantity,
                    json.dumps(record.raw, sort_keys=True, default=str),
                    ts,
                ),
            )
            con.commit()
    except (sqlite3.Error, OSError, TypeError, ValueError, OverflowError) as e:
        err = SinkError(f"Failed to upsert item {key}: {e}", key)
        return SinkResult(key=key, ok=False, error=err)

    return SinkResult(key=key)
