"""
Durable resume marker for the sync loop.

One row in `sync_state` keyed by ``last_cursor``. The value is the cursor
(or page number) the next fetch should send; an empty string means the
previous cycle finished and the next run starts from the beginning.
"""
import sqlite3
from typing import Optional, Tuple

from . import storage
from .errors import CheckpointError
from .logger import get_logger

logger = get_logger(__name__)


def read_checkpoint_state() -> Tuple[str, Optional[str]]:
    """Return (value, updated_at); ("", None) before the first write."""
    try:
        with storage._connect() as con:
            cur = con.cursor()
            cur.execute(
                "SELECT value, updated_at FROM sync_state WHERE key=?",
                (storage.CHECKPOINT_KEY,),
            )
            row = cur.fetchone()
    except (sqlite3.Error, OSError) as e:
        raise CheckpointError(f"Failed to read checkpoint: {e}") from e

    if not row:
        return "", None
    return row[0] or "", row[1]


def read_checkpoint() -> str:
    value, _ = read_checkpoint_state()
    return value


def write_checkpoint(value: str, ts: Optional[str] = None) -> None:
    """Upsert the marker. Writing the same value twice is harmless."""
    ts = ts or storage.now_utc_iso()
    try:
        with storage._connect() as con:
            con.execute(
                """
                INSERT INTO sync_state (key, value, updated_at)
                VALUES (?,?,?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
            """,
                (storage.CHECKPOINT_KEY, value, ts),
            )
            con.commit()
    except (sqlite3.Error, OSError) as e:
        raise CheckpointError(f"Failed to write checkpoint {value!r}: {e}") from e

    logger.debug("Checkpoint %s=%r at %s", storage.CHECKPOINT_KEY, value, ts)
