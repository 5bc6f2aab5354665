import os
import json
import time
import random
from typing import Any, Dict

from core.logger import get_logger
from core import storage
from core.engine import SyncEngine
from core.errors import SyncError
from core.models import SyncSummary
from fetchers import giftreggie

logger = get_logger(__name__)

POLL_MINUTES = int(os.getenv("POLL_MINUTES", "60"))
MODE = os.getenv("MODE", "daemon").lower()  # "daemon" or "once"


def jitter_sleep_minutes(minutes: int) -> None:
    base = max(1, minutes)
    jitter = random.uniform(-0.1 * base, 0.1 * base)
    total = base + jitter
    logger.info("Sleeping %.1f minutes before next sync.", total)
    time.sleep(total * 60)


def _failure(e: SyncError, error_type: str | None = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "success": False,
        "error": str(e),
        "error_type": error_type or type(e).__name__,
    }
    out.update(e.summary.to_dict())
    return out


def run_sync(engine: SyncEngine | None = None) -> Dict[str, Any]:
    """
    Run one full sync and report the outcome as a plain dict:
    {"success": True, "wishlists_persisted": n, "items_persisted": m} or
    {"success": False, "error": ..., "error_type": ..., plus partial counts}.
    """
    try:
        storage.ensure_db()
        if engine is None:
            giftreggie.check_credentials()
            engine = SyncEngine(giftreggie.base_url())
        logger.info("Starting Gift Reggie sync...")
        summary = engine.run()
    except SyncError as e:
        return _failure(e)
    except Exception as e:
        logger.exception("Unhandled error in run_sync: %s", e)
        partial = engine.summary if engine is not None else SyncSummary()
        return _failure(SyncError(str(e), partial), type(e).__name__)

    result: Dict[str, Any] = {"success": True}
    result.update(summary.to_dict())
    return result


def run_once() -> int:
    result = run_sync()
    print(json.dumps(result))
    if not result["success"]:
        logger.error("Sync run failed: %s", result["error"])
        return 1
    return 0


def run_daemon() -> None:
    logger.info("Starting daemon; sync every %d minutes.", POLL_MINUTES)

    while True:
        try:
            result = run_sync()
            if result["success"]:
                logger.info(
                    "Daemon sync ok: %d wishlists, %d items.",
                    result["wishlists_persisted"], result["items_persisted"],
                )
            else:
                logger.error(
                    "Daemon sync failed (%s): %s; resuming from checkpoint next cycle.",
                    result["error_type"], result["error"],
                )
        except Exception as e:
            logger.exception("Unhandled error in daemon loop: %s", e)

        jitter_sleep_minutes(POLL_MINUTES)


def main() -> None:
    try:
        if MODE == "once":
            raise SystemExit(run_once())
        else:
            run_daemon()
    except SystemExit:
        raise
    except Exception as e:
        logger.exception("Fatal sync error: %s", e)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
