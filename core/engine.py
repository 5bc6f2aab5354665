"""
Sync driver: detect the API contract once, then walk the pages.

    DETECTING -> FETCHING -> (RETRYING -> FETCHING)* -> PERSISTING
              -> ADVANCING -> FETCHING | COMPLETING
    any step  -> FAILED

The resume marker is read from the checkpoint once at the start and carried
in memory. It is written back only after a page's records are persisted, so
the stored value always points at the first page not yet fully stored.
"""
import enum
import os
import time
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

import requests
from tenacity import Retrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from fetchers.giftreggie import GetFn, get as http_get
from . import backoff, checkpoint, sink
from .detect import detect_strategy
from .errors import FatalFetchError, SyncError, TransientFetchError
from .logger import get_logger
from .models import CURSOR, DetectionResult, SyncSummary

logger = get_logger(__name__)

PAGE_SIZE = int(os.getenv("SYNC_PAGE_SIZE", "250"))
MAX_ATTEMPTS = int(os.getenv("SYNC_MAX_ATTEMPTS", "5"))
PAGE_SPACING = float(os.getenv("SYNC_PAGE_SPACING", "1"))

NEXT_TOKEN_LOCATIONS: Sequence[Tuple[str, ...]] = (
    ("next_cursor",),
    ("pagination", "next_cursor"),
    ("pagination", "next"),
)


class SyncState(str, enum.Enum):
    DETECTING = "detecting"
    FETCHING = "fetching"
    RETRYING = "retrying"
    PERSISTING = "persisting"
    ADVANCING = "advancing"
    COMPLETING = "completing"
    FAILED = "failed"


def next_page_token(body: Dict[str, Any]) -> Optional[str]:
    """First truthy token among NEXT_TOKEN_LOCATIONS, as a string."""
    for path in NEXT_TOKEN_LOCATIONS:
        node: Any = body
        for part in path:
            node = node.get(part) if isinstance(node, dict) else None
        if not node or isinstance(node, bool):
            continue
        if isinstance(node, (str, int, float)):
            return str(node)
        logger.warning("Ignoring non-scalar next-page token at %s: %r", ".".join(path), node)
    return None


def _wait_from_backoff(retry_state: RetryCallState) -> float:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    hint = getattr(exc, "retry_after", None)
    return backoff.delay(retry_state.attempt_number - 1, hint)


class SyncEngine:
    def __init__(
        self,
        base_url: str,
        get: GetFn = http_get,
        sleep: Callable[[float], None] = time.sleep,
        page_size: int = PAGE_SIZE,
        max_attempts: int = MAX_ATTEMPTS,
        page_spacing: float = PAGE_SPACING,
    ):
        self.base_url = base_url.rstrip("/")
        self.get = get
        self.sleep = sleep
        self.page_size = page_size
        self.max_attempts = max(1, max_attempts)
        self.page_spacing = page_spacing
        self.state = SyncState.DETECTING
        self.summary = SyncSummary()

    def _transition(self, state: SyncState) -> None:
        logger.debug("Sync state %s -> %s", self.state.value, state.value)
        self.state = state

    # -- fetching ---------------------------------------------------------

    def _page_params(self, strategy: DetectionResult, marker: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": self.page_size}
        if marker:
            key = "cursor" if strategy.pagination_style == CURSOR else "page"
            params[key] = marker
        return params

    def _fetch_once(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self._transition(SyncState.FETCHING)
        try:
            resp = self.get(url, params)
        except requests.RequestException as e:
            raise TransientFetchError(f"Request to {url} failed: {e}") from e

        if resp.status == 429 or resp.status >= 500:
            raise TransientFetchError(
                f"Rate limited or server error ({resp.status}) from {url}",
                status=resp.status,
                retry_after=resp.retry_after,
            )
        if not resp.ok:
            raise FatalFetchError(f"Failed to fetch wishlists: {resp.status}", status=resp.status)
        if not isinstance(resp.body, dict):
            raise FatalFetchError(
                f"Page from {url} is not a JSON object", status=resp.status
            )
        return resp.body

    def _before_retry(self, retry_state: RetryCallState) -> None:
        self._transition(SyncState.RETRYING)
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "%s; retrying in %.1fs (attempt %d/%d).",
            exc, wait, retry_state.attempt_number, self.max_attempts,
        )

    def fetch_page(self, strategy: DetectionResult, marker: str) -> Dict[str, Any]:
        url = f"{self.base_url}/{strategy.endpoint}"
        params = self._page_params(strategy, marker)
        logger.info("Fetching: %s %s", url, params)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=_wait_from_backoff,
            retry=retry_if_exception_type(TransientFetchError),
            sleep=self.sleep,
            before_sleep=self._before_retry,
            reraise=True,
        )
        try:
            return retrying(self._fetch_once, url, params)
        except TransientFetchError as e:
            logger.error("Giving up on %s after %d attempts: %s", url, self.max_attempts, e)
            raise

    # -- persisting -------------------------------------------------------

    def persist_page(self, strategy: DetectionResult, body: Dict[str, Any]) -> None:
        self._transition(SyncState.PERSISTING)
        entries = body.get(strategy.list_field)
        if not isinstance(entries, list):
            logger.warning("Page has no '%s' list; treating as empty.", strategy.list_field)
            entries = []
        logger.info("Fetched %d wishlists", len(entries))

        for entry in entries:
            if not isinstance(entry, dict):
                logger.error("Skipping non-object wishlist entry: %r", entry)
                continue

            wishlist = sink.parse_wishlist(entry)
            result = sink.upsert_wishlist(wishlist)
            if not result.ok:
                logger.error("Error upserting wishlist %s: %s", wishlist.wishlist_id or "<no id>", result.error)
                continue
            self.summary.wishlists_persisted += 1

            for item in wishlist.items:
                item_result = sink.upsert_item(wishlist.wishlist_id, item)
                if item_result.ok:
                    self.summary.items_persisted += 1
                else:
                    logger.error(
                        "Error upserting item for wishlist %s: %s",
                        wishlist.wishlist_id, item_result.error,
                    )

    # -- main loop --------------------------------------------------------

    def run(self) -> SyncSummary:
        self.summary = SyncSummary()
        self.state = SyncState.DETECTING
        try:
            strategy = detect_strategy(self.base_url, get=self.get)

            marker = checkpoint.read_checkpoint()
            if marker:
                logger.info("Resuming from checkpoint %r", marker)

            while True:
                body = self.fetch_page(strategy, marker)
                self.summary.pages_fetched += 1
                self.persist_page(strategy, body)

                self._transition(SyncState.ADVANCING)
                token = next_page_token(body)
                if token is None:
                    logger.info("Reached end of wishlists, resetting cursor")
                    checkpoint.write_checkpoint("")
                    break
                if token == marker:
                    raise FatalFetchError(f"Pagination did not advance past {marker!r}")

                checkpoint.write_checkpoint(token)
                marker = token
                self.sleep(self.page_spacing)

        except SyncError as e:
            self._transition(SyncState.FAILED)
            e.summary = self.summary
            logger.error(
                "Sync failed (%s): %s [wishlists=%d, items=%d]",
                type(e).__name__, e,
                self.summary.wishlists_persisted, self.summary.items_persisted,
            )
            raise

        self._transition(SyncState.COMPLETING)
        logger.info(
            "Sync complete: %d wishlists, %d items",
            self.summary.wishlists_persisted, self.summary.items_persisted,
        )
        return self.summary
