# core/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import SinkError

CURSOR = "cursor"
PAGE = "page"


@dataclass
class RemoteItem:
    """
    A line item on a remote wishlist. Product/variant ids may be missing on
    malformed payloads; `raw` is kept verbatim and is the source of truth.
    """
    wishlist_id: str
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    quantity: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return bool(self.product_id) and bool(self.variant_id)

    @property
    def key(self) -> str:
        return f"{self.wishlist_id}:{self.product_id or ''}:{self.variant_id or ''}"


@dataclass
class RemoteWishlist:
    """
    A wishlist as returned by the remote API. `raw` holds the full payload so
    fields we don't model explicitly survive the round trip.
    """
    wishlist_id: str
    customer_id: Optional[str] = None
    email: Optional[str] = None
    public_url: Optional[str] = None
    items: List[RemoteItem] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DetectionResult:
    endpoint: str
    pagination_style: str  # CURSOR or PAGE
    list_field: str


@dataclass
class SyncSummary:
    wishlists_persisted: int = 0
    items_persisted: int = 0
    pages_fetched: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "wishlists_persisted": self.wishlists_persisted,
            "items_persisted": self.items_persisted,
        }


@dataclass
class SinkResult:
    key: str
    ok: bool = True
    error: Optional["SinkError"] = None
