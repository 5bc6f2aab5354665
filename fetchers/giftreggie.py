# fetchers/giftreggie.py
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from core.errors import ConfigError
from core.logger import get_logger

logger = get_logger(__name__)

API_ROOT = os.getenv("GIFT_REGGIE_BASE_URL", "https://gift-reggie.eshopadmin.com/api").rstrip("/")
STORE_ID = os.getenv("GIFT_REGGIE_STORE_ID", "").strip()
TOKEN = os.getenv("GIFT_REGGIE_TOKEN", "").strip()
HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "30"))
TOKEN_HEADER = "X-Access-Token"

SESSION = requests.Session()
SESSION.headers.update({"Accept": "application/json"})


@dataclass
class HttpResponse:
    status: int
    body: Any = None  # decoded JSON, or None if the body wasn't JSON
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def retry_after(self) -> Optional[str]:
        for k, v in self.headers.items():
            if k.lower() == "retry-after":
                return v
        return None


GetFn = Callable[[str, Optional[Dict[str, Any]]], HttpResponse]


def base_url(store_id: str | None = None) -> str:
    store_id = store_id if store_id is not None else STORE_ID
    if not store_id:
        raise ConfigError("GIFT_REGGIE_STORE_ID is not set.")
    return f"{API_ROOT}/{store_id}"


def _token() -> str:
    if not TOKEN:
        raise ConfigError("GIFT_REGGIE_TOKEN is not set.")
    return TOKEN


def check_credentials() -> None:
    """Raise ConfigError unless both the store id and token are configured."""
    base_url()
    _token()


def get(url: str, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
    """
    GET `url` with the access-token header. Returns status, decoded JSON body
    and headers; transport failures propagate as requests.RequestException.
    """
    r = SESSION.get(
        url,
        params=params,
        headers={TOKEN_HEADER: _token()},
        timeout=HTTP_TIMEOUT,
    )
    try:
        body = r.json()
    except ValueError:
        logger.debug("Non-JSON body from %s (status %d)", r.url, r.status_code)
        body = None
    return HttpResponse(status=r.status_code, body=body, headers=dict(r.headers))
