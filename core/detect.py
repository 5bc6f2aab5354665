# core/detect.py
from typing import Any, Dict, Optional, Sequence

import requests

from fetchers.giftreggie import GetFn, get as http_get
from .errors import DetectionError
from .logger import get_logger
from .models import CURSOR, PAGE, DetectionResult

logger = get_logger(__name__)

CANDIDATE_ENDPOINTS = ("wishlists", "wishlists.json", "wishlist")
LIST_FIELDS = ("wishlists", "data")
DEFAULT_LIST_FIELD = LIST_FIELDS[0]


def pick_list_field(body: Dict[str, Any], candidates: Sequence[str] = LIST_FIELDS) -> Optional[str]:
    for name in candidates:
        if isinstance(body.get(name), list):
            return name
    return None


def pick_pagination_style(body: Dict[str, Any]) -> str:
    if body.get("next_cursor"):
        return CURSOR
    pagination = body.get("pagination")
    if isinstance(pagination, dict) and pagination.get("next_cursor"):
        return CURSOR
    return PAGE


def detect_strategy(
    base_url: str,
    get: GetFn = http_get,
    endpoints: Sequence[str] = CANDIDATE_ENDPOINTS,
) -> DetectionResult:
    """
    Probe each candidate endpoint with limit=1 and infer the contract from the
    first one that answers 2xx with a JSON object. Raises DetectionError when
    none do.
    """
    for endpoint in endpoints:
        url = f"{base_url}/{endpoint}"
        logger.info("Probing endpoint: %s", url)
        try:
            resp = get(url, {"limit": 1})
        except requests.RequestException as e:
            logger.info("Endpoint %s not available: %s", endpoint, e)
            continue

        if not resp.ok:
            logger.info("Endpoint %s answered %d; trying next.", endpoint, resp.status)
            continue
        if not isinstance(resp.body, dict):
            logger.info("Endpoint %s did not return a JSON object; trying next.", endpoint)
            continue

        list_field = pick_list_field(resp.body)
        if list_field is None:
            logger.warning(
                "No list field among %s at %s; assuming '%s'.",
                LIST_FIELDS, endpoint, DEFAULT_LIST_FIELD,
            )
            list_field = DEFAULT_LIST_FIELD

        result = DetectionResult(
            endpoint=endpoint,
            pagination_style=pick_pagination_style(resp.body),
            list_field=list_field,
        )
        logger.info(
            "Detected endpoint: %s, style: %s, key: %s",
            result.endpoint, result.pagination_style, result.list_field,
        )
        return result

    raise DetectionError(f"Could not detect wishlists endpoint under {base_url}")
