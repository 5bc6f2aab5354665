"""Scripted HTTP fakes and page fixtures shared by the tests."""
from __future__ import annotations

from typing import Any, Dict, List

from fetchers.giftreggie import HttpResponse

BASE_URL = "https://api.test/api/store-1"


def ok(body: Any) -> HttpResponse:
    return HttpResponse(status=200, body=body)


def status(code: int, headers: Dict[str, str] | None = None) -> HttpResponse:
    return HttpResponse(status=code, body={"error": "nope"}, headers=headers or {})


class FakeApi:
    """
    Scripted stand-in for fetchers.giftreggie.get.

    `probes` maps endpoint name -> response for limit=1 requests (missing
    endpoints answer 404). `pages` maps the marker sent (cursor or page,
    "" for none) -> a response, an exception, or a list of those consumed in
    order (the last entry repeats).
    """

    def __init__(self, probes: Dict[str, Any], pages: Dict[str, Any]):
        self.probes = probes
        self.pages = pages
        self.calls: List[tuple] = []

    def __call__(self, url: str, params: Dict[str, Any] | None = None) -> HttpResponse:
        params = dict(params or {})
        self.calls.append((url, params))
        endpoint = url.rsplit("/", 1)[-1]

        if params.get("limit") == 1:
            resp = self.probes.get(endpoint, status(404))
        else:
            marker = str(params.get("cursor", params.get("page", "")))
            script = self.pages[marker]
            if isinstance(script, list):
                resp = script.pop(0) if len(script) > 1 else script[0]
            else:
                resp = script

        if isinstance(resp, Exception):
            raise resp
        return resp

    def page_calls(self) -> List[Dict[str, Any]]:
        return [params for _, params in self.calls if params.get("limit") != 1]


PAGE_ONE = {
    "wishlists": [
        {
            "id": "w1",
            "customer_id": "c1",
            "email": "one@example.com",
            "public_url": "https://shop.test/w/w1",
            "items": [{"product_id": "p1", "variant_id": "v1", "quantity": 2}],
        },
        {"id": "w2", "customer_id": "c2"},
    ],
    "next_cursor": "abc",
}

PAGE_TWO = {"wishlists": [{"id": "w3", "email": "three@example.com"}]}
