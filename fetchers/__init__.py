# fetchers/__init__.py
from . import giftreggie
from .giftreggie import HttpResponse, GetFn

__all__ = ["giftreggie", "HttpResponse", "GetFn"]
