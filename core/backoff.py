import math
from typing import Optional, Union

BASE_SECONDS = 1.0
CAP_SECONDS = 30.0


def _parse_hint(retry_after: Optional[Union[str, int, float]]) -> Optional[float]:
    if retry_after is None:
        return None
    try:
        seconds = float(str(retry_after).strip())
    except ValueError:
        # HTTP-date form of Retry-After; fall back to exponential.
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def delay(attempt: int, retry_after: Optional[Union[str, int, float]] = None) -> float:
    """
    Seconds to wait before retry number `attempt` (0-based).

    A positive Retry-After hint from the server wins outright. Otherwise
    min(BASE * 2**attempt, CAP).
    """
    hint = _parse_hint(retry_after)
    if hint is not None:
        return hint
    # past 2**5 the cap applies anyway; clamping keeps the float finite
    attempt = min(max(0, int(attempt)), 16)
    return min(BASE_SECONDS * (2 ** attempt), CAP_SECONDS)
