"""
Optional API key and rate limiting for /api/*.

- If BRANCHWISE_API_KEY is set, requests must include X-API-Key: <key>,
  ?api_key=<key> or Authorization: Bearer <key>.
- /api/health and /api/metrics are always open for load balancers.
- Rate limiting: in-memory fixed window, per API key or per client IP.
"""

import os
import time
from typing import Optional

from fastapi import HTTPException, Request

API_KEY_HEADER = "X-API-Key"
API_KEY_ENV = os.getenv("BRANCHWISE_API_KEY", "").strip()
# Rate limit: max requests per window per identifier (IP or API key); 0 disables
RATE_LIMIT_REQUESTS = int(os.environ.get("BRANCHWISE_RATE_LIMIT_REQUESTS", "120"))
RATE_LIMIT_WINDOW_SEC = int(os.environ.get("BRANCHWISE_RATE_LIMIT_WINDOW_SEC", "60"))

# client id -> (window_start_sec, count)
_rate_limit_store: dict[str, tuple[float, int]] = {}


def get_client_id(request: Request, api_key: Optional[str]) -> str:
    """API key if present, else first X-Forwarded-For hop, else client host."""
    if api_key:
        return f"key:{api_key[:16]}"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


def check_rate_limit(client_id: str) -> None:
    """Raise 429 if over limit. Otherwise count the request."""
    if RATE_LIMIT_REQUESTS <= 0:
        return
    now = time.time()
    _prune_expired(now)
    start, count = _rate_limit_store.get(client_id, (now, 0))
    if now - start >= RATE_LIMIT_WINDOW_SEC:
        start, count = now, 0
    count += 1
    _rate_limit_store[client_id] = (start, count)
    if count > RATE_LIMIT_REQUESTS:
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Try again later.")


def _prune_expired(now: float) -> None:
    """Drop clients whose window has ended; they start a fresh window anyway."""
    expired = [cid for cid, (start, _count) in _rate_limit_store.items() if now - start >= RATE_LIMIT_WINDOW_SEC]
    for cid in expired:
        del _rate_limit_store[cid]


def reset_rate_limits() -> None:
    _rate_limit_store.clear()


def extract_api_key(request: Request) -> Optional[str]:
    key = request.headers.get(API_KEY_HEADER) or request.query_params.get("api_key")
    auth = request.headers.get("Authorization")
    if not key and auth and auth.startswith("Bearer "):
        key = auth[7:]
    return key


def skip_auth_path(path: str) -> bool:
    return path.rstrip("/") in ("/api/health", "/api/metrics")
